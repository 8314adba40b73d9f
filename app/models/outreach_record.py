"""OutreachRecord model: one contact/application card on a board."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin


class OutreachRecord(Base, TimestampMixin):
    """Owns one conversation log and one pipeline stage."""

    __tablename__ = "outreach_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    board_type = Column(String(32), nullable=False, default="campaigns")
    stage = Column(String(32), nullable=False, index=True)
    company_name = Column(String(256), nullable=False)
    position = Column(String(256), nullable=True)
    contact_name = Column(String(256), nullable=True)
    contact_email = Column(String(320), nullable=True)
    contact_role = Column(String(256), nullable=True)
    contact_linkedin = Column(String(512), nullable=True)
    relationship_goal = Column(String(32), nullable=True)
    warmth_level = Column(String(16), nullable=True)
    notes = Column(Text, nullable=True)
    gmail_thread_id = Column(String(256), nullable=True)  # absent = no remote thread
    last_contacted_at = Column(DateTime(timezone=True), nullable=True)
    next_follow_up_at = Column(DateTime(timezone=True), nullable=True)

    messages = relationship(
        "OutreachMessage",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="OutreachMessage.position",
    )
    stage_changes = relationship(
        "StageChange",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="StageChange.created_at",
    )
