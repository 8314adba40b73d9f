"""
OutreachMessage model: one entry of a record's conversation log.

Rows are insert-only. `position` is the insertion index within the record;
`sent_at` is when the message happened and may disagree with `position`.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import utcnow


class OutreachMessage(Base):
    """A sent or received message; direction is 'sent' or 'received'."""

    __tablename__ = "outreach_messages"

    __table_args__ = (
        UniqueConstraint("record_id", "position", name="uq_outreach_messages_position"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    record_id = Column(
        Uuid,
        ForeignKey("outreach_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    direction = Column(String(16), nullable=False)
    channel = Column(String(32), nullable=False)
    subject = Column(String(998), nullable=True)
    content = Column(Text, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    delivery_status = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    record = relationship("OutreachRecord", back_populates="messages")
