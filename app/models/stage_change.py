"""StageChange model: history of pipeline stage moves for a record."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import utcnow


class StageChange(Base):
    __tablename__ = "stage_changes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    record_id = Column(
        Uuid,
        ForeignKey("outreach_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_stage = Column(String(32), nullable=True)
    to_stage = Column(String(32), nullable=False)
    source = Column(String(16), nullable=False)  # 'manual' | 'sync' | 'send'
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    record = relationship("OutreachRecord", back_populates="stage_changes")
