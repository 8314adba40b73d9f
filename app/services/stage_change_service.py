"""Stage history for outreach records. Insert-only."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.constants.outreach import StageChangeSource
from app.models.stage_change import StageChange


class StageChangeService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def record_change(
        self,
        record_id: UUID,
        from_stage: Optional[str],
        to_stage: str,
        source: StageChangeSource,
        notes: Optional[str] = None,
    ) -> StageChange:
        """Add a history row; the caller commits."""
        change = StageChange(
            record_id=record_id,
            from_stage=from_stage,
            to_stage=to_stage,
            source=source.value,
            notes=notes,
        )
        self.db.add(change)
        return change

    def get_changes(self, record_id: UUID) -> List[StageChange]:
        return (
            self.db.query(StageChange)
            .filter(StageChange.record_id == record_id)
            .order_by(StageChange.created_at)
            .all()
        )
