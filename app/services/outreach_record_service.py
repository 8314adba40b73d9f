"""OutreachRecord CRUD, partial persistence and stage changes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Query, Session

from app.constants.outreach import BoardType, STAGES_BY_BOARD, StageChangeSource
from app.core.stage_machine import StageEvent, transition
from app.models.outreach_record import OutreachRecord
from app.schemas.outreach import OutreachRecordCreate, OutreachRecordUpdate
from app.services.stage_change_service import StageChangeService

_SOURCE_BY_EVENT = {
    StageEvent.INBOUND_RECEIVED: StageChangeSource.SYNC,
    StageEvent.OUTBOUND_SENT: StageChangeSource.SEND,
}


class OutreachRecordService:
    """Manages outreach records. Stage moves always go through this service."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.stage_changes = StageChangeService(db)

    def get_record(self, record_id: UUID) -> Optional[OutreachRecord]:
        return self.db.query(OutreachRecord).filter(OutreachRecord.id == record_id).first()

    def get_records_query(
        self,
        stage: Optional[str] = None,
        board_type: Optional[BoardType] = None,
    ) -> Query:
        query = self.db.query(OutreachRecord).order_by(OutreachRecord.updated_at.desc())
        if stage is not None:
            query = query.filter(OutreachRecord.stage == stage)
        if board_type is not None:
            query = query.filter(OutreachRecord.board_type == board_type.value)
        return query

    def get_records(self, skip: int = 0, limit: int = 100) -> List[OutreachRecord]:
        return self.get_records_query().offset(skip).limit(limit).all()

    def create_record(self, data: OutreachRecordCreate) -> OutreachRecord:
        dump = data.model_dump(mode="python", exclude_none=True)
        dump["board_type"] = data.board_type.value
        for key in ("relationship_goal", "warmth_level"):
            if key in dump:
                dump[key] = dump[key].value
        record = OutreachRecord(**dump)
        self.db.add(record)
        self.db.flush()
        self.stage_changes.record_change(
            record.id, None, record.stage, StageChangeSource.MANUAL
        )
        self.db.commit()
        self.db.refresh(record)
        return record

    def update_record(
        self, record_id: UUID, data: OutreachRecordUpdate
    ) -> Optional[OutreachRecord]:
        """Apply a manual edit. A stage given here always wins."""
        record = self.get_record(record_id)
        if record is None:
            return None

        fields = data.model_dump(mode="python", exclude_unset=True)
        for key in ("relationship_goal", "warmth_level"):
            if fields.get(key) is not None:
                fields[key] = fields[key].value

        new_stage = fields.pop("stage", None)
        if new_stage is not None and new_stage != record.stage:
            allowed = STAGES_BY_BOARD[BoardType(record.board_type)]
            if new_stage not in allowed:
                raise ValueError(
                    f"Stage {new_stage!r} is not valid for board {record.board_type}"
                )
            self.stage_changes.record_change(
                record.id, record.stage, new_stage, StageChangeSource.MANUAL
            )
            fields["stage"] = new_stage

        fields["updated_at"] = datetime.now(timezone.utc)
        return self.persist_record_update(record_id, fields)

    def delete_record(self, record_id: UUID) -> bool:
        """Delete a record together with its log and stage history."""
        record = self.get_record(record_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        return True

    def persist_record_update(
        self, record_id: UUID, fields: Dict[str, Any]
    ) -> Optional[OutreachRecord]:
        """
        Write a partial update and commit.

        Fields whose value is None are dropped, never stored as explicit
        nulls. Pending log appends and stage history rows in the session are
        committed with it.
        """
        record = self.get_record(record_id)
        if record is None:
            return None
        for key, value in fields.items():
            if value is None:
                continue
            if not hasattr(OutreachRecord, key):
                raise ValueError(f"Unknown outreach record field: {key}")
            setattr(record, key, value)
        self.db.commit()
        self.db.refresh(record)
        return record

    def apply_stage_event(
        self, record: OutreachRecord, event: StageEvent
    ) -> Optional[str]:
        """
        Move the record if the event allows it from its current stage.

        Returns the new stage, or None when the stage is left alone. The
        caller commits (normally through persist_record_update).
        """
        new_stage = transition(record.stage, event)
        if new_stage is None or new_stage == record.stage:
            return None
        self.stage_changes.record_change(
            record.id,
            record.stage,
            new_stage,
            _SOURCE_BY_EVENT[event],
            notes=event.value,
        )
        record.stage = new_stage
        return new_stage
