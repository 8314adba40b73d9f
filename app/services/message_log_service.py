"""
Conversation log access for outreach records.

Entries are append-only: there is no update or delete here. Entries go
away only when their record is deleted.
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.models.outreach_message import OutreachMessage
from app.schemas.outreach import LogOrder, OutreachMessageCreate


class MessageLogService:
    """Append to and read a record's conversation log."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def append(
        self,
        record_id: UUID,
        data: OutreachMessageCreate,
        *,
        commit: bool = True,
    ) -> OutreachMessage:
        """
        Append an entry at the end of the log.

        Optional fields left unset are not written. With commit=False the
        entry is flushed so the caller can commit it together with the
        record update.
        """
        dump = data.model_dump(mode="python", exclude_none=True)
        for key in ("direction", "channel", "delivery_status"):
            dump[key] = getattr(dump[key], "value", dump[key])
        message = OutreachMessage(
            record_id=record_id,
            position=self.get_message_count(record_id),
            **dump,
        )
        self.db.add(message)
        if commit:
            self.db.commit()
            self.db.refresh(message)
        else:
            self.db.flush()
        return message

    def get_messages_query(
        self, record_id: UUID, order: LogOrder = "insertion"
    ) -> Query:
        """Query for the log. Chronological order sorts by sent_at, then position."""
        query = self.db.query(OutreachMessage).filter(
            OutreachMessage.record_id == record_id
        )
        if order == "chronological":
            return query.order_by(OutreachMessage.sent_at, OutreachMessage.position)
        return query.order_by(OutreachMessage.position)

    def get_messages(
        self, record_id: UUID, order: LogOrder = "insertion"
    ) -> List[OutreachMessage]:
        return self.get_messages_query(record_id, order).all()

    def get_message_count(self, record_id: UUID) -> int:
        return (
            self.db.query(func.count(OutreachMessage.id))
            .filter(OutreachMessage.record_id == record_id)
            .scalar()
        )
