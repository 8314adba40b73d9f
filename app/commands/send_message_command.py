"""
Command to add an outgoing message to a record's conversation.

Email messages that are not drafts are delivered through the mail gateway
first; the log is only written once delivery succeeded. Delivery is never
retried here, and a second send for the same record while one is running
is refused.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.base import BaseMailGateway, GatewayError, GatewayErrorKind
from app.constants.outreach import DeliveryStatus, MessageDirection, OutreachChannel
from app.core.app_state import state
from app.core.auth_token import AuthTokenProvider
from app.core.single_flight import InFlightRegistry
from app.core.stage_machine import StageEvent
from app.schemas.outreach import OutreachMessageCreate, OutreachMessageRead
from app.schemas.sync import DraftMessage, Notice, SendError, SendResult
from app.services.message_log_service import MessageLogService
from app.services.outreach_record_service import OutreachRecordService
from app.utils.timestamps import to_utc

ERROR_TEXT = {
    SendError.RECORD_NOT_FOUND: "This contact no longer exists.",
    SendError.SEND_IN_PROGRESS: "A message to this contact is already being sent.",
    SendError.NO_THREAD_LINKED: "No Gmail thread is linked to this contact. Send the first email from Gmail or link a thread.",
    SendError.NEEDS_RECONNECT: "Your Gmail connection has expired. Reconnect Gmail and try again.",
    SendError.UNREACHABLE: "Gmail could not be reached. Check your connection and try again.",
    SendError.REJECTED: "Gmail refused to send this message.",
    SendError.UNEXPECTED: "Something went wrong; the message was not logged. Check Gmail before sending again.",
}

_ERROR_BY_KIND = {
    GatewayErrorKind.NEEDS_RECONNECT: SendError.NEEDS_RECONNECT,
    GatewayErrorKind.UNREACHABLE: SendError.UNREACHABLE,
    GatewayErrorKind.REJECTED: SendError.REJECTED,
}


def _failure(error: SendError) -> SendResult:
    return SendResult(
        success=False,
        error=error,
        notice=Notice(level="error", text=ERROR_TEXT[error]),
    )


class SendMessageCommand:
    """
    Command to send (or log, or save as draft) a message for a record.
    """

    def __init__(
        self,
        db: Session,
        gateway: Optional[BaseMailGateway] = None,
        token_provider: Optional[AuthTokenProvider] = None,
        guard: Optional[InFlightRegistry] = None,
    ) -> None:
        self.db = db
        self.gateway = gateway or state.gateway
        self.token_provider = token_provider or state.token_provider
        self.guard = guard or state.send_guard
        self.records = OutreachRecordService(db)
        self.log = MessageLogService(db)
        self.logger = logging.getLogger(__name__)

    async def execute(self, record_id: UUID, draft: DraftMessage) -> SendResult:
        """
        Deliver if needed, then append to the log and nudge the stage.

        Returns:
            SendResult: success with the appended entry, or the error kind and
                the notice to show. On failure the log and stage are untouched.
        """
        with self.guard.claim(record_id) as acquired:
            if not acquired:
                self.logger.info("Send already in progress for record=%s", record_id)
                return _failure(SendError.SEND_IN_PROGRESS)
            return await self._send(record_id, draft)

    async def _send(self, record_id: UUID, draft: DraftMessage) -> SendResult:
        record = self.records.get_record(record_id)
        if record is None:
            return _failure(SendError.RECORD_NOT_FOUND)

        status = DeliveryStatus.DRAFT if draft.save_as_draft else DeliveryStatus.SENT
        candidate = OutreachMessageCreate(
            direction=MessageDirection.SENT,
            channel=draft.channel,
            subject=draft.subject if draft.channel is OutreachChannel.EMAIL else None,
            content=draft.content,
            sent_at=to_utc(draft.sent_at) if draft.sent_at else datetime.now(timezone.utc),
            delivery_status=status,
        )

        thread_id = record.gmail_thread_id
        needs_delivery = (
            draft.channel is OutreachChannel.EMAIL and status is DeliveryStatus.SENT
        )
        if needs_delivery:
            if not thread_id:
                return _failure(SendError.NO_THREAD_LINKED)
            try:
                token = self.token_provider()
                delivered = await self.gateway.send_reply(
                    thread_id, token, draft.content, draft.subject
                )
            except GatewayError as e:
                self.logger.warning(
                    "Delivery failed for record=%s: %s %s",
                    record_id,
                    e.kind.value,
                    e.detail[:200],
                )
                return _failure(_ERROR_BY_KIND[e.kind])
            except Exception:
                self.logger.exception("Unexpected error delivering for record=%s", record_id)
                return _failure(SendError.UNEXPECTED)
            if not delivered.success:
                self.logger.warning("Gmail did not accept reply for record=%s", record_id)
                return _failure(SendError.REJECTED)
            if delivered.thread_id:
                thread_id = delivered.thread_id

        # The record may have changed while delivery was pending.
        self.db.expire_all()
        record = self.records.get_record(record_id)
        if record is None:
            self.logger.warning("Record %s deleted while sending", record_id)
            return _failure(SendError.RECORD_NOT_FOUND)

        try:
            message = self.log.append(record_id, candidate, commit=False)
            new_stage = None
            if status is DeliveryStatus.SENT:
                new_stage = self.records.apply_stage_event(
                    record, StageEvent.OUTBOUND_SENT
                )
            now = datetime.now(timezone.utc)
            record = self.records.persist_record_update(
                record_id,
                {
                    "stage": new_stage,
                    "last_contacted_at": now,
                    "gmail_thread_id": thread_id if needs_delivery else None,
                    "updated_at": now,
                },
            )
            self.db.refresh(message)
        except SQLAlchemyError:
            self.db.rollback()
            self.logger.exception(
                "Could not log %s message for record=%s (delivered=%s)",
                status.value,
                record_id,
                needs_delivery,
            )
            return _failure(SendError.UNEXPECTED)
        self.logger.info(
            "Logged %s %s message for record=%s stage=%s",
            status.value,
            draft.channel.value,
            record_id,
            record.stage,
        )
        return SendResult(
            success=True,
            message=OutreachMessageRead.model_validate(message),
            stage=record.stage,
        )
