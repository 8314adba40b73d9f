"""
Command to pull the latest reply of a record's mail thread into its log.

Fetches the newest inbound message through the mail gateway, skips it when
the log already holds it, otherwise appends it and nudges the pipeline
stage. At most one sync per record runs at a time; overlapping calls are
dropped.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.base import BaseMailGateway, GatewayError, GatewayErrorKind
from app.config import get_settings
from app.constants.outreach import (
    DeliveryStatus,
    MessageDirection,
    OutreachChannel,
    SyncTrigger,
)
from app.core.app_state import state
from app.core.auth_token import AuthTokenProvider
from app.core.dedup import is_duplicate
from app.core.feedback import FeedbackPolicy
from app.core.single_flight import InFlightRegistry
from app.core.stage_machine import StageEvent
from app.schemas.gateway import ThreadReply
from app.schemas.outreach import OutreachMessageCreate, OutreachMessageRead
from app.schemas.sync import SyncOutcome, SyncResult
from app.services.message_log_service import MessageLogService
from app.services.outreach_record_service import OutreachRecordService
from app.utils.timestamps import normalize_timestamp

FAILURE_REASONS = {
    GatewayErrorKind.UNREACHABLE: "Gmail could not be reached.",
    GatewayErrorKind.REJECTED: "Gmail rejected the request.",
}


class SyncThreadCommand:
    """
    Command to sync one outreach record with its remote mail thread.
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
        self.guard = guard or state.sync_guard
        self.records = OutreachRecordService(db)
        self.log = MessageLogService(db)
        self.logger = logging.getLogger(__name__)
        settings = get_settings()
        self._dedup_tz = settings.dedup_timezone
        self._dedup_prefix = settings.dedup_prefix_length

    async def execute(
        self,
        record_id: UUID,
        trigger: SyncTrigger = SyncTrigger.MANUAL,
        policy: Optional[FeedbackPolicy] = None,
    ) -> SyncResult:
        """
        Execute one sync attempt.

        Args:
            record_id: The record whose thread to check.
            trigger: 'manual' (user clicked) or 'auto' (conversation opened).
            policy: Visibility rules; defaults to the policy for `trigger`.

        Returns:
            SyncResult: outcome plus the notice to show, if any.
        """
        trigger = SyncTrigger(trigger)
        policy = policy or FeedbackPolicy.for_trigger(trigger)

        record = self.records.get_record(record_id)
        if record is None or not record.gmail_thread_id:
            self.logger.debug("No thread bound for record=%s, skipping sync", record_id)
            return SyncResult(outcome=SyncOutcome.SKIPPED)

        with self.guard.claim(record_id) as acquired:
            if not acquired:
                self.logger.debug("Sync already in flight for record=%s", record_id)
                return SyncResult(outcome=SyncOutcome.IN_FLIGHT)
            return await self._sync(record_id, record.gmail_thread_id, trigger, policy)

    async def _sync(
        self,
        record_id: UUID,
        thread_id: str,
        trigger: SyncTrigger,
        policy: FeedbackPolicy,
    ) -> SyncResult:
        try:
            token = self.token_provider()
            fetched = await self.gateway.fetch_latest_reply(thread_id, token)
        except GatewayError as e:
            return self._handle_gateway_error(record_id, trigger, policy, e)
        except Exception:
            self.logger.exception("Unexpected error syncing record=%s", record_id)
            return SyncResult(
                outcome=SyncOutcome.FAILED,
                notice=policy.failure("Unexpected error."),
            )

        if not fetched.found or fetched.reply is None:
            return SyncResult(
                outcome=SyncOutcome.NO_NEW_REPLIES, notice=policy.nothing_new()
            )

        # The record may have been edited or deleted while the fetch was pending.
        self.db.expire_all()
        record = self.records.get_record(record_id)
        if record is None:
            self.logger.info("Record %s deleted during sync, dropping reply", record_id)
            return SyncResult(outcome=SyncOutcome.SKIPPED)

        candidate = self._to_log_entry(fetched.reply)
        existing = self.log.get_messages(record_id)
        if is_duplicate(
            candidate,
            existing,
            prefix_length=self._dedup_prefix,
            tz_name=self._dedup_tz,
        ):
            self.logger.debug("Reply already logged for record=%s", record_id)
            return SyncResult(
                outcome=SyncOutcome.DUPLICATE,
                notice=policy.nothing_new(),
                stage=record.stage,
            )

        try:
            message = self.log.append(record_id, candidate, commit=False)
            new_stage = self.records.apply_stage_event(
                record, StageEvent.INBOUND_RECEIVED
            )
            record = self.records.persist_record_update(
                record_id,
                {"stage": new_stage, "updated_at": datetime.now(timezone.utc)},
            )
            self.db.refresh(message)
        except SQLAlchemyError:
            self.db.rollback()
            self.logger.exception("Could not save reply for record=%s", record_id)
            return SyncResult(
                outcome=SyncOutcome.FAILED,
                notice=policy.failure("The reply could not be saved."),
            )
        self.logger.info(
            "Logged reply for record=%s trigger=%s stage=%s",
            record_id,
            trigger.value,
            record.stage,
        )
        return SyncResult(
            outcome=SyncOutcome.APPENDED,
            notice=policy.new_reply(),
            message=OutreachMessageRead.model_validate(message),
            stage=record.stage,
        )

    def _to_log_entry(self, reply: ThreadReply) -> OutreachMessageCreate:
        return OutreachMessageCreate(
            direction=MessageDirection.RECEIVED,
            channel=OutreachChannel.EMAIL,
            subject=reply.subject,
            content=reply.body,
            sent_at=normalize_timestamp(reply.date),
            delivery_status=DeliveryStatus.REPLIED,
        )

    def _handle_gateway_error(
        self,
        record_id: UUID,
        trigger: SyncTrigger,
        policy: FeedbackPolicy,
        error: GatewayError,
    ) -> SyncResult:
        if error.needs_reconnect:
            self.logger.warning(
                "Gmail reconnect required while syncing record=%s", record_id
            )
            return SyncResult(
                outcome=SyncOutcome.RECONNECT_REQUIRED, notice=policy.reconnect()
            )
        self.logger.warning(
            "Reply check failed for record=%s trigger=%s: %s",
            record_id,
            trigger.value,
            error.detail[:200],
        )
        return SyncResult(
            outcome=SyncOutcome.FAILED,
            notice=policy.failure(FAILURE_REASONS.get(error.kind, "Unexpected error.")),
        )
