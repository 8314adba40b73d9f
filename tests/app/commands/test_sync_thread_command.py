"""Tests for SyncThreadCommand."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from app.adapters.base import GatewayError, GatewayErrorKind
from app.commands.sync_thread_command import SyncThreadCommand
from app.constants.outreach import StageChangeSource
from app.schemas.gateway import ThreadReply
from app.schemas.outreach import OutreachRecordUpdate
from app.schemas.sync import SyncOutcome
from app.services.message_log_service import MessageLogService
from app.services.outreach_record_service import OutreachRecordService
from app.services.stage_change_service import StageChangeService
from app.utils.timestamps import ensure_aware

REPLY = ThreadReply(
    body="Thanks, let's talk",
    subject="Re: Intro",
    date="Wed, 01 May 2024 10:00:00 +0000",
)


@pytest.mark.asyncio
async def test_new_reply_is_logged_and_moves_targets_to_replied(
    db, setup_record, sync_command, fake_gateway
):
    fake_gateway.reply = REPLY
    result = await sync_command.execute(setup_record.id, "manual")

    assert result.outcome == SyncOutcome.APPENDED
    assert result.stage == "replied"
    assert result.notice.level == "success"
    assert fake_gateway.fetch_calls == [("thread-123", "test-token")]

    log = MessageLogService(db).get_messages(setup_record.id)
    assert len(log) == 1
    assert log[0].direction == "received"
    assert log[0].channel == "email"
    assert log[0].delivery_status == "replied"
    assert log[0].content == "Thanks, let's talk"
    assert log[0].subject == "Re: Intro"
    assert log[0].position == 0

    record = OutreachRecordService(db).get_record(setup_record.id)
    assert record.stage == "replied"


@pytest.mark.asyncio
async def test_sync_twice_appends_once(db, setup_record, sync_command, fake_gateway):
    fake_gateway.reply = REPLY
    first = await sync_command.execute(setup_record.id, "auto")
    second = await sync_command.execute(setup_record.id, "manual")

    assert first.outcome == SyncOutcome.APPENDED
    assert second.outcome == SyncOutcome.DUPLICATE
    assert second.notice.text == "No new replies."
    assert MessageLogService(db).get_message_count(setup_record.id) == 1

    sync_changes = [
        c
        for c in StageChangeService(db).get_changes(setup_record.id)
        if c.source == StageChangeSource.SYNC.value
    ]
    assert len(sync_changes) == 1


@pytest.mark.asyncio
async def test_overlapping_syncs_fetch_once(
    db, setup_record, fake_gateway, token_provider, sync_guard
):
    fake_gateway.reply = REPLY
    fake_gateway.gate = asyncio.Event()
    auto = SyncThreadCommand(
        db, gateway=fake_gateway, token_provider=token_provider, guard=sync_guard
    )
    manual = SyncThreadCommand(
        db, gateway=fake_gateway, token_provider=token_provider, guard=sync_guard
    )

    running = asyncio.create_task(auto.execute(setup_record.id, "auto"))
    await asyncio.sleep(0)
    dropped = await manual.execute(setup_record.id, "manual")
    fake_gateway.gate.set()
    finished = await running

    assert dropped.outcome == SyncOutcome.IN_FLIGHT
    assert finished.outcome == SyncOutcome.APPENDED
    assert len(fake_gateway.fetch_calls) == 1
    assert MessageLogService(db).get_message_count(setup_record.id) == 1
    assert not sync_guard.is_in_flight(setup_record.id)


@pytest.mark.asyncio
async def test_no_thread_is_silent_noop(
    db, setup_record_without_thread, sync_command, fake_gateway
):
    for trigger in ("manual", "auto"):
        result = await sync_command.execute(setup_record_without_thread.id, trigger)
        assert result.outcome == SyncOutcome.SKIPPED
        assert result.notice is None
    assert fake_gateway.fetch_calls == []
    assert MessageLogService(db).get_message_count(setup_record_without_thread.id) == 0


@pytest.mark.asyncio
async def test_no_reply_found(setup_record, sync_command, fake_gateway):
    manual = await sync_command.execute(setup_record.id, "manual")
    auto = await sync_command.execute(setup_record.id, "auto")

    assert manual.outcome == SyncOutcome.NO_NEW_REPLIES
    assert manual.notice.text == "No new replies."
    assert auto.outcome == SyncOutcome.NO_NEW_REPLIES
    assert auto.notice is None


@pytest.mark.asyncio
@pytest.mark.parametrize("trigger", ["manual", "auto"])
async def test_reconnect_error_always_visible(
    db, setup_record, sync_command, fake_gateway, trigger
):
    fake_gateway.fetch_error = GatewayError(GatewayErrorKind.NEEDS_RECONNECT, "HTTP 401")
    result = await sync_command.execute(setup_record.id, trigger)

    assert result.outcome == SyncOutcome.RECONNECT_REQUIRED
    assert result.notice.level == "error"
    assert MessageLogService(db).get_message_count(setup_record.id) == 0


@pytest.mark.asyncio
async def test_transient_error_visible_only_for_manual(
    setup_record, sync_command, fake_gateway
):
    fake_gateway.fetch_error = GatewayError(GatewayErrorKind.UNREACHABLE, "timeout")

    manual = await sync_command.execute(setup_record.id, "manual")
    auto = await sync_command.execute(setup_record.id, "auto")

    assert manual.outcome == SyncOutcome.FAILED
    assert "could not be reached" in manual.notice.text
    assert auto.outcome == SyncOutcome.FAILED
    assert auto.notice is None


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failed_result(
    setup_record, sync_command, fake_gateway
):
    fake_gateway.fetch_error = RuntimeError("boom")
    result = await sync_command.execute(setup_record.id, "manual")
    assert result.outcome == SyncOutcome.FAILED
    assert result.notice is not None


@pytest.mark.asyncio
async def test_unparsable_date_uses_current_time(
    db, setup_record, sync_command, fake_gateway
):
    fake_gateway.reply = ThreadReply(body="Hello", date="sometime last week")
    before = datetime.now(timezone.utc)
    result = await sync_command.execute(setup_record.id, "manual")

    assert result.outcome == SyncOutcome.APPENDED
    sent_at = MessageLogService(db).get_messages(setup_record.id)[0].sent_at
    if sent_at.tzinfo is None:
        sent_at = sent_at.replace(tzinfo=timezone.utc)
    assert sent_at >= before.replace(microsecond=0)


@pytest.mark.asyncio
async def test_reply_does_not_override_manual_stage(
    db, setup_record, sync_command, fake_gateway
):
    OutreachRecordService(db).update_record(
        setup_record.id, OutreachRecordUpdate(stage="meeting")
    )
    fake_gateway.reply = REPLY
    result = await sync_command.execute(setup_record.id, "auto")

    assert result.outcome == SyncOutcome.APPENDED
    assert result.stage == "meeting"
    assert OutreachRecordService(db).get_record(setup_record.id).stage == "meeting"


@pytest.mark.asyncio
async def test_manual_edit_during_fetch_wins(
    db, setup_record, sync_command, fake_gateway
):
    fake_gateway.reply = REPLY
    fake_gateway.gate = asyncio.Event()

    running = asyncio.create_task(sync_command.execute(setup_record.id, "auto"))
    await asyncio.sleep(0)
    OutreachRecordService(db).update_record(
        setup_record.id, OutreachRecordUpdate(stage="closed")
    )
    fake_gateway.gate.set()
    result = await running

    assert result.outcome == SyncOutcome.APPENDED
    assert result.stage == "closed"


@pytest.mark.asyncio
async def test_append_refreshes_updated_at(db, setup_record, sync_command, fake_gateway):
    original = setup_record.updated_at
    fake_gateway.reply = REPLY
    await sync_command.execute(setup_record.id, "manual")

    record = OutreachRecordService(db).get_record(setup_record.id)
    assert record.updated_at > original


@pytest.mark.asyncio
async def test_offset_date_near_midnight_is_deduplicated(
    db, setup_record, sync_command, fake_gateway
):
    """A reply dated in a non-UTC zone is stored in UTC and matched on re-sync."""
    fake_gateway.reply = ThreadReply(
        body="Thanks, let's talk", date="Wed, 01 May 2024 20:00:00 -0700"
    )
    first = await sync_command.execute(setup_record.id, "manual")
    second = await sync_command.execute(setup_record.id, "manual")

    assert first.outcome == SyncOutcome.APPENDED
    assert second.outcome == SyncOutcome.DUPLICATE
    log = MessageLogService(db).get_messages(setup_record.id)
    assert len(log) == 1
    assert ensure_aware(log[0].sent_at) == datetime(2024, 5, 2, 3, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
@pytest.mark.parametrize("trigger, notice_shown", [("manual", True), ("auto", False)])
async def test_failed_write_is_rolled_back(
    db, setup_record, sync_command, fake_gateway, trigger, notice_shown
):
    fake_gateway.reply = REPLY
    conflict = IntegrityError("INSERT INTO outreach_messages", {}, Exception("duplicate"))
    with patch.object(
        sync_command.records, "persist_record_update", side_effect=conflict
    ):
        result = await sync_command.execute(setup_record.id, trigger)

    assert result.outcome == SyncOutcome.FAILED
    assert (result.notice is not None) is notice_shown
    assert MessageLogService(db).get_message_count(setup_record.id) == 0
    assert OutreachRecordService(db).get_record(setup_record.id).stage == "targets"
    assert len(StageChangeService(db).get_changes(setup_record.id)) == 1
    assert not sync_command.guard.is_in_flight(setup_record.id)
