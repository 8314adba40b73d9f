"""Tests for the automatic sync scheduled when a conversation opens."""

import asyncio
import contextlib

import pytest

from app.commands.sync_thread_command import SyncThreadCommand
from app.schemas.gateway import ThreadReply
from app.schemas.sync import SyncOutcome
from app.services.message_log_service import MessageLogService
from app.tasks.auto_sync_task import AutoSyncScheduler


@pytest.fixture
def scheduler(db, fake_gateway, token_provider, sync_guard):
    return AutoSyncScheduler(
        delay_seconds=0.01,
        session_factory=lambda: contextlib.nullcontext(db),
        command_factory=lambda session: SyncThreadCommand(
            session,
            gateway=fake_gateway,
            token_provider=token_provider,
            guard=sync_guard,
        ),
    )


@pytest.mark.asyncio
async def test_open_runs_one_auto_sync_after_delay(
    db, setup_record, scheduler, fake_gateway
):
    fake_gateway.reply = ThreadReply(body="Sounds good", date="1714557600000")

    task = scheduler.schedule(setup_record.id)
    assert fake_gateway.fetch_calls == []
    result = await task

    assert result.outcome == SyncOutcome.APPENDED
    assert result.notice.level == "success"
    assert len(fake_gateway.fetch_calls) == 1
    assert MessageLogService(db).get_message_count(setup_record.id) == 1
    assert scheduler.pending_count() == 0


@pytest.mark.asyncio
async def test_repeated_opens_are_debounced(setup_record, scheduler, fake_gateway):
    first = scheduler.schedule(setup_record.id)
    second = scheduler.schedule(setup_record.id)
    third = scheduler.schedule(setup_record.id)

    result = await third
    await asyncio.gather(first, second, return_exceptions=True)

    assert first.cancelled()
    assert second.cancelled()
    assert result.outcome == SyncOutcome.NO_NEW_REPLIES
    assert result.notice is None
    assert len(fake_gateway.fetch_calls) == 1


@pytest.mark.asyncio
async def test_auto_sync_without_thread_does_nothing(
    setup_record_without_thread, scheduler, fake_gateway
):
    result = await scheduler.schedule(setup_record_without_thread.id)

    assert result.outcome == SyncOutcome.SKIPPED
    assert fake_gateway.fetch_calls == []


@pytest.mark.asyncio
async def test_crashing_sync_is_logged_not_raised(db, setup_record):
    def broken_command(session):
        raise RuntimeError("no gateway configured")

    scheduler = AutoSyncScheduler(
        delay_seconds=0,
        session_factory=lambda: contextlib.nullcontext(db),
        command_factory=broken_command,
    )

    assert await scheduler.schedule(setup_record.id) is None


@pytest.mark.asyncio
async def test_running_sync_stays_tracked_and_is_joined(
    setup_record, scheduler, fake_gateway
):
    fake_gateway.gate = asyncio.Event()
    task = scheduler.schedule(setup_record.id)
    while not fake_gateway.fetch_calls:
        await asyncio.sleep(0.005)

    assert scheduler.pending_count() == 1
    assert scheduler.schedule(setup_record.id) is task
    assert not task.cancelled()

    fake_gateway.gate.set()
    result = await task

    assert result.outcome == SyncOutcome.NO_NEW_REPLIES
    assert len(fake_gateway.fetch_calls) == 1
    assert scheduler.pending_count() == 0
