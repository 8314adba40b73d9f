"""
Background reply check when a conversation is opened.

Opening a conversation schedules one sync after a short delay; opening it
again before the delay runs out restarts the timer, so rapid re-renders
produce a single fetch. Opening it while that sync runs joins the running
one. Nothing repeats afterwards.
"""

from __future__ import annotations

import asyncio
from typing import Callable, ContextManager, Dict, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session

from app.commands.sync_thread_command import SyncThreadCommand
from app.config import get_settings
from app.constants.outreach import SyncTrigger
from app.db import db_session
from app.infra.logging_config import get_logger
from app.schemas.sync import SyncResult

logger = get_logger("auto_sync")

SessionFactory = Callable[[], ContextManager[Session]]
CommandFactory = Callable[[Session], SyncThreadCommand]


class AutoSyncScheduler:
    """Debounced, one-shot automatic syncs keyed by record id."""

    def __init__(
        self,
        delay_seconds: Optional[float] = None,
        session_factory: SessionFactory = db_session,
        command_factory: CommandFactory = SyncThreadCommand,
    ) -> None:
        if delay_seconds is None:
            delay_seconds = get_settings().auto_sync_delay_seconds
        self.delay_seconds = delay_seconds
        self._session_factory = session_factory
        self._command_factory = command_factory
        # Tasks stay here until done; the done-callback removes them.
        self._pending: Dict[UUID, asyncio.Task] = {}
        self._started: Set[UUID] = set()

    def schedule(self, record_id: UUID) -> asyncio.Task:
        """
        Schedule (or reschedule) the automatic sync for a record.

        A sync still waiting out its delay is restarted; one already running
        is returned as is.
        """
        previous = self._pending.get(record_id)
        if previous is not None and not previous.done():
            if record_id in self._started:
                return previous
            previous.cancel()
        task = asyncio.get_running_loop().create_task(self._run(record_id))
        self._pending[record_id] = task
        task.add_done_callback(lambda t, rid=record_id: self._forget(rid, t))
        return task

    def pending_count(self) -> int:
        return sum(1 for t in self._pending.values() if not t.done())

    def _forget(self, record_id: UUID, task: asyncio.Task) -> None:
        if self._pending.get(record_id) is task:
            del self._pending[record_id]
            self._started.discard(record_id)

    async def _run(self, record_id: UUID) -> Optional[SyncResult]:
        await asyncio.sleep(self.delay_seconds)
        self._started.add(record_id)
        try:
            with self._session_factory() as db:
                command = self._command_factory(db)
                result = await command.execute(record_id, SyncTrigger.AUTO)
        except Exception:
            logger.exception("Automatic sync crashed for record=%s", record_id)
            return None
        logger.debug("Automatic sync for record=%s: %s", record_id, result.outcome.value)
        return result


_scheduler: Optional[AutoSyncScheduler] = None


def get_auto_sync_scheduler() -> AutoSyncScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AutoSyncScheduler()
    return _scheduler
