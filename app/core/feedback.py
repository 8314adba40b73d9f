"""Which sync results are shown to the user, decided per trigger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.constants.outreach import SyncTrigger
from app.schemas.sync import Notice

RECONNECT_TEXT = "Your Gmail connection has expired. Reconnect Gmail to keep replies in sync."
NO_NEW_REPLIES_TEXT = "No new replies."
NEW_REPLY_TEXT = "New reply received."
SYNC_FAILED_TEXT = "Could not check for replies: {reason}"


@dataclass(frozen=True)
class FeedbackPolicy:
    """
    Visibility rules for one sync attempt.

    Reconnect errors are always shown; they are the one failure a user has
    to act on. The remaining flags differ between manual and background runs.
    """

    surface_failures: bool
    surface_empty_result: bool
    surface_new_reply: bool = True

    @classmethod
    def for_trigger(cls, trigger: SyncTrigger | str) -> "FeedbackPolicy":
        if SyncTrigger(trigger) is SyncTrigger.MANUAL:
            return MANUAL_POLICY
        return AUTO_POLICY

    def reconnect(self) -> Notice:
        return Notice(level="error", text=RECONNECT_TEXT)

    def failure(self, reason: str) -> Optional[Notice]:
        if not self.surface_failures:
            return None
        return Notice(level="error", text=SYNC_FAILED_TEXT.format(reason=reason))

    def nothing_new(self) -> Optional[Notice]:
        if not self.surface_empty_result:
            return None
        return Notice(level="info", text=NO_NEW_REPLIES_TEXT)

    def new_reply(self) -> Optional[Notice]:
        if not self.surface_new_reply:
            return None
        return Notice(level="success", text=NEW_REPLY_TEXT)


MANUAL_POLICY = FeedbackPolicy(surface_failures=True, surface_empty_result=True)
AUTO_POLICY = FeedbackPolicy(surface_failures=False, surface_empty_result=False)
