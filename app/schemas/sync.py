"""
Result contracts for the sync coordinator and the outbound send path.

Every public entry point resolves to one of these; `notice` is the
user-facing message (None when nothing should be shown).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.constants.outreach import OutreachChannel
from app.schemas.outreach import OutreachMessageRead

NoticeLevel = Literal["info", "success", "error"]


class Notice(BaseModel):
    level: NoticeLevel
    text: str


class SyncOutcome(str, Enum):
    SKIPPED = "skipped"  # no thread bound, or record gone
    IN_FLIGHT = "in_flight"  # another sync for the record is running
    NO_NEW_REPLIES = "no_new_replies"
    DUPLICATE = "duplicate"
    APPENDED = "appended"
    RECONNECT_REQUIRED = "reconnect_required"
    FAILED = "failed"


class SyncResult(BaseModel):
    outcome: SyncOutcome
    notice: Optional[Notice] = None
    message: Optional[OutreachMessageRead] = None
    stage: Optional[str] = None


class DraftMessage(BaseModel):
    """What the composer submits for the outbound send path."""

    channel: OutreachChannel = OutreachChannel.EMAIL
    content: str = Field(min_length=1)
    subject: Optional[str] = None
    save_as_draft: bool = False
    sent_at: Optional[datetime] = None  # backdate off-platform contact (calls, events)


class SendError(str, Enum):
    RECORD_NOT_FOUND = "record_not_found"
    SEND_IN_PROGRESS = "send_in_progress"
    NO_THREAD_LINKED = "no_thread_linked"
    NEEDS_RECONNECT = "needs_reconnect"
    UNREACHABLE = "unreachable"
    REJECTED = "rejected"
    UNEXPECTED = "unexpected"


class SendResult(BaseModel):
    success: bool
    error: Optional[SendError] = None
    notice: Optional[Notice] = None
    message: Optional[OutreachMessageRead] = None
    stage: Optional[str] = None
