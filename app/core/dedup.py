"""
Duplicate detection for inbound messages.

Remote threads can return the same message with slightly different metadata
between fetches, so entries are compared on a coarse signature: the first
characters of the content (trimmed) plus the calendar day the message was
sent, in a fixed time zone. Two different replies from one contact on the
same day that open with the same text will collide; a reply whose provider
date drifts across midnight will not. Both are accepted limitations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Protocol, Union
from zoneinfo import ZoneInfo

from app.constants.outreach import MessageDirection
from app.utils.timestamps import ensure_aware, parse_timestamp

DEFAULT_PREFIX_LENGTH = 100
DEFAULT_TIMEZONE = "UTC"


class LogEntry(Protocol):
    direction: Any
    content: str
    sent_at: Union[datetime, str]


def day_key(sent_at: Union[datetime, str, None], tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Calendar day (YYYY-MM-DD) of `sent_at` in `tz_name`."""
    if isinstance(sent_at, datetime):
        moment = ensure_aware(sent_at)
    else:
        moment = parse_timestamp(sent_at)
        if moment is None:
            # Keep whatever date-looking prefix the raw value has.
            return (sent_at or "")[:10]
    return moment.astimezone(ZoneInfo(tz_name)).date().isoformat()


def message_signature(
    content: str,
    sent_at: Union[datetime, str, None],
    *,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
    tz_name: str = DEFAULT_TIMEZONE,
) -> str:
    prefix = (content or "")[:prefix_length].strip()
    return f"{prefix}-{day_key(sent_at, tz_name)}"


def _is_received(entry: LogEntry) -> bool:
    direction = getattr(entry.direction, "value", entry.direction)
    return direction == MessageDirection.RECEIVED.value


def is_duplicate(
    candidate: LogEntry,
    existing_log: Iterable[LogEntry],
    *,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
    tz_name: str = DEFAULT_TIMEZONE,
) -> bool:
    """True if a received entry in `existing_log` has the candidate's signature."""
    wanted = message_signature(
        candidate.content,
        candidate.sent_at,
        prefix_length=prefix_length,
        tz_name=tz_name,
    )
    return any(
        message_signature(
            entry.content,
            entry.sent_at,
            prefix_length=prefix_length,
            tz_name=tz_name,
        )
        == wanted
        for entry in existing_log
        if _is_received(entry)
    )
