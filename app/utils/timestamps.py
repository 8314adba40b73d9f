"""Parsing and normalising timestamps that come back from mail providers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

logger = logging.getLogger(__name__)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite hands them back naive)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_utc(value: datetime) -> datetime:
    """
    Aware UTC datetime.

    Values are stored in UTC: SQLite drops the offset on write and reads the
    wall-clock time back as UTC.
    """
    return ensure_aware(value).astimezone(timezone.utc)


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 2822 mail date, an ISO 8601 string or epoch milliseconds.

    Returns None when the value cannot be understood.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    if text.isdigit():
        try:
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        return to_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None


def normalize_timestamp(raw: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Parse `raw`, falling back to the current time instead of failing."""
    parsed = parse_timestamp(raw)
    if parsed is not None:
        return parsed
    logger.debug("Unparsable message date %r, using current time", raw)
    return to_utc(now) if now is not None else datetime.now(timezone.utc)
