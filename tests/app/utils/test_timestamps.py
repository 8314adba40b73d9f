"""Tests for provider timestamp parsing."""

from datetime import datetime, timezone

from app.utils.timestamps import normalize_timestamp, parse_timestamp


def test_parse_rfc2822():
    parsed = parse_timestamp("Wed, 01 May 2024 10:00:00 +0200")
    assert parsed == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def test_parse_iso_with_z():
    parsed = parse_timestamp("2024-05-01T10:00:00Z")
    assert parsed == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_parse_naive_iso_is_utc():
    assert parse_timestamp("2024-05-01T10:00:00").tzinfo is not None


def test_parse_epoch_millis():
    assert parse_timestamp("1714557600000") == datetime(
        2024, 5, 1, 10, 0, tzinfo=timezone.utc
    )


def test_parse_garbage_returns_none():
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_normalize_falls_back_to_now():
    now = datetime(2025, 1, 2, 3, 4, tzinfo=timezone.utc)
    assert normalize_timestamp("yesterday-ish", now=now) == now
    assert normalize_timestamp(None, now=now) == now
