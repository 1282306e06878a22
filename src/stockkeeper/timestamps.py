"""Helpers for the unix-millisecond timestamps used throughout storage."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def from_ms(value: int, tz: tzinfo = timezone.utc) -> datetime:
    return (_EPOCH + timedelta(milliseconds=value)).astimezone(tz)


def to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def start_of_day_ms(day: date, tz: tzinfo = timezone.utc) -> int:
    return to_ms(datetime.combine(day, time.min, tzinfo=tz))


def end_of_day_ms(day: date, tz: tzinfo = timezone.utc) -> int:
    """Last millisecond of ``day`` (23:59:59.999)."""

    return start_of_day_ms(day, tz) + 24 * 60 * 60 * 1000 - 1


# A day of margin at both ends keeps every value convertible in any timezone.
MIN_TIMESTAMP_MS = to_ms(datetime(1, 1, 2, tzinfo=timezone.utc))
MAX_TIMESTAMP_MS = to_ms(datetime(9999, 12, 31, tzinfo=timezone.utc)) - 1


__all__ = [
    "MIN_TIMESTAMP_MS",
    "MAX_TIMESTAMP_MS",
    "now_ms",
    "from_ms",
    "to_ms",
    "start_of_day_ms",
    "end_of_day_ms",
]
