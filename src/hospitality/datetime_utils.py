"""
Datetime utilities.
"""

from __future__ import annotations

from datetime import datetime, time, timezone


def utcnow() -> datetime:
    """
    Get current UTC time (timezone-aware).
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns;
    those are stored in UTC, so they are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_clock(value: datetime | None) -> str:
    """HH:MM rendering used in notification bodies."""
    if value is None:
        return ""
    return value.strftime("%H:%M")


def parse_clock(value: str | None) -> time | None:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string, returning None when empty."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time value: {value!r}")
    return time(int(parts[0]), int(parts[1]), int(parts[2]) if len(parts) > 2 else 0)


def in_quiet_hours(start: str | None, end: str | None, now: datetime) -> bool:
    """
    Whether ``now`` falls inside the quiet window ``[start, end)``.

    Windows that cross midnight (22:00 to 07:00) are supported. A missing bound
    or an empty window means no quiet hours.
    """
    start_t = parse_clock(start)
    end_t = parse_clock(end)
    if start_t is None or end_t is None or start_t == end_t:
        return False
    current = now.time().replace(tzinfo=None)
    if start_t < end_t:
        return start_t <= current < end_t
    return current >= start_t or current < end_t
