"""Timestamp helpers shared by the time-based analyses.

All hour and calendar-day arithmetic happens in local wall-clock time.
Naive datetimes are taken to already be local; aware ones are converted.
"""

from __future__ import annotations

from datetime import datetime


def to_local(value: datetime) -> datetime:
    """Return *value* as a naive local datetime."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_timestamp(timestamp: str | None) -> datetime | None:
    """Parse an ISO-8601 string into a naive local datetime.

    Returns ``None`` for empty or unparseable input.
    """
    if not timestamp:
        return None
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    return to_local(parsed)


def format_hour(hour: int) -> str:
    """12-hour clock label: ``12am``, ``9am``, ``12pm``, ``3pm``.

    Hour 24 (the end of a cluster ending at 11pm) wraps to ``12am``.
    """
    hour %= 24
    if hour == 0:
        return "12am"
    if hour < 12:
        return f"{hour}am"
    if hour == 12:
        return "12pm"
    return f"{hour - 12}pm"


def sort_key(value: datetime | None) -> tuple[int, datetime]:
    """Chronological sort key that places missing times first."""
    if value is None:
        return (0, datetime.min)
    return (1, to_local(value))
