"""Datetime helpers.

All timestamps are stored as naive UTC datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC datetime as naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC. Naive values are returned unchanged."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def month_bounds(period: str) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` datetimes for a ``YYYY-MM`` period."""
    year, month = (int(part) for part in period.split("-"))
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def period_of(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"
