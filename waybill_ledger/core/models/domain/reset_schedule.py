"""
Schedule of fuel card reset rules.

A rule falls due at the start of the next month, quarter or year after its
last run. MANUAL rules are never scheduled and can be run at any time.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from .enums import ResetFrequency


def compute_next_reset_at(now: dt.datetime, frequency: ResetFrequency) -> Optional[dt.datetime]:
    """First instant of the period following ``now``, or None for MANUAL rules."""
    frequency = ResetFrequency(frequency)
    if frequency == ResetFrequency.monthly:
        if now.month == 12:
            return dt.datetime(now.year + 1, 1, 1)
        return dt.datetime(now.year, now.month + 1, 1)
    if frequency == ResetFrequency.quarterly:
        next_quarter_month = (now.month - 1) // 3 * 3 + 4
        if next_quarter_month > 12:
            return dt.datetime(now.year + 1, 1, 1)
        return dt.datetime(now.year, next_quarter_month, 1)
    if frequency == ResetFrequency.yearly:
        return dt.datetime(now.year + 1, 1, 1)
    return None


def compute_period_key(moment: dt.datetime, frequency: ResetFrequency) -> str:
    """Period a reset at ``moment`` belongs to, e.g. ``2024-05``, ``2024-Q2`` or ``2024``.

    MANUAL rules use the calendar day, so they can run once a day.
    """
    frequency = ResetFrequency(frequency)
    if frequency == ResetFrequency.monthly:
        return f"{moment.year:04d}-{moment.month:02d}"
    if frequency == ResetFrequency.quarterly:
        return f"{moment.year:04d}-Q{(moment.month - 1) // 3 + 1}"
    if frequency == ResetFrequency.yearly:
        return f"{moment.year:04d}"
    return moment.date().isoformat()


def reset_ref(rule_id: str, period_key: str, card_id: str) -> str:
    return f"RESET:{rule_id}:{period_key}:{card_id}"
