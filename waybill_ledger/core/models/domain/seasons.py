"""
Season detection for fuel norms.

Winter rates apply inside the winter period. The period is either recurring
(the same day/month boundaries every year) or manual (absolute dates).
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class RecurringSeasonSettings(BaseModel):
    """Winter starts on ``winter_day/winter_month`` and ends when summer starts."""

    type: Literal["recurring"] = "recurring"
    summer_day: int = Field(default=1, ge=1, le=31)
    summer_month: int = Field(default=4, ge=1, le=12)
    winter_day: int = Field(default=1, ge=1, le=31)
    winter_month: int = Field(default=11, ge=1, le=12)

    @model_validator(mode="after")
    def _check_dates(self) -> "RecurringSeasonSettings":
        # Validate against a leap year so Feb 29 is accepted
        dt.date(2000, self.summer_month, self.summer_day)
        dt.date(2000, self.winter_month, self.winter_day)
        return self


class ManualSeasonSettings(BaseModel):
    """Winter is the closed interval between two absolute dates."""

    type: Literal["manual"] = "manual"
    winter_start_date: dt.date
    winter_end_date: dt.date


SeasonSettings = Annotated[Union[RecurringSeasonSettings, ManualSeasonSettings], Field(discriminator="type")]

DEFAULT_SEASON_SETTINGS = RecurringSeasonSettings()


def _boundary(year: int, month: int, day: int) -> dt.date:
    # Feb 29 boundaries fall back to Feb 28 outside leap years
    try:
        return dt.date(year, month, day)
    except ValueError:
        return dt.date(year, month, day - 1)


def is_winter_date(value: Optional[dt.date], settings: Optional[SeasonSettings]) -> bool:
    """
    Determine whether a date falls within the winter period.

    Args:
        value: Date to test (a datetime is reduced to its date)
        settings: Season settings; None means no winter period

    Returns:
        True when the date is in winter
    """
    if value is None or settings is None:
        return False
    if isinstance(value, dt.datetime):
        value = value.date()

    if isinstance(settings, ManualSeasonSettings):
        start, end = settings.winter_start_date, settings.winter_end_date
        if start <= end:
            return start <= value <= end
        return value >= start or value <= end

    summer_start = _boundary(value.year, settings.summer_month, settings.summer_day)
    winter_start = _boundary(value.year, settings.winter_month, settings.winter_day)
    if summer_start < winter_start:
        # Winter wraps the new year: before summer or from winter start on
        return value < summer_start or value >= winter_start
    return winter_start <= value < summer_start
