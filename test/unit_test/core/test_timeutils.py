"""Unit tests for datetime helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from waybill_ledger.core.timeutils import end_of_day, month_bounds, period_of, start_of_day, to_naive_utc, utc_now


def test_utc_now_is_naive():
    assert utc_now().tzinfo is None


def test_to_naive_utc_converts_aware_values():
    aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))
    assert to_naive_utc(aware) == datetime(2024, 5, 1, 9, 0)


def test_to_naive_utc_keeps_naive_and_none():
    naive = datetime(2024, 5, 1, 12, 0)
    assert to_naive_utc(naive) is naive
    assert to_naive_utc(None) is None


def test_day_bounds():
    assert start_of_day(date(2024, 5, 1)) == datetime(2024, 5, 1, 0, 0)
    assert end_of_day(date(2024, 5, 1)) == datetime(2024, 5, 1, 23, 59, 59, 999999)


@pytest.mark.parametrize(
    "period,start,end",
    [
        ("2024-01", datetime(2024, 1, 1), datetime(2024, 2, 1)),
        ("2024-12", datetime(2024, 12, 1), datetime(2025, 1, 1)),
    ],
)
def test_month_bounds(period, start, end):
    assert month_bounds(period) == (start, end)


def test_period_of():
    assert period_of(date(2024, 3, 9)) == "2024-03"
    assert period_of(datetime(2024, 11, 30, 23, 59)) == "2024-11"
