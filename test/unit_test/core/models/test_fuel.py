"""Unit tests for the waybill fuel calculations."""

from decimal import Decimal

import pytest

from waybill_ledger.core.models.domain.fuel import (
    DrivingFlags,
    FuelCoefficients,
    FuelRates,
    RouteSegment,
    calculate_distance_km,
    calculate_fuel_end,
    calculate_mixed_fuel,
    calculate_norm_consumption,
    calculate_planned_fuel,
    calculate_segments_fuel,
    is_norm_exceeded,
    select_base_rate,
    validate_fuel_balance,
    validate_odometer,
)

RATES = FuelRates(
    summer_rate=Decimal("10"),
    winter_rate=Decimal("12"),
    city_increase_percent=Decimal("10"),
    warming_increase_percent=Decimal("5"),
)


class TestDistance:
    def test_distance_from_odometer(self):
        assert calculate_distance_km(Decimal("1000"), Decimal("1150.5")) == Decimal("150.5")

    @pytest.mark.parametrize("start,end", [(None, 10), (10, None), (200, 100)])
    def test_distance_is_none_when_missing_or_negative(self, start, end):
        assert calculate_distance_km(start, end) is None


class TestNormConsumption:
    def test_basic_formula(self):
        assert calculate_norm_consumption(100, 10, FuelCoefficients()) == Decimal("10.00")

    def test_coefficients_are_summed(self):
        coefficients = FuelCoefficients(winter=Decimal("0.1"), city=Decimal("0.05"))
        assert calculate_norm_consumption(200, 10, coefficients) == Decimal("23.00")

    def test_rounds_half_up_to_two_places(self):
        # 33.333 km at 10 l/100km is 3.3333 l
        assert calculate_norm_consumption(Decimal("33.333"), 10, FuelCoefficients()) == Decimal("3.33")
        assert calculate_norm_consumption(Decimal("0.05"), 10, FuelCoefficients()) == Decimal("0.01")

    @pytest.mark.parametrize("distance,rate", [(0, 10), (-5, 10), (100, 0), (None, 10)])
    def test_non_positive_input_gives_zero(self, distance, rate):
        assert calculate_norm_consumption(distance, rate, FuelCoefficients()) == Decimal("0.00")


class TestPlannedFuel:
    def test_summer_rate(self):
        assert select_base_rate(RATES, is_winter=False) == Decimal("10")
        assert calculate_planned_fuel(150, RATES, DrivingFlags(), is_winter=False) == Decimal("15.00")

    def test_winter_rate(self):
        assert calculate_planned_fuel(150, RATES, DrivingFlags(), is_winter=True) == Decimal("18.00")

    def test_city_and_warming_increase(self):
        flags = DrivingFlags(is_city_driving=True, is_warming=True)
        # 100 km * 10 l/100km * (1 + 0.10 + 0.05)
        assert calculate_planned_fuel(100, RATES, flags, is_winter=False) == Decimal("11.50")

    def test_missing_rates_give_zero(self):
        assert calculate_planned_fuel(100, None, DrivingFlags(), is_winter=False) == Decimal("0.00")

    def test_segments_use_their_own_flags(self):
        segments = [
            RouteSegment(distance_km=Decimal("100")),
            RouteSegment(distance_km=Decimal("50"), is_city_driving=True),
            RouteSegment(distance_km=None),
        ]
        # 10.00 + 5.50
        assert calculate_segments_fuel(segments, RATES, is_winter=False) == Decimal("15.50")


class TestMixedFuel:
    def test_average_segment_norm_applied_to_odometer_distance(self):
        segments = [
            RouteSegment(distance_km=Decimal("50")),
            RouteSegment(distance_km=Decimal("50"), is_city_driving=True),
        ]
        # Average rate 10.5 l/100km over 200 km of odometer distance
        assert calculate_mixed_fuel(segments, RATES, False, Decimal("200")) == Decimal("21.00")

    def test_falls_back_to_odometer_without_segment_distance(self):
        segments = [RouteSegment(distance_km=None)]
        assert calculate_mixed_fuel(segments, RATES, False, Decimal("100")) == Decimal("10.00")


class TestFuelBalance:
    def test_fuel_end(self):
        assert calculate_fuel_end(Decimal("20"), Decimal("30"), Decimal("15.5")) == Decimal("34.50")
        assert calculate_fuel_end(None, None, None) == Decimal("0.00")

    def test_balance_within_tolerance(self):
        check = validate_fuel_balance(20, 30, 15, Decimal("35.04"))
        assert check.is_valid
        assert check.error is None

    def test_balance_mismatch(self):
        check = validate_fuel_balance(20, 30, 15, 30)
        assert not check.is_valid
        assert check.expected_end == Decimal("35.00")
        assert check.difference == Decimal("5.00")
        assert "mismatch" in check.error

    def test_empty_balance_is_valid(self):
        assert validate_fuel_balance(None, None, None, None).is_valid


class TestValidation:
    def test_odometer_end_below_start(self):
        assert "cannot be less" in validate_odometer(100, 90)

    def test_odometer_ok(self):
        assert validate_odometer(100, 100) is None
        assert validate_odometer(None, 90) is None

    def test_norm_exceeded(self):
        assert is_norm_exceeded(Decimal("11.1"), Decimal("10"), Decimal("0.10"))
        assert not is_norm_exceeded(Decimal("11"), Decimal("10"), Decimal("0.10"))

    @pytest.mark.parametrize("consumed,planned", [(None, 10), (5, None), (0, 10), (20, 0)])
    def test_norm_not_checked_without_values(self, consumed, planned):
        assert not is_norm_exceeded(consumed, planned, Decimal("0.10"))
