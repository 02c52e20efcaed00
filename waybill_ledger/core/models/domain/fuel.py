"""
Waybill fuel calculations.

Pure functions for:
- Calculating planned (normative) fuel consumption
- Calculating the fuel balance of a trip
- Validating fuel and odometer data integrity

All quantities are ``Decimal`` and rounded to two places the way fuel is
accounted on paper waybills.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
DEFAULT_BALANCE_TOLERANCE = Decimal("0.05")


def _dec(value: Optional[Number]) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FuelRates:
    """Consumption norms of a vehicle.

    Rates are liters per 100 km; increases are percentages.
    """

    summer_rate: Optional[Decimal] = None
    winter_rate: Optional[Decimal] = None
    city_increase_percent: Optional[Decimal] = None
    warming_increase_percent: Optional[Decimal] = None


@dataclass(frozen=True)
class FuelCoefficients:
    """Surcharges in decimal form (0.1 = 10%)."""

    winter: Decimal = ZERO
    city: Decimal = ZERO
    warming: Decimal = ZERO
    other: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.winter + self.city + self.warming + self.other


@dataclass(frozen=True)
class DrivingFlags:
    is_city_driving: bool = False
    is_warming: bool = False


@dataclass(frozen=True)
class RouteSegment:
    distance_km: Optional[Decimal]
    is_city_driving: bool = False
    is_warming: bool = False


@dataclass(frozen=True)
class FuelBalanceCheck:
    is_valid: bool
    expected_end: Decimal
    actual_end: Decimal
    difference: Decimal
    error: Optional[str] = None


def calculate_distance_km(odometer_start: Optional[Number], odometer_end: Optional[Number]) -> Optional[Decimal]:
    """Distance from odometer readings, or None when missing or negative."""
    start, end = _dec(odometer_start), _dec(odometer_end)
    if start is None or end is None:
        return None
    distance = end - start
    return distance if distance >= 0 else None


def calculate_norm_consumption(distance_km: Number, base_rate: Number, coefficients: FuelCoefficients) -> Decimal:
    """
    Calculate normative consumption for a distance.

    Formula: ``(distance_km / 100) * base_rate * (1 + total coefficients)``

    Args:
        distance_km: Distance in kilometers
        base_rate: Base consumption in liters per 100 km
        coefficients: Surcharges (winter, city, warming, other)

    Returns:
        Planned consumption in liters rounded to 2 places; 0 for non-positive input

    Example:
        >>> calculate_norm_consumption(100, 10, FuelCoefficients(winter=Decimal("0.1")))
        Decimal('11.00')
    """
    distance, rate = _dec(distance_km), _dec(base_rate)
    if distance is None or rate is None or distance <= 0 or rate <= 0:
        return round2(ZERO)
    return round2(distance / 100 * rate * (1 + coefficients.total))


def select_base_rate(rates: FuelRates, is_winter: bool) -> Decimal:
    """Seasonal base rate, falling back to the other season when unset."""
    if is_winter:
        rate = rates.winter_rate if rates.winter_rate is not None else rates.summer_rate
    else:
        rate = rates.summer_rate if rates.summer_rate is not None else rates.winter_rate
    return _dec(rate) or ZERO


def calculate_planned_fuel(
    distance_km: Number, rates: Optional[FuelRates], flags: DrivingFlags, is_winter: bool
) -> Decimal:
    """
    Calculate planned consumption from vehicle norms and driving conditions.

    Args:
        distance_km: Distance in kilometers
        rates: Vehicle consumption norms
        flags: City driving and engine warming flags
        is_winter: Whether the trip date falls in the winter period

    Returns:
        Planned consumption in liters
    """
    if rates is None:
        return round2(ZERO)
    base_rate = select_base_rate(rates, is_winter)
    if base_rate <= 0:
        return round2(ZERO)

    city = ZERO
    warming = ZERO
    if flags.is_city_driving and rates.city_increase_percent:
        city = _dec(rates.city_increase_percent) / 100
    if flags.is_warming and rates.warming_increase_percent:
        warming = _dec(rates.warming_increase_percent) / 100

    return calculate_norm_consumption(distance_km, base_rate, FuelCoefficients(city=city, warming=warming))


def calculate_segments_fuel(segments: Iterable[RouteSegment], rates: Optional[FuelRates], is_winter: bool) -> Decimal:
    """Planned consumption summed over route segments, each with its own flags."""
    total = ZERO
    for segment in segments:
        if not segment.distance_km:
            continue
        flags = DrivingFlags(is_city_driving=segment.is_city_driving, is_warming=segment.is_warming)
        total += calculate_planned_fuel(segment.distance_km, rates, flags, is_winter)
    return round2(total)


def calculate_fuel_end(
    fuel_start: Optional[Number], fuel_received: Optional[Number], fuel_consumed: Optional[Number]
) -> Decimal:
    """Fuel left at the end of the trip: ``start + received - consumed``."""
    start = _dec(fuel_start) or ZERO
    received = _dec(fuel_received) or ZERO
    consumed = _dec(fuel_consumed) or ZERO
    return round2(start + received - consumed)


def validate_fuel_balance(
    fuel_start: Optional[Number],
    fuel_received: Optional[Number],
    fuel_consumed: Optional[Number],
    fuel_end: Optional[Number],
    tolerance: Number = DEFAULT_BALANCE_TOLERANCE,
) -> FuelBalanceCheck:
    """Check that ``start + received - consumed`` matches ``end`` within ``tolerance``."""
    if fuel_start is None and fuel_received is None and fuel_consumed is None and fuel_end is None:
        return FuelBalanceCheck(is_valid=True, expected_end=ZERO, actual_end=ZERO, difference=ZERO)

    expected = calculate_fuel_end(fuel_start, fuel_received, fuel_consumed)
    actual = _dec(fuel_end) or ZERO
    difference = abs(expected - actual)

    if difference > _dec(tolerance):
        return FuelBalanceCheck(
            is_valid=False,
            expected_end=expected,
            actual_end=actual,
            difference=difference,
            error=f"fuel balance mismatch: expected {expected:.2f}, got {actual:.2f} (difference {difference:.2f})",
        )
    return FuelBalanceCheck(is_valid=True, expected_end=expected, actual_end=actual, difference=difference)


def validate_odometer(odometer_start: Optional[Number], odometer_end: Optional[Number]) -> Optional[str]:
    """Return an error message when the end reading is below the start reading."""
    start, end = _dec(odometer_start), _dec(odometer_end)
    if start is None or end is None:
        return None
    if end < start:
        return f"odometer end ({end}) cannot be less than odometer start ({start})"
    return None


def is_norm_exceeded(consumed: Optional[Number], planned: Optional[Number], tolerance: Number) -> bool:
    """Whether actual consumption exceeds the norm by more than ``tolerance`` (0.10 = 10%)."""
    consumed_d, planned_d = _dec(consumed) or ZERO, _dec(planned) or ZERO
    if consumed_d <= 0 or planned_d <= 0:
        return False
    return consumed_d > planned_d * (1 + _dec(tolerance))


def calculate_mixed_fuel(
    segments: Iterable[RouteSegment],
    rates: Optional[FuelRates],
    is_winter: bool,
    odometer_distance_km: Optional[Number],
) -> Decimal:
    """
    Apply the average norm of the route segments to the odometer distance.

    The average rate is the unrounded segment consumption per 100 km of
    segment distance. Without segment distance this falls back to the plain
    odometer calculation.
    """
    if rates is None:
        return round2(ZERO)
    raw_total = ZERO
    segments_km = ZERO
    for segment in segments:
        distance = _dec(segment.distance_km)
        if not distance:
            continue
        base_rate = select_base_rate(rates, is_winter)
        coefficients = ZERO
        if segment.is_city_driving and rates.city_increase_percent:
            coefficients += _dec(rates.city_increase_percent) / 100
        if segment.is_warming and rates.warming_increase_percent:
            coefficients += _dec(rates.warming_increase_percent) / 100
        raw_total += distance / 100 * base_rate * (1 + coefficients)
        segments_km += distance

    if segments_km <= 0:
        return calculate_planned_fuel(odometer_distance_km or ZERO, rates, DrivingFlags(), is_winter)

    average_rate = raw_total / (segments_km / 100)
    distance = _dec(odometer_distance_km) if odometer_distance_km is not None else segments_km
    return round2(distance / 100 * average_rate)
