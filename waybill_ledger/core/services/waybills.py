"""
Waybill service.

Creates and edits waybills, moves them through their status machine and
prefills new waybills from the history of a vehicle.

Status changes carry the side effects of the lifecycle:

- to POSTED: continuity checks, the norm check, then ledger posting
- POSTED to DRAFT: the posting is reversed through storno
- to CANCELLED: the reserved blank is released
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from waybill_ledger.core.database.base import new_id
from waybill_ledger.core.database.entities.fuel_cards import FuelCard
from waybill_ledger.core.database.entities.vehicles import Vehicle
from waybill_ledger.core.database.entities.waybills import Waybill, WaybillFuelLine, WaybillRoute
from waybill_ledger.core.database.repositories.drivers import DriverRepository
from waybill_ledger.core.database.repositories.fuel_cards import FuelCardRepository
from waybill_ledger.core.database.repositories.stock_items import StockItemRepository
from waybill_ledger.core.database.repositories.stock_movements import StockMovementRepository, to_quantity
from waybill_ledger.core.database.repositories.vehicles import VehicleRepository
from waybill_ledger.core.database.repositories.waybills import WaybillRepository
from waybill_ledger.core.errors import (
    BLANK_NOT_AVAILABLE,
    CHAIN_INTEGRITY_ERROR,
    DELETE_POSTED_FORBIDDEN,
    NORM_EXCEEDED,
    ODOMETER_CONFLICT,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
)
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import (
    AuditAction,
    AuditEntity,
    BlankAction,
    BlankSpoilReason,
    BlankStatus,
    FuelCalculationMethod,
    Permission,
    WaybillStatus,
)
from waybill_ledger.core.models.domain.fuel import (
    DrivingFlags,
    FuelRates,
    RouteSegment,
    calculate_distance_km,
    calculate_fuel_end,
    calculate_mixed_fuel,
    calculate_planned_fuel,
    calculate_segments_fuel,
    is_norm_exceeded,
    validate_odometer,
)
from waybill_ledger.core.models.domain.seasons import is_winter_date
from waybill_ledger.core.models.domain.waybill_status import ensure_transition, required_permission
from waybill_ledger.core.models.io.waybills import (
    FuelLineInput,
    PrefillRead,
    RouteInput,
    WaybillCreate,
    WaybillUpdate,
)
from waybill_ledger.core.timeutils import end_of_day, to_naive_utc, utc_now
from waybill_ledger.server.core.config import settings as env_settings

from .audit import AuditService
from .base import BaseService, transactional
from .blanks import BlankService, format_blank
from .period_locks import PeriodLockService
from .posting import PostingService
from .settings import SettingsService
from .stock_locations import StockLocationService

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

# Fields whose change invalidates the planned fuel of stored lines
_NORM_FIELDS = {
    "date",
    "vehicle_id",
    "odometer_start",
    "odometer_end",
    "fuel_calculation_method",
    "is_city_driving",
    "is_warming",
    "routes",
}


@dataclass
class WaybillDetails:
    """A waybill together with its fuel lines and routes."""

    waybill: Waybill
    fuel_lines: List[WaybillFuelLine] = field(default_factory=list)
    routes: List[WaybillRoute] = field(default_factory=list)


def _snapshot(waybill: Waybill) -> Dict[str, Any]:
    return {
        "number": waybill.number,
        "date": waybill.date,
        "status": waybill.status,
        "vehicle_id": waybill.vehicle_id,
        "driver_id": waybill.driver_id,
        "fuel_card_id": waybill.fuel_card_id,
        "odometer_start": waybill.odometer_start,
        "odometer_end": waybill.odometer_end,
        "fuel_calculation_method": waybill.fuel_calculation_method,
    }


def _segments(routes: Sequence[Any]) -> List[RouteSegment]:
    return [
        RouteSegment(
            distance_km=route.distance_km,
            is_city_driving=route.is_city_driving,
            is_warming=route.is_warming,
        )
        for route in routes
    ]


def _check_method(
    method: FuelCalculationMethod,
    routes: Sequence[Any],
    odometer_start: Optional[Decimal],
    odometer_end: Optional[Decimal],
) -> None:
    if method in (FuelCalculationMethod.segments, FuelCalculationMethod.mixed):
        if not any(route.distance_km and Decimal(str(route.distance_km)) > 0 for route in routes):
            raise BadRequestError(f"method {method.value} requires at least one route with a distance")
    if method in (FuelCalculationMethod.boiler, FuelCalculationMethod.mixed):
        if odometer_start is None or odometer_end is None:
            raise BadRequestError(f"method {method.value} requires both odometer readings")


def _build_lines(inputs: Sequence[FuelLineInput], planned: Optional[Decimal]) -> List[WaybillFuelLine]:
    """Fuel line rows; the computed norm fills the first line's plan when omitted."""
    lines = []
    for index, item in enumerate(inputs):
        fuel_planned = item.fuel_planned
        if fuel_planned is None and index == 0:
            fuel_planned = planned
        fuel_end = item.fuel_end
        if fuel_end is None and any(
            value is not None for value in (item.fuel_start, item.fuel_received, item.fuel_consumed)
        ):
            fuel_end = calculate_fuel_end(item.fuel_start, item.fuel_received, item.fuel_consumed)
        lines.append(
            WaybillFuelLine(
                stock_item_id=item.stock_item_id,
                fuel_start=item.fuel_start,
                fuel_received=item.fuel_received,
                fuel_consumed=item.fuel_consumed,
                fuel_end=fuel_end,
                fuel_planned=fuel_planned,
                source_type=item.source_type.value,
                refueled_at=to_naive_utc(item.refueled_at),
            )
        )
    return lines


def _build_routes(inputs: Sequence[RouteInput]) -> List[WaybillRoute]:
    return [
        WaybillRoute(
            from_point=item.from_point,
            to_point=item.to_point,
            distance_km=item.distance_km,
            is_city_driving=item.is_city_driving,
            is_warming=item.is_warming,
        )
        for item in inputs
    ]


class WaybillService(BaseService):
    """Waybill lifecycle operations."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.waybills = WaybillRepository(session)
        self.vehicles = VehicleRepository(session)
        self.drivers = DriverRepository(session)
        self.fuel_cards = FuelCardRepository(session)
        self.stock_items = StockItemRepository(session)
        self.movements = StockMovementRepository(session)
        self.locations = StockLocationService(session)
        self.blanks = BlankService(session)
        self.posting = PostingService(session)
        self.period_locks = PeriodLockService(session)
        self.settings = SettingsService(session)
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get(self, actor: Actor, waybill_id: str) -> Waybill:
        waybill = await self.waybills.get_scoped(actor.organization_id, waybill_id)
        if waybill is None or (actor.is_driver and waybill.driver_id != actor.driver_id):
            raise NotFoundError("waybill not found")
        return waybill

    async def _details(self, waybill: Waybill) -> WaybillDetails:
        return WaybillDetails(
            waybill=waybill,
            fuel_lines=await self.waybills.get_fuel_lines(waybill.id),
            routes=await self.waybills.get_routes(waybill.id),
        )

    async def _vehicle(self, actor: Actor, vehicle_id: str) -> Vehicle:
        vehicle = await self.vehicles.get_scoped(actor.organization_id, vehicle_id)
        if vehicle is None:
            raise NotFoundError("vehicle not found")
        return vehicle

    async def _driver(self, actor: Actor, driver_id: str) -> None:
        if actor.is_driver:
            if not actor.driver_id:
                raise BadRequestError("user is not linked to a driver record")
            if driver_id != actor.driver_id:
                raise ForbiddenError("drivers can only manage their own waybills")
        if await self.drivers.get_scoped(actor.organization_id, driver_id) is None:
            raise NotFoundError("driver not found")

    async def _fuel_card(self, actor: Actor, card_id: Optional[str], driver_id: str) -> Optional[FuelCard]:
        if card_id:
            card = await self.fuel_cards.get_scoped(actor.organization_id, card_id)
            if card is None:
                raise NotFoundError("fuel card not found")
            return card
        return await self.fuel_cards.find_active_for_driver(actor.organization_id, driver_id)

    async def _check_fuel_items(self, actor: Actor, inputs: Sequence[FuelLineInput]) -> None:
        for item in inputs:
            if await self.stock_items.get_scoped(actor.organization_id, item.stock_item_id) is None:
                raise NotFoundError(f"stock item {item.stock_item_id} not found")

    async def planned_fuel(
        self,
        actor: Actor,
        vehicle: Vehicle,
        method: FuelCalculationMethod,
        date: dt.date,
        odometer_start: Optional[Decimal],
        odometer_end: Optional[Decimal],
        routes: Sequence[Any],
        is_city_driving: bool = False,
        is_warming: bool = False,
    ) -> Optional[Decimal]:
        """Normative consumption of a trip, or None when the vehicle has no rates."""
        if vehicle.summer_rate is None and vehicle.winter_rate is None:
            return None
        rates = FuelRates(
            summer_rate=vehicle.summer_rate,
            winter_rate=vehicle.winter_rate,
            city_increase_percent=vehicle.city_increase_percent,
            warming_increase_percent=vehicle.warming_increase_percent,
        )
        season = await self.settings.get_season_settings(actor.organization_id)
        is_winter = is_winter_date(date, season)
        distance = calculate_distance_km(odometer_start, odometer_end)

        method = FuelCalculationMethod(method)
        if method == FuelCalculationMethod.segments:
            return calculate_segments_fuel(_segments(routes), rates, is_winter)
        if method == FuelCalculationMethod.mixed:
            return calculate_mixed_fuel(_segments(routes), rates, is_winter, distance)
        return calculate_planned_fuel(
            distance or Decimal("0"),
            rates,
            DrivingFlags(is_city_driving=is_city_driving, is_warming=is_warming),
            is_winter,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_waybill(self, actor: Actor, waybill_id: str) -> WaybillDetails:
        return await self._details(await self._get(actor, waybill_id))

    async def list_waybills(
        self,
        actor: Actor,
        status: Optional[WaybillStatus] = None,
        vehicle_id: Optional[str] = None,
        driver_id: Optional[str] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[WaybillDetails], int]:
        if actor.is_driver:
            driver_id = actor.driver_id or ""
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        waybills, total = await self.waybills.list_page(
            actor.organization_id,
            limit=page_size,
            offset=(page - 1) * page_size,
            filters={
                "status": status.value if status else None,
                "vehicle_id": vehicle_id,
                "driver_id": driver_id,
            },
            date_from=date_from,
            date_to=date_to,
        )
        return [await self._details(waybill) for waybill in waybills], total

    async def prefill(self, actor: Actor, vehicle_id: str, on_date: Optional[dt.date] = None) -> PrefillRead:
        """Starting values for the next waybill of a vehicle.

        The starting fuel is the ``fuel_end`` of the last waybill's line for
        the vehicle's fuel, then the tank balance, then the vehicle card.
        """
        vehicle = await self._vehicle(actor, vehicle_id)
        last = await self.waybills.last_for_vehicle(actor.organization_id, vehicle_id, on_date)

        tank_balance = None
        if vehicle.fuel_stock_item_id:
            tank = await self.locations.repository.get_by_vehicle(vehicle.id)
            if tank is not None:
                as_of = end_of_day(on_date) if on_date else utc_now()
                tank_balance = await self.movements.get_balance(tank.id, vehicle.fuel_stock_item_id, as_of)

        driver_id = vehicle.assigned_driver_id
        odometer_start = vehicle.mileage
        fuel_start = vehicle.current_fuel
        if last is not None:
            driver_id = last.driver_id or driver_id
            if last.odometer_end is not None:
                odometer_start = last.odometer_end
            lines = await self.waybills.get_fuel_lines(last.id)
            if vehicle.fuel_stock_item_id:
                line = next((item for item in lines if item.stock_item_id == vehicle.fuel_stock_item_id), None)
            else:
                line = lines[0] if lines else None
            if line is not None and line.fuel_end is not None:
                fuel_start = line.fuel_end
            elif tank_balance is not None:
                fuel_start = tank_balance

        return PrefillRead(
            vehicle_id=vehicle.id,
            driver_id=driver_id,
            odometer_start=odometer_start,
            fuel_start=to_quantity(fuel_start) if fuel_start is not None else None,
            fuel_stock_item_id=vehicle.fuel_stock_item_id,
            tank_balance=tank_balance,
            last_waybill_id=last.id if last else None,
            last_waybill_number=last.number if last else None,
            last_waybill_date=last.date if last else None,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _check_trip(
        odometer_start: Optional[Decimal],
        odometer_end: Optional[Decimal],
        valid_from: Optional[dt.datetime],
        valid_to: Optional[dt.datetime],
    ) -> None:
        error = validate_odometer(odometer_start, odometer_end)
        if error:
            raise BadRequestError(error)
        if valid_from and valid_to and valid_to < valid_from:
            raise BadRequestError("valid_to cannot be earlier than valid_from")

    @transactional
    async def create_waybill(self, actor: Actor, data: WaybillCreate) -> WaybillDetails:
        """
        Create a DRAFT waybill and reserve a blank for it.

        The waybill number is the formatted blank. ``data.number`` is used
        only when no blank is free.
        """
        org_id = actor.organization_id
        await self.period_locks.ensure_unlocked(org_id, data.date, "create waybills")
        valid_from, valid_to = to_naive_utc(data.valid_from), to_naive_utc(data.valid_to)
        self._check_trip(data.odometer_start, data.odometer_end, valid_from, valid_to)

        vehicle = await self._vehicle(actor, data.vehicle_id)
        await self._driver(actor, data.driver_id)
        card = await self._fuel_card(actor, data.fuel_card_id, data.driver_id)
        await self._check_fuel_items(actor, data.fuel_lines)
        _check_method(data.fuel_calculation_method, data.routes, data.odometer_start, data.odometer_end)

        waybill_id = new_id()
        blank = await self.blanks.reserve_for_waybill(actor, data.driver_id, waybill_id, data.blank_id)
        if blank is not None:
            number = format_blank(blank.series, blank.number)
        elif data.number:
            number = data.number
        else:
            raise BadRequestError("no free blank to number the waybill", code=BLANK_NOT_AVAILABLE)

        waybill = await self.waybills.create(
            Waybill(
                id=waybill_id,
                organization_id=org_id,
                number=number,
                date=data.date,
                status=WaybillStatus.draft.value,
                vehicle_id=vehicle.id,
                driver_id=data.driver_id,
                fuel_card_id=card.id if card else None,
                blank_id=blank.id if blank else None,
                valid_from=valid_from,
                valid_to=valid_to,
                odometer_start=data.odometer_start,
                odometer_end=data.odometer_end,
                fuel_calculation_method=data.fuel_calculation_method.value,
                is_city_driving=data.is_city_driving,
                is_warming=data.is_warming,
                notes=data.notes,
                created_by_user_id=actor.user_id,
            )
        )

        planned = await self.planned_fuel(
            actor,
            vehicle,
            data.fuel_calculation_method,
            data.date,
            data.odometer_start,
            data.odometer_end,
            data.routes,
            data.is_city_driving,
            data.is_warming,
        )
        fuel_lines = await self.waybills.replace_fuel_lines(waybill.id, _build_lines(data.fuel_lines, planned))
        routes = await self.waybills.replace_routes(waybill.id, _build_routes(data.routes))

        await self.audit.record(
            actor, AuditAction.create, AuditEntity.waybill, waybill.id, f"waybill {number} created",
            new_value=_snapshot(waybill),
        )
        logger.info(f"Created waybill {number} ({waybill.id}) for vehicle {vehicle.registration_number}")
        return WaybillDetails(waybill=waybill, fuel_lines=fuel_lines, routes=routes)

    @transactional
    async def update_waybill(self, actor: Actor, waybill_id: str, data: WaybillUpdate) -> WaybillDetails:
        """Edit a DRAFT or SUBMITTED waybill. Lines and routes are replaced when given."""
        waybill = await self._get(actor, waybill_id)
        if waybill.status in (WaybillStatus.posted.value, WaybillStatus.cancelled.value):
            raise BadRequestError(f"a {waybill.status} waybill cannot be edited")

        org_id = actor.organization_id
        changes = data.model_dump(exclude_unset=True)
        before = _snapshot(waybill)
        await self.period_locks.ensure_unlocked(org_id, waybill.date, "edit waybills")
        if changes.get("date") and changes["date"] != waybill.date:
            await self.period_locks.ensure_unlocked(org_id, changes["date"], "move waybills")

        if changes.get("driver_id"):
            await self._driver(actor, changes["driver_id"])
        if changes.get("vehicle_id"):
            await self._vehicle(actor, changes["vehicle_id"])
        if changes.get("fuel_card_id"):
            await self._fuel_card(actor, changes["fuel_card_id"], changes.get("driver_id") or waybill.driver_id)
        if data.fuel_lines is not None:
            await self._check_fuel_items(actor, data.fuel_lines)

        for name in (
            "date",
            "vehicle_id",
            "driver_id",
            "fuel_card_id",
            "odometer_start",
            "odometer_end",
            "is_city_driving",
            "is_warming",
            "notes",
        ):
            if name in changes and (changes[name] is not None or name in ("fuel_card_id", "notes")):
                setattr(waybill, name, changes[name])
        if "valid_from" in changes:
            waybill.valid_from = to_naive_utc(data.valid_from)
        if "valid_to" in changes:
            waybill.valid_to = to_naive_utc(data.valid_to)
        if data.fuel_calculation_method is not None:
            waybill.fuel_calculation_method = data.fuel_calculation_method.value

        self._check_trip(waybill.odometer_start, waybill.odometer_end, waybill.valid_from, waybill.valid_to)
        routes = (
            _build_routes(data.routes) if data.routes is not None else await self.waybills.get_routes(waybill.id)
        )
        method = FuelCalculationMethod(waybill.fuel_calculation_method)
        _check_method(method, routes, waybill.odometer_start, waybill.odometer_end)

        vehicle = await self._vehicle(actor, waybill.vehicle_id)
        planned = await self.planned_fuel(
            actor,
            vehicle,
            method,
            waybill.date,
            waybill.odometer_start,
            waybill.odometer_end,
            routes,
            waybill.is_city_driving,
            waybill.is_warming,
        )

        await self.waybills.update(waybill)
        if data.routes is not None:
            routes = await self.waybills.replace_routes(waybill.id, routes)
        if data.fuel_lines is not None:
            fuel_lines = await self.waybills.replace_fuel_lines(waybill.id, _build_lines(data.fuel_lines, planned))
        else:
            fuel_lines = await self.waybills.get_fuel_lines(waybill.id)
            if fuel_lines and _NORM_FIELDS & changes.keys():
                fuel_lines[0].fuel_planned = planned
                self.session.add(fuel_lines[0])
                await self.session.flush()

        await self.audit.record(
            actor, AuditAction.update, AuditEntity.waybill, waybill.id, f"waybill {waybill.number} updated",
            old_value=before, new_value=_snapshot(waybill),
        )
        return WaybillDetails(waybill=waybill, fuel_lines=fuel_lines, routes=routes)

    @transactional
    async def delete_waybill(
        self, actor: Actor, waybill_id: str, blank_action: BlankAction = BlankAction.release
    ) -> None:
        """
        Delete a waybill and release or spoil its blank.

        POSTED waybills can be deleted only when the organization allows it;
        their posting is reversed first.
        """
        waybill = await self._get(actor, waybill_id)
        await self.period_locks.ensure_unlocked(actor.organization_id, waybill.date, "delete waybills")

        if waybill.status == WaybillStatus.posted.value:
            app_settings = await self.settings.get_app_settings(actor.organization_id)
            if not app_settings.allow_delete_posted_waybills:
                raise BadRequestError(
                    "a POSTED waybill cannot be deleted, return it to draft first",
                    code=DELETE_POSTED_FORBIDDEN,
                )
            fuel_lines = await self.waybills.get_fuel_lines(waybill.id)
            await self.posting.cancel_posting(actor, waybill, fuel_lines, f"waybill {waybill.number} deleted")

        if waybill.blank_id:
            blank = await self.blanks.blanks.get_by_id(waybill.blank_id)
            if blank is not None and blank.status == BlankStatus.reserved.value:
                if BlankAction(blank_action) == BlankAction.spoil:
                    await self.blanks.spoil_blank(
                        actor, blank, BlankSpoilReason.other, f"waybill {waybill.number} deleted"
                    )
                else:
                    await self.blanks.release_reservation(blank)

        before = _snapshot(waybill)
        await self.waybills.delete_with_children(waybill)
        await self.audit.record(
            actor, AuditAction.delete, AuditEntity.waybill, waybill_id, f"waybill {before['number']} deleted",
            old_value=before,
        )
        logger.info(f"Deleted waybill {before['number']} ({waybill_id})")

    async def _check_posting_rules(self, actor: Actor, waybill: Waybill, fuel_lines: Sequence[WaybillFuelLine]) -> None:
        org_id = actor.organization_id
        last_posted = await self.waybills.last_posted_for_vehicle(org_id, waybill.vehicle_id, exclude_id=waybill.id)
        if last_posted is not None:
            start = to_quantity(waybill.odometer_start)
            last_end = to_quantity(last_posted.odometer_end)
            if start < last_end:
                raise BadRequestError(
                    f"odometer conflict: start {start:.1f} is below the end {last_end:.1f} "
                    f"of posted waybill {last_posted.number}",
                    code=ODOMETER_CONFLICT,
                )

        earlier = await self.waybills.unposted_before(org_id, waybill.vehicle_id, waybill.date, exclude_id=waybill.id)
        if earlier:
            numbers = ", ".join(f"{item.number} ({item.date.isoformat()})" for item in earlier)
            raise BadRequestError(
                f"post or delete earlier waybills of this vehicle first: {numbers}", code=CHAIN_INTEGRITY_ERROR
            )

        tolerance = env_settings.norm_excess_tolerance
        exceeded = [
            line for line in fuel_lines if is_norm_exceeded(line.fuel_consumed, line.fuel_planned, tolerance)
        ]
        if not exceeded:
            return
        if not actor.has_permission(Permission.waybill_override_norm):
            logger.warning(f"Waybill {waybill.number} exceeds the fuel norm without override permission")
            raise BadRequestError(
                f"fuel consumption exceeds the norm by more than {tolerance * 100:.0f}%, "
                f"permission '{Permission.waybill_override_norm.value}' required",
                code=NORM_EXCEEDED,
            )
        await self.audit.record(
            actor,
            AuditAction.status_change,
            AuditEntity.waybill,
            waybill.id,
            f"fuel norm exceeded on waybill {waybill.number}",
            old_value={"fuel_lines": [{"planned": line.fuel_planned} for line in exceeded]},
            new_value={"fuel_lines": [{"consumed": line.fuel_consumed} for line in exceeded]},
        )

    @transactional
    async def change_status(
        self, actor: Actor, waybill_id: str, status: WaybillStatus, reason: Optional[str] = None
    ) -> WaybillDetails:
        """
        Move a waybill to ``status`` and apply the side effects of the transition.

        Raises:
            BadRequestError: Invalid transition, closed period or a failed posting rule
            ForbiddenError: The actor lacks the permission for the transition
        """
        waybill = await self._get(actor, waybill_id)
        current, target = WaybillStatus(waybill.status), WaybillStatus(status)
        ensure_transition(current, target)
        actor.require(required_permission(current, target))
        await self.period_locks.ensure_unlocked(actor.organization_id, waybill.date, "change waybill status")

        fuel_lines = await self.waybills.get_fuel_lines(waybill.id)

        if target == WaybillStatus.posted:
            await self._check_posting_rules(actor, waybill, fuel_lines)
            if not waybill.fuel_card_id:
                card = await self.fuel_cards.find_active_for_driver(actor.organization_id, waybill.driver_id)
                if card is not None:
                    waybill.fuel_card_id = card.id
                    logger.info(f"Assigned fuel card {card.card_number} to waybill {waybill.number} before posting")
            await self.posting.post_waybill(actor, waybill, fuel_lines)
            waybill.completed_by_user_id = actor.user_id
        elif current == WaybillStatus.posted:
            await self.posting.cancel_posting(actor, waybill, fuel_lines, reason)
        elif target == WaybillStatus.submitted:
            waybill.approved_by_user_id = actor.user_id
        elif target == WaybillStatus.cancelled and waybill.blank_id:
            blank = await self.blanks.blanks.get_by_id(waybill.blank_id)
            if blank is not None and blank.status == BlankStatus.reserved.value:
                await self.blanks.release_reservation(blank)

        waybill.status = target.value
        await self.waybills.update(waybill)
        await self.audit.record(
            actor,
            AuditAction.status_change,
            AuditEntity.waybill,
            waybill.id,
            f"waybill {waybill.number}: {current.value} -> {target.value}",
            old_value={"status": current.value},
            new_value={"status": target.value, "reason": reason} if reason else {"status": target.value},
        )
        logger.info(f"Waybill {waybill.number} moved from {current.value} to {target.value}")
        return WaybillDetails(waybill=waybill, fuel_lines=fuel_lines, routes=await self.waybills.get_routes(waybill.id))
