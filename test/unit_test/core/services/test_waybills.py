"""Unit tests for the waybill lifecycle and its ledger posting."""

import datetime as dt
from decimal import Decimal

import pytest
import pytest_asyncio

from waybill_ledger.core.database.entities.blanks import Blank
from waybill_ledger.core.database.entities.drivers import Driver
from waybill_ledger.core.database.entities.period_locks import PeriodLock
from waybill_ledger.core.database.entities.stock import StockItem
from waybill_ledger.core.database.entities.vehicles import Vehicle
from waybill_ledger.core.database.entities.waybills import Waybill, WaybillFuelLine
from waybill_ledger.core.errors import (
    BLANK_NOT_AVAILABLE,
    CHAIN_INTEGRITY_ERROR,
    DELETE_POSTED_FORBIDDEN,
    INSUFFICIENT_TANK_FUEL,
    INVALID_TRANSITION,
    NORM_EXCEEDED,
    ODOMETER_CONFLICT,
    PERIOD_LOCKED,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
)
from waybill_ledger.core.models.domain.enums import (
    AuditEntity,
    BlankAction,
    BlankStatus,
    FuelCalculationMethod,
    StockDocumentType,
    StockMovementType,
    UserRole,
    WaybillStatus,
)
from waybill_ledger.core.models.io.blanks import BlankBatchCreate
from waybill_ledger.core.models.io.settings import AppSettingsUpdate
from waybill_ledger.core.models.io.stock import FuelCardTopup, StockMovementCreate
from waybill_ledger.core.models.io.waybills import FuelLineInput, RouteInput, WaybillCreate, WaybillUpdate
from waybill_ledger.core.services.audit import AuditService
from waybill_ledger.core.services.blanks import BlankService
from waybill_ledger.core.services.posting import effective_consumption
from waybill_ledger.core.services.settings import SettingsService
from waybill_ledger.core.services.stock_ledger import StockLedgerService
from waybill_ledger.core.services.waybills import WaybillService

JUNE_10 = dt.date(2024, 6, 10)


@pytest.fixture
def service(session) -> WaybillService:
    return WaybillService(session)


@pytest_asyncio.fixture
async def card_with_fuel(session, seed):
    """100 l of diesel in the warehouse, 60 l of it moved onto the driver's card."""
    ledger = StockLedgerService(session)
    await ledger.create_movement(
        seed.admin,
        StockMovementCreate(
            movement_type=StockMovementType.income,
            stock_item_id=seed.fuel_id,
            quantity=Decimal("100"),
            stock_location_id=seed.warehouse_id,
            occurred_at=dt.datetime(2024, 6, 1),
        ),
    )
    await ledger.fuel_card_topup(
        seed.admin,
        seed.card_id,
        FuelCardTopup(stock_item_id=seed.fuel_id, quantity=Decimal("60"), occurred_at=dt.datetime(2024, 6, 1)),
    )


def _payload(seed, **overrides) -> WaybillCreate:
    data = dict(
        date=JUNE_10,
        vehicle_id=seed.vehicle_id,
        driver_id=seed.driver_id,
        number="WB-1",
        odometer_start=Decimal("1000"),
        odometer_end=Decimal("1100"),
        fuel_lines=[
            FuelLineInput(
                stock_item_id=seed.fuel_id,
                fuel_start=Decimal("0"),
                fuel_received=Decimal("40"),
                fuel_consumed=Decimal("10"),
            )
        ],
    )
    data.update(overrides)
    return WaybillCreate(**data)


async def _waybill_movements(session, seed, waybill_id, include_void=True):
    items, _ = await StockLedgerService(session).list_movements(
        seed.admin,
        document_type=StockDocumentType.waybill.value,
        document_id=waybill_id,
        include_void=include_void,
    )
    return items


class TestCreate:
    async def test_draft_with_computed_plan(self, service, seed):
        details = await service.create_waybill(seed.admin, _payload(seed))

        waybill = details.waybill
        assert waybill.status == WaybillStatus.draft.value
        assert waybill.number == "WB-1"
        assert waybill.fuel_card_id == seed.card_id
        assert waybill.created_by_user_id == seed.admin_id
        line = details.fuel_lines[0]
        assert line.fuel_planned == Decimal("10.00")
        assert line.fuel_end == Decimal("30.00")

    async def test_winter_city_and_warming_plan(self, service, seed):
        details = await service.create_waybill(
            seed.admin, _payload(seed, date=dt.date(2024, 1, 15), is_city_driving=True, is_warming=True)
        )
        # 100 km at the winter rate of 12 l with +10% city and +5% warming
        assert details.fuel_lines[0].fuel_planned == Decimal("13.80")

    async def test_segments_plan(self, service, seed):
        details = await service.create_waybill(
            seed.admin,
            _payload(
                seed,
                fuel_calculation_method=FuelCalculationMethod.segments,
                routes=[
                    RouteInput(from_point="Depot", to_point="Port", distance_km=Decimal("50")),
                    RouteInput(from_point="Port", to_point="Depot", distance_km=Decimal("50"), is_city_driving=True),
                ],
            ),
        )
        assert details.fuel_lines[0].fuel_planned == Decimal("10.50")
        assert [route.sequence for route in details.routes] == [0, 1]

    async def test_segments_need_a_route(self, service, seed):
        with pytest.raises(BadRequestError, match="requires at least one route"):
            await service.create_waybill(
                seed.admin, _payload(seed, fuel_calculation_method=FuelCalculationMethod.segments)
            )

    async def test_boiler_needs_odometer(self, service, seed):
        with pytest.raises(BadRequestError, match="odometer"):
            await service.create_waybill(seed.admin, _payload(seed, odometer_end=None))

    async def test_odometer_must_not_decrease(self, service, seed):
        with pytest.raises(BadRequestError, match="cannot be less"):
            await service.create_waybill(seed.admin, _payload(seed, odometer_end=Decimal("900")))

    async def test_explicit_plan_is_kept(self, service, seed):
        lines = [FuelLineInput(stock_item_id=seed.fuel_id, fuel_consumed=Decimal("9"), fuel_planned=Decimal("15"))]
        details = await service.create_waybill(seed.admin, _payload(seed, fuel_lines=lines))
        assert details.fuel_lines[0].fuel_planned == Decimal("15")

    async def test_vehicle_without_rates_has_no_plan(self, service, seed, session):
        vehicle = await session.get(Vehicle, seed.vehicle_id)
        vehicle.summer_rate = None
        vehicle.winter_rate = None
        await session.commit()

        details = await service.create_waybill(seed.admin, _payload(seed))
        assert details.fuel_lines[0].fuel_planned is None

    async def test_number_taken_from_reserved_blank(self, service, seed, session):
        blanks = BlankService(session)
        batch = await blanks.create_batch(seed.admin, BlankBatchCreate(series="AB", number_from=41, number_to=43))
        await blanks.materialize_batch(seed.admin, batch.id)

        details = await service.create_waybill(seed.admin, _payload(seed))

        assert details.waybill.number == "AB 000041"
        blank = await session.get(Blank, details.waybill.blank_id)
        assert blank.status == BlankStatus.reserved.value
        assert blank.reserved_by_waybill_id == details.waybill.id

    async def test_no_blank_and_no_number(self, service, seed):
        with pytest.raises(BadRequestError) as exc_info:
            await service.create_waybill(seed.admin, _payload(seed, number=None))
        assert exc_info.value.code == BLANK_NOT_AVAILABLE

    async def test_closed_period(self, service, seed, session):
        session.add(PeriodLock(organization_id=seed.organization_id, period="2024-06", data_hash="x"))
        await session.commit()

        with pytest.raises(BadRequestError) as exc_info:
            await service.create_waybill(seed.admin, _payload(seed))
        assert exc_info.value.code == PERIOD_LOCKED

    async def test_driver_creates_only_own_waybills(self, service, seed, session):
        other = Driver(organization_id=seed.organization_id, full_name="Olga Sidorova")
        session.add(other)
        await session.commit()
        driver_actor = seed.actor(UserRole.driver, driver_id=seed.driver_id)

        with pytest.raises(ForbiddenError):
            await service.create_waybill(driver_actor, _payload(seed, driver_id=other.id))

        details = await service.create_waybill(driver_actor, _payload(seed))
        assert details.waybill.driver_id == seed.driver_id

    async def test_unknown_references(self, service, seed):
        with pytest.raises(NotFoundError, match="vehicle"):
            await service.create_waybill(seed.admin, _payload(seed, vehicle_id="missing"))
        with pytest.raises(NotFoundError, match="stock item"):
            await service.create_waybill(
                seed.admin, _payload(seed, fuel_lines=[FuelLineInput(stock_item_id="missing")])
            )


class TestUpdate:
    async def test_norm_change_recomputes_plan(self, service, seed):
        lines = [FuelLineInput(stock_item_id=seed.fuel_id, fuel_consumed=Decimal("9"), fuel_planned=Decimal("15"))]
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed, fuel_lines=lines))).waybill.id

        details = await service.update_waybill(seed.admin, waybill_id, WaybillUpdate(notes="morning shift"))
        assert details.fuel_lines[0].fuel_planned == Decimal("15")
        assert details.waybill.notes == "morning shift"

        details = await service.update_waybill(seed.admin, waybill_id, WaybillUpdate(odometer_end=Decimal("1200")))
        assert details.fuel_lines[0].fuel_planned == Decimal("20.00")

    async def test_lines_replaced(self, service, seed):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        lines = [
            FuelLineInput(stock_item_id=seed.fuel_id, fuel_consumed=Decimal("5")),
            FuelLineInput(stock_item_id=seed.fuel_id, fuel_consumed=Decimal("4")),
        ]

        details = await service.update_waybill(seed.admin, waybill_id, WaybillUpdate(fuel_lines=lines))

        assert [line.line_index for line in details.fuel_lines] == [0, 1]
        assert details.fuel_lines[0].fuel_planned == Decimal("10.00")
        assert details.fuel_lines[1].fuel_planned is None

    async def test_posted_waybill_is_read_only(self, service, seed, card_with_fuel):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        with pytest.raises(BadRequestError, match="cannot be edited"):
            await service.update_waybill(seed.admin, waybill_id, WaybillUpdate(notes="late edit"))


class TestPosting:
    async def test_post_writes_ledger_and_syncs_vehicle(self, service, seed, session, card_with_fuel):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id

        details = await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        assert details.waybill.status == WaybillStatus.posted.value
        assert details.waybill.completed_by_user_id == seed.admin_id
        movements = await _waybill_movements(session, seed, waybill_id)
        by_ref = {movement.external_ref: movement for movement in movements}
        assert set(by_ref) == {f"WB:REFUEL:{waybill_id}:0", f"WB:EXPENSE:{waybill_id}:0"}
        assert by_ref[f"WB:REFUEL:{waybill_id}:0"].quantity == Decimal("40.000")
        assert by_ref[f"WB:EXPENSE:{waybill_id}:0"].quantity == Decimal("10.000")

        vehicle = await session.get(Vehicle, seed.vehicle_id)
        assert vehicle.mileage == Decimal("1100")
        assert vehicle.current_fuel == Decimal("30")

    async def test_blank_used_on_post(self, service, seed, session, card_with_fuel):
        blanks = BlankService(session)
        batch = await blanks.create_batch(seed.admin, BlankBatchCreate(series="AB", number_from=1, number_to=1))
        await blanks.materialize_batch(seed.admin, batch.id)
        details = await service.create_waybill(seed.admin, _payload(seed))

        await service.change_status(seed.admin, details.waybill.id, WaybillStatus.posted)

        blank = await session.get(Blank, details.waybill.blank_id)
        assert blank.status == BlankStatus.used.value
        assert blank.used_in_waybill_id == details.waybill.id

    async def test_insufficient_tank_fuel(self, service, seed, session):
        lines = [FuelLineInput(stock_item_id=seed.fuel_id, fuel_consumed=Decimal("10"))]
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed, fuel_lines=lines))).waybill.id

        with pytest.raises(BadRequestError) as exc_info:
            await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)
        assert exc_info.value.code == INSUFFICIENT_TANK_FUEL

        waybill = await session.get(Waybill, waybill_id)
        assert waybill.status == WaybillStatus.draft.value

    async def test_received_fuel_counts_towards_tank(self, service, seed, session):
        lines = [
            FuelLineInput(
                stock_item_id=seed.fuel_id,
                fuel_start=Decimal("10"),
                fuel_received=Decimal("20"),
                fuel_consumed=Decimal("30"),
                fuel_planned=Decimal("30"),
            )
        ]
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed, fuel_lines=lines))).waybill.id

        details = await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        assert details.waybill.status == WaybillStatus.posted.value
        movements = await _waybill_movements(session, seed, waybill_id)
        by_ref = {movement.external_ref: movement for movement in movements}
        assert by_ref[f"WB:EXPENSE:{waybill_id}:0"].quantity == Decimal("30.000")

    async def test_odometer_conflict(self, service, seed, card_with_fuel):
        first = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, first, WaybillStatus.posted)
        second = (
            await service.create_waybill(
                seed.admin,
                _payload(
                    seed,
                    number="WB-2",
                    date=dt.date(2024, 6, 11),
                    odometer_start=Decimal("1050"),
                    odometer_end=Decimal("1150"),
                    fuel_lines=[FuelLineInput(stock_item_id=seed.fuel_id, fuel_consumed=Decimal("5"))],
                ),
            )
        ).waybill.id

        with pytest.raises(BadRequestError) as exc_info:
            await service.change_status(seed.admin, second, WaybillStatus.posted)
        assert exc_info.value.code == ODOMETER_CONFLICT

    async def test_earlier_waybills_must_be_posted_first(self, service, seed, card_with_fuel):
        await service.create_waybill(seed.admin, _payload(seed))
        later = (
            await service.create_waybill(
                seed.admin,
                _payload(
                    seed,
                    number="WB-2",
                    date=dt.date(2024, 6, 11),
                    odometer_start=Decimal("1100"),
                    odometer_end=Decimal("1200"),
                ),
            )
        ).waybill.id

        with pytest.raises(BadRequestError, match="WB-1") as exc_info:
            await service.change_status(seed.admin, later, WaybillStatus.posted)
        assert exc_info.value.code == CHAIN_INTEGRITY_ERROR

    async def test_norm_exceeded_needs_override_permission(self, service, seed, session, card_with_fuel):
        lines = [
            FuelLineInput(
                stock_item_id=seed.fuel_id,
                fuel_start=Decimal("0"),
                fuel_received=Decimal("40"),
                fuel_consumed=Decimal("12"),
            )
        ]
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed, fuel_lines=lines))).waybill.id

        with pytest.raises(BadRequestError) as exc_info:
            await service.change_status(seed.actor(UserRole.dispatcher), waybill_id, WaybillStatus.posted)
        assert exc_info.value.code == NORM_EXCEEDED

        await service.change_status(seed.actor(UserRole.accountant), waybill_id, WaybillStatus.posted)
        entries = await AuditService(session).list_entries(
            seed.admin, entity_type=AuditEntity.waybill.value, entity_id=waybill_id
        )
        assert any("norm exceeded" in entry.description for entry in entries)

    async def test_driver_cannot_post(self, service, seed):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        with pytest.raises(ForbiddenError):
            await service.change_status(
                seed.actor(UserRole.driver, driver_id=seed.driver_id), waybill_id, WaybillStatus.posted
            )

    async def test_back_to_draft_reverses_posting(self, service, seed, session, card_with_fuel):
        blanks = BlankService(session)
        batch = await blanks.create_batch(seed.admin, BlankBatchCreate(series="AB", number_from=1, number_to=1))
        await blanks.materialize_batch(seed.admin, batch.id)
        created = await service.create_waybill(seed.admin, _payload(seed))
        waybill_id, blank_id = created.waybill.id, created.waybill.blank_id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        await service.change_status(seed.admin, waybill_id, WaybillStatus.draft, reason="wrong odometer")

        movements = await _waybill_movements(session, seed, waybill_id)
        assert movements and all(movement.is_void for movement in movements)
        assert {movement.void_reason for movement in movements} == {"STORNO: wrong odometer"}
        vehicle = await session.get(Vehicle, seed.vehicle_id)
        assert vehicle.mileage == Decimal("1000")
        assert vehicle.current_fuel == Decimal("0")
        blank = await session.get(Blank, blank_id)
        assert blank.status == BlankStatus.reserved.value

        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        active = await _waybill_movements(session, seed, waybill_id, include_void=False)
        assert {movement.external_ref for movement in active} == {
            f"WB:REFUEL:{waybill_id}:0:v2",
            f"WB:EXPENSE:{waybill_id}:0:v2",
        }

    async def test_default_storno_reason(self, service, seed, session, card_with_fuel):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)
        await service.change_status(seed.admin, waybill_id, WaybillStatus.draft)

        movements = await _waybill_movements(session, seed, waybill_id)
        assert {movement.void_reason for movement in movements} == {"STORNO: Waybill correction"}

    async def test_cancel_releases_blank(self, service, seed, session):
        blanks = BlankService(session)
        batch = await blanks.create_batch(seed.admin, BlankBatchCreate(series="AB", number_from=1, number_to=1))
        await blanks.materialize_batch(seed.admin, batch.id)
        created = await service.create_waybill(seed.admin, _payload(seed))

        await service.change_status(seed.admin, created.waybill.id, WaybillStatus.cancelled)

        blank = await session.get(Blank, created.waybill.blank_id)
        assert blank.status == BlankStatus.available.value

    async def test_cancelled_is_terminal(self, service, seed):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.cancelled)

        with pytest.raises(BadRequestError) as exc_info:
            await service.change_status(seed.admin, waybill_id, WaybillStatus.draft)
        assert exc_info.value.code == INVALID_TRANSITION

    async def test_submit_records_approver(self, service, seed):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        details = await service.change_status(seed.actor(UserRole.dispatcher), waybill_id, WaybillStatus.submitted)
        assert details.waybill.status == WaybillStatus.submitted.value
        assert details.waybill.approved_by_user_id == seed.admin_id


class TestEffectiveConsumption:
    @pytest.mark.parametrize(
        "fields, expected",
        [
            ({"fuel_consumed": Decimal("7")}, Decimal("7")),
            ({"fuel_start": Decimal("10"), "fuel_received": Decimal("5"), "fuel_end": Decimal("8")}, Decimal("7")),
            ({"fuel_planned": Decimal("6")}, Decimal("6")),
            ({}, Decimal("0")),
        ],
    )
    def test_sources_in_order(self, fields, expected):
        line = WaybillFuelLine(waybill_id="w", line_index=0, stock_item_id="i", **fields)
        assert effective_consumption(line) == expected


class TestDelete:
    async def test_delete_draft_spoils_blank(self, service, seed, session):
        blanks = BlankService(session)
        batch = await blanks.create_batch(seed.admin, BlankBatchCreate(series="AB", number_from=1, number_to=1))
        await blanks.materialize_batch(seed.admin, batch.id)
        created = await service.create_waybill(seed.admin, _payload(seed))
        waybill_id, blank_id = created.waybill.id, created.waybill.blank_id

        await service.delete_waybill(seed.admin, waybill_id, BlankAction.spoil)

        assert await session.get(Waybill, waybill_id) is None
        blank = await session.get(Blank, blank_id)
        assert blank.status == BlankStatus.spoiled.value

    async def test_delete_draft_releases_blank(self, service, seed, session):
        blanks = BlankService(session)
        batch = await blanks.create_batch(seed.admin, BlankBatchCreate(series="AB", number_from=1, number_to=1))
        await blanks.materialize_batch(seed.admin, batch.id)
        created = await service.create_waybill(seed.admin, _payload(seed))
        blank_id = created.waybill.blank_id

        await service.delete_waybill(seed.admin, created.waybill.id)

        blank = await session.get(Blank, blank_id)
        assert blank.status == BlankStatus.available.value

    async def test_posted_delete_forbidden_by_default(self, service, seed, card_with_fuel):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        with pytest.raises(BadRequestError) as exc_info:
            await service.delete_waybill(seed.admin, waybill_id)
        assert exc_info.value.code == DELETE_POSTED_FORBIDDEN

    async def test_posted_delete_when_allowed(self, service, seed, session, card_with_fuel):
        await SettingsService(session).update_app_settings(
            seed.organization_id, AppSettingsUpdate(allow_delete_posted_waybills=True)
        )
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        await service.delete_waybill(seed.admin, waybill_id)

        movements = await _waybill_movements(session, seed, waybill_id)
        assert movements and all(movement.is_void for movement in movements)
        vehicle = await session.get(Vehicle, seed.vehicle_id)
        assert vehicle.mileage == Decimal("1000")


class TestReads:
    async def test_prefill_from_last_waybill(self, service, seed, card_with_fuel):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)

        prefill = await service.prefill(seed.admin, seed.vehicle_id, dt.date(2024, 6, 12))

        assert prefill.last_waybill_id == waybill_id
        assert prefill.last_waybill_number == "WB-1"
        assert prefill.driver_id == seed.driver_id
        assert prefill.odometer_start == Decimal("1100")
        assert prefill.fuel_start == Decimal("30")
        assert prefill.tank_balance == Decimal("30")

    async def test_prefill_uses_line_of_vehicle_fuel(self, service, seed, session):
        oil = StockItem(organization_id=seed.organization_id, name="Engine oil")
        session.add(oil)
        await session.commit()
        lines = [
            FuelLineInput(
                stock_item_id=seed.fuel_id,
                fuel_start=Decimal("0"),
                fuel_received=Decimal("40"),
                fuel_consumed=Decimal("10"),
            ),
            FuelLineInput(stock_item_id=oil.id, fuel_start=Decimal("6"), fuel_consumed=Decimal("1")),
        ]
        await service.create_waybill(seed.admin, _payload(seed, fuel_lines=lines))

        prefill = await service.prefill(seed.admin, seed.vehicle_id, dt.date(2024, 6, 12))

        assert prefill.fuel_start == Decimal("30")

    async def test_prefill_falls_back_to_tank_balance(self, service, seed, session, card_with_fuel):
        waybill_id = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        await service.change_status(seed.admin, waybill_id, WaybillStatus.posted)
        vehicle = await session.get(Vehicle, seed.vehicle_id)
        vehicle.current_fuel = Decimal("99")
        oil = StockItem(organization_id=seed.organization_id, name="Engine oil")
        session.add_all([vehicle, oil])
        await session.commit()
        lines = [FuelLineInput(stock_item_id=oil.id, fuel_start=Decimal("6"), fuel_consumed=Decimal("1"))]
        await service.create_waybill(
            seed.admin,
            _payload(
                seed,
                number="WB-2",
                date=dt.date(2024, 6, 11),
                odometer_start=Decimal("1100"),
                odometer_end=Decimal("1150"),
                fuel_lines=lines,
            ),
        )

        prefill = await service.prefill(seed.admin, seed.vehicle_id, dt.date(2024, 6, 12))

        assert prefill.last_waybill_number == "WB-2"
        assert prefill.tank_balance == Decimal("30")
        assert prefill.fuel_start == Decimal("30")

    async def test_prefill_without_history(self, service, seed):
        prefill = await service.prefill(seed.admin, seed.vehicle_id)

        assert prefill.last_waybill_id is None
        assert prefill.odometer_start == Decimal("1000")
        assert prefill.driver_id == seed.driver_id
        assert prefill.tank_balance is None

    async def test_list_filters_and_driver_scope(self, service, seed, session):
        other = Driver(organization_id=seed.organization_id, full_name="Olga Sidorova")
        session.add(other)
        await session.commit()
        own = (await service.create_waybill(seed.admin, _payload(seed))).waybill.id
        foreign = (
            await service.create_waybill(seed.admin, _payload(seed, number="WB-2", driver_id=other.id))
        ).waybill.id

        items, total = await service.list_waybills(seed.admin)
        assert total == 2

        driver_actor = seed.actor(UserRole.driver, driver_id=seed.driver_id)
        items, total = await service.list_waybills(driver_actor)
        assert total == 1
        assert items[0].waybill.id == own
        with pytest.raises(NotFoundError):
            await service.get_waybill(driver_actor, foreign)

        items, total = await service.list_waybills(seed.admin, status=WaybillStatus.posted)
        assert total == 0
