"""Unit tests for the stock ledger service."""

from datetime import datetime
from decimal import Decimal

import pytest

from waybill_ledger.core.database.entities.period_locks import PeriodLock
from waybill_ledger.core.database.entities.stock import StockMovement
from waybill_ledger.core.database.entities.vehicles import Vehicle
from waybill_ledger.core.errors import (
    DUPLICATE_EXTERNAL_REF,
    INSUFFICIENT_STOCK,
    PERIOD_LOCKED,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from waybill_ledger.core.models.domain.enums import StockDocumentType, StockMovementType
from waybill_ledger.core.models.io.stock import (
    CorrectionCreate,
    FuelCardReset,
    FuelCardTopup,
    StockMovementCreate,
    StockMovementUpdate,
)
from waybill_ledger.core.services.stock_ledger import StockLedgerService

JAN_10 = datetime(2024, 1, 10, 12, 0)


@pytest.fixture
def ledger(session) -> StockLedgerService:
    return StockLedgerService(session)


async def _income(ledger, seed, quantity="100", occurred_at=JAN_10, **kwargs) -> StockMovement:
    return await ledger.create_movement(
        seed.admin,
        StockMovementCreate(
            movement_type=StockMovementType.income,
            stock_item_id=seed.fuel_id,
            quantity=Decimal(quantity),
            stock_location_id=seed.warehouse_id,
            occurred_at=occurred_at,
            **kwargs,
        ),
    )


class TestRecord:
    async def test_income_increases_balance(self, ledger, seed):
        movement = await _income(ledger, seed, "100.5")

        assert movement.quantity == Decimal("100.500")
        assert movement.created_by_user_id == seed.admin_id
        balance = await ledger.get_balance(seed.organization_id, seed.warehouse_id, seed.fuel_id)
        assert balance == Decimal("100.500")

    @pytest.mark.parametrize("quantity", ["0", "-5"])
    async def test_non_positive_quantity_rejected(self, ledger, seed, quantity):
        with pytest.raises(BadRequestError, match="greater than zero"):
            await _income(ledger, seed, quantity)

    async def test_adjustment_requires_comment_and_may_be_negative(self, ledger, seed):
        await _income(ledger, seed, "10")
        data = dict(
            movement_type=StockMovementType.adjustment,
            stock_item_id=seed.fuel_id,
            quantity=Decimal("-3"),
            stock_location_id=seed.warehouse_id,
            occurred_at=JAN_10,
        )
        with pytest.raises(BadRequestError, match="comment"):
            await ledger.create_movement(seed.admin, StockMovementCreate(**data))

        await ledger.create_movement(seed.admin, StockMovementCreate(**data, comment="inventory count"))
        balance = await ledger.get_balance(seed.organization_id, seed.warehouse_id, seed.fuel_id)
        assert balance == Decimal("7.000")

    async def test_expense_cannot_exceed_balance(self, ledger, seed):
        await _income(ledger, seed, "10")
        with pytest.raises(BadRequestError) as exc_info:
            await ledger.create_movement(
                seed.admin,
                StockMovementCreate(
                    movement_type=StockMovementType.expense,
                    stock_item_id=seed.fuel_id,
                    quantity=Decimal("10.001"),
                    stock_location_id=seed.warehouse_id,
                    occurred_at=JAN_10,
                ),
            )
        assert exc_info.value.code == INSUFFICIENT_STOCK

    async def test_balance_checked_at_movement_time(self, ledger, seed):
        await _income(ledger, seed, "10", occurred_at=datetime(2024, 1, 20))
        with pytest.raises(BadRequestError):
            await ledger.create_movement(
                seed.admin,
                StockMovementCreate(
                    movement_type=StockMovementType.expense,
                    stock_item_id=seed.fuel_id,
                    quantity=Decimal("5"),
                    stock_location_id=seed.warehouse_id,
                    occurred_at=datetime(2024, 1, 15),
                ),
            )

    async def test_transfer_validation(self, ledger, seed):
        base = dict(movement_type=StockMovementType.transfer, stock_item_id=seed.fuel_id, quantity=Decimal("1"))
        with pytest.raises(BadRequestError, match="source and destination"):
            await ledger.create_movement(
                seed.admin, StockMovementCreate(**base, to_stock_location_id=seed.warehouse_id)
            )
        with pytest.raises(BadRequestError, match="must differ"):
            await ledger.create_movement(
                seed.admin,
                StockMovementCreate(
                    **base, from_stock_location_id=seed.warehouse_id, to_stock_location_id=seed.warehouse_id
                ),
            )

    async def test_location_required(self, ledger, seed):
        with pytest.raises(BadRequestError, match="requires a stock location"):
            await ledger.create_movement(
                seed.admin,
                StockMovementCreate(
                    movement_type=StockMovementType.income, stock_item_id=seed.fuel_id, quantity=Decimal("1")
                ),
            )

    async def test_unknown_item_and_location(self, ledger, seed):
        with pytest.raises(NotFoundError, match="stock item"):
            await ledger.create_movement(
                seed.admin,
                StockMovementCreate(
                    movement_type=StockMovementType.income,
                    stock_item_id="missing",
                    quantity=Decimal("1"),
                    stock_location_id=seed.warehouse_id,
                ),
            )
        with pytest.raises(NotFoundError, match="stock location"):
            await ledger.create_movement(
                seed.admin,
                StockMovementCreate(
                    movement_type=StockMovementType.income,
                    stock_item_id=seed.fuel_id,
                    quantity=Decimal("1"),
                    stock_location_id="missing",
                ),
            )

    async def test_duplicate_external_ref(self, ledger, seed):
        await _income(ledger, seed, "1", external_ref="INV-1")
        with pytest.raises(ConflictError) as exc_info:
            await _income(ledger, seed, "1", external_ref="INV-1")
        assert exc_info.value.code == DUPLICATE_EXTERNAL_REF

    async def test_length_limits(self, ledger, seed):
        with pytest.raises(BadRequestError, match="external_ref"):
            await _income(ledger, seed, "1", external_ref="x" * 121)
        with pytest.raises(BadRequestError, match="comment"):
            await _income(ledger, seed, "1", comment="x" * 501)

    async def test_system_document_types_rejected(self, ledger, seed):
        with pytest.raises(BadRequestError, match="reserved"):
            await _income(ledger, seed, "1", document_type=StockDocumentType.waybill, document_id="w1")

    async def test_closed_period_rejected(self, ledger, seed, session):
        session.add(PeriodLock(organization_id=seed.organization_id, period="2024-01", data_hash="x"))
        await session.commit()

        with pytest.raises(BadRequestError) as exc_info:
            await _income(ledger, seed, "1")
        assert exc_info.value.code == PERIOD_LOCKED

    async def test_vehicle_fuel_follows_tank_balance(self, ledger, seed, session):
        vehicle = await session.get(Vehicle, seed.vehicle_id)
        tank = await ledger.locations.get_or_create_vehicle_tank(vehicle)
        await session.commit()

        await _income(ledger, seed, "50")
        await ledger.create_movement(
            seed.admin,
            StockMovementCreate(
                movement_type=StockMovementType.transfer,
                stock_item_id=seed.fuel_id,
                quantity=Decimal("30"),
                from_stock_location_id=seed.warehouse_id,
                to_stock_location_id=tank.id,
                occurred_at=JAN_10,
            ),
        )

        vehicle = await session.get(Vehicle, seed.vehicle_id)
        assert vehicle.current_fuel == Decimal("30")


class TestEditAndVoid:
    async def test_update_manual_movement(self, ledger, seed):
        movement = await _income(ledger, seed, "10")
        updated = await ledger.update_movement(
            seed.admin, movement.id, StockMovementUpdate(quantity=Decimal("12"), comment="fixed typo")
        )
        assert updated.quantity == Decimal("12.000")
        assert updated.comment == "fixed typo"

    async def test_update_may_not_leave_negative_balance(self, ledger, seed):
        await _income(ledger, seed, "10")
        expense = await ledger.create_movement(
            seed.admin,
            StockMovementCreate(
                movement_type=StockMovementType.expense,
                stock_item_id=seed.fuel_id,
                quantity=Decimal("8"),
                stock_location_id=seed.warehouse_id,
                occurred_at=JAN_10,
            ),
        )
        expense_id = expense.id
        with pytest.raises(BadRequestError) as exc_info:
            await ledger.update_movement(seed.admin, expense_id, StockMovementUpdate(quantity=Decimal("11")))
        assert exc_info.value.code == INSUFFICIENT_STOCK

        balance = await ledger.get_balance(seed.organization_id, seed.warehouse_id, seed.fuel_id)
        assert balance == Decimal("2.000")

    async def test_void_excludes_from_balance(self, ledger, seed):
        movement = await _income(ledger, seed, "10")
        voided = await ledger.void_movement(seed.admin, movement.id, "entered twice")

        assert voided.is_void
        assert voided.void_reason == "entered twice"
        assert voided.voided_by_user_id == seed.admin_id
        assert await ledger.get_balance(seed.organization_id, seed.warehouse_id, seed.fuel_id) == Decimal("0.000")

    async def test_void_reason_too_short(self, ledger, seed):
        movement = await _income(ledger, seed, "10")
        with pytest.raises(BadRequestError, match="at least 5"):
            await ledger.void_movement(seed.admin, movement.id, " abc ")

    async def test_void_twice_rejected(self, ledger, seed):
        movement = await _income(ledger, seed, "10")
        movement_id = movement.id
        await ledger.void_movement(seed.admin, movement_id, "entered twice")
        with pytest.raises(BadRequestError, match="already void"):
            await ledger.void_movement(seed.admin, movement_id, "entered twice")

    async def test_hard_delete_forbidden(self, ledger, seed):
        movement = await _income(ledger, seed, "10")
        with pytest.raises(ForbiddenError):
            await ledger.delete_movement(seed.admin, movement.id)

    async def test_correction_is_signed_adjustment(self, ledger, seed):
        await _income(ledger, seed, "10")
        correction = await ledger.create_correction(
            seed.admin,
            CorrectionCreate(
                stock_location_id=seed.warehouse_id,
                stock_item_id=seed.fuel_id,
                delta=Decimal("-1.5"),
                occurred_at=JAN_10,
                reason="evaporation",
            ),
        )
        assert correction.movement_type == StockMovementType.adjustment.value
        assert correction.document_type == StockDocumentType.correction.value
        assert correction.document_id
        assert await ledger.get_balance(seed.organization_id, seed.warehouse_id, seed.fuel_id) == Decimal("8.500")


class TestFuelCards:
    async def test_topup_and_reset(self, ledger, seed):
        await _income(ledger, seed, "100")

        topup = await ledger.fuel_card_topup(
            seed.admin, seed.card_id, FuelCardTopup(stock_item_id=seed.fuel_id, quantity=Decimal("40"))
        )
        assert topup.document_type == StockDocumentType.fuel_card_topup.value
        card_location = topup.to_stock_location_id
        assert await ledger.get_balance(seed.organization_id, card_location, seed.fuel_id) == Decimal("40.000")

        reset = await ledger.fuel_card_reset(seed.admin, seed.card_id, FuelCardReset(stock_item_id=seed.fuel_id))
        assert reset.quantity == Decimal("40.000")
        assert reset.document_type == StockDocumentType.fuel_card_reset.value
        assert reset.document_id != topup.document_id
        assert await ledger.get_balance(seed.organization_id, card_location, seed.fuel_id) == Decimal("0.000")
        assert await ledger.get_balance(seed.organization_id, seed.warehouse_id, seed.fuel_id) == Decimal("100.000")

    async def test_reset_of_empty_card_returns_none(self, ledger, seed):
        assert await ledger.fuel_card_reset(seed.admin, seed.card_id, FuelCardReset(stock_item_id=seed.fuel_id)) is None

    async def test_topup_requires_warehouse_stock(self, ledger, seed):
        with pytest.raises(BadRequestError) as exc_info:
            await ledger.fuel_card_topup(
                seed.admin, seed.card_id, FuelCardTopup(stock_item_id=seed.fuel_id, quantity=Decimal("1"))
            )
        assert exc_info.value.code == INSUFFICIENT_STOCK

    async def test_system_movement_only_reversed_by_storno(self, ledger, seed):
        await _income(ledger, seed, "100")
        topup = await ledger.fuel_card_topup(
            seed.admin, seed.card_id, FuelCardTopup(stock_item_id=seed.fuel_id, quantity=Decimal("40"))
        )
        topup_id, document_id = topup.id, topup.document_id

        with pytest.raises(BadRequestError, match="storno"):
            await ledger.void_movement(seed.admin, topup_id, "wrong card")

        count = await ledger.storno_document(
            seed.admin, StockDocumentType.fuel_card_topup, document_id, "wrong card"
        )
        assert count == 1
        movement = await ledger.get_movement(seed.admin, topup_id)
        assert movement.is_void
        assert movement.void_reason == "STORNO: wrong card"

        with pytest.raises(NotFoundError):
            await ledger.storno_document(seed.admin, StockDocumentType.fuel_card_topup, document_id, "again")


class TestReads:
    async def test_list_movements_paginates(self, ledger, seed):
        for day in range(1, 4):
            await _income(ledger, seed, "1", occurred_at=datetime(2024, 1, day))
        items, total = await ledger.list_movements(seed.admin, page=1, page_size=2)
        assert total == 3
        assert len(items) == 2
        assert items[0].occurred_at == datetime(2024, 1, 3)

    async def test_balances_skip_zero(self, ledger, seed):
        movement = await _income(ledger, seed, "5")
        assert len(await ledger.balances(seed.admin)) == 1
        await ledger.void_movement(seed.admin, movement.id, "entered twice")
        assert await ledger.balances(seed.admin) == []

    async def test_location_balances(self, ledger, seed):
        await _income(ledger, seed, "5")
        result = await ledger.location_balances(seed.admin)
        warehouse = next(item for item in result if item.stock_location_id == seed.warehouse_id)
        assert warehouse.balances == {seed.fuel_id: Decimal("5.000")}

    async def test_other_organization_movement_not_found(self, ledger, seed, other_seed):
        movement = await _income(ledger, seed, "5")
        with pytest.raises(NotFoundError):
            await ledger.get_movement(other_seed.admin, movement.id)
