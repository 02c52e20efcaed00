"""
Waybill posting.

Posting turns the fuel lines of a waybill into ledger movements:

- a TRANSFER from the fuel card (or the default warehouse) into the vehicle
  tank for every refuel, and
- an EXPENSE from the tank for the fuel consumed on the trip.

Every movement carries a deterministic external reference
(``WB:REFUEL:<waybill>:<line>`` / ``WB:EXPENSE:<waybill>:<line>``). When a
posting is reversed the movements are voided, and the next posting uses the
next ``:vN`` version of each reference so the ledger keeps both.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from waybill_ledger.core.database.entities.waybills import Waybill, WaybillFuelLine
from waybill_ledger.core.database.repositories.fuel_cards import FuelCardRepository
from waybill_ledger.core.database.repositories.stock_movements import StockMovementRepository, to_quantity
from waybill_ledger.core.database.repositories.vehicles import VehicleRepository
from waybill_ledger.core.errors import INSUFFICIENT_TANK_FUEL, BadRequestError, NotFoundError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import (
    BlankStatus,
    FuelSourceType,
    StockDocumentType,
    StockMovementType,
)
from waybill_ledger.core.models.io.stock import StockMovementCreate
from waybill_ledger.core.timeutils import end_of_day, start_of_day

from .base import BaseService
from .blanks import BlankService
from .stock_ledger import StockLedgerService

logger = get_logger(__name__)

DEFAULT_STORNO_REASON = "Waybill correction"
ZERO = Decimal("0")


def refuel_ref(waybill_id: str, line_index: int) -> str:
    return f"WB:REFUEL:{waybill_id}:{line_index}"


def expense_ref(waybill_id: str, line_index: int) -> str:
    return f"WB:EXPENSE:{waybill_id}:{line_index}"


def effective_consumption(line: WaybillFuelLine) -> Decimal:
    """Fuel to write off for a line.

    The recorded consumption wins. Otherwise it is derived from the fuel
    balance ``start + received - end`` and, failing that, the planned norm.
    """
    if line.fuel_consumed is not None and to_quantity(line.fuel_consumed) > ZERO:
        return to_quantity(line.fuel_consumed)
    if line.fuel_start is not None and line.fuel_end is not None:
        derived = to_quantity(line.fuel_start) + to_quantity(line.fuel_received) - to_quantity(line.fuel_end)
        if derived > ZERO:
            return derived
    if line.fuel_planned is not None:
        return to_quantity(line.fuel_planned)
    return to_quantity(ZERO)


class PostingService(BaseService):
    """Posts waybills to the stock ledger and reverses postings."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.vehicles = VehicleRepository(session)
        self.fuel_cards = FuelCardRepository(session)
        self.movements = StockMovementRepository(session)
        self.ledger = StockLedgerService(session)
        self.blanks = BlankService(session)

    async def _versioned_ref(self, organization_id: str, base_ref: str) -> str:
        voided = await self.movements.count_voided_versions(organization_id, base_ref)
        return base_ref if voided == 0 else f"{base_ref}:v{voided + 1}"

    async def post_waybill(self, actor: Actor, waybill: Waybill, fuel_lines: Sequence[WaybillFuelLine]) -> None:
        """
        Write the ledger movements of a waybill and sync the vehicle.

        Runs inside the caller's transaction.

        Raises:
            BadRequestError: ``INSUFFICIENT_TANK_FUEL`` when the tank cannot cover the consumption
        """
        org_id = actor.organization_id
        vehicle = await self.vehicles.get_scoped(org_id, waybill.vehicle_id)
        if vehicle is None:
            raise NotFoundError("vehicle not found")

        locations = self.ledger.locations
        tank = await locations.get_or_create_vehicle_tank(vehicle)
        card_location = None
        if waybill.fuel_card_id:
            card = await self.fuel_cards.get_scoped(org_id, waybill.fuel_card_id)
            if card is not None:
                card_location = await locations.get_or_create_fuel_card_location(card)

        for index, line in enumerate(fuel_lines):
            received = to_quantity(line.fuel_received)
            if received > ZERO:
                if card_location is not None and line.source_type != FuelSourceType.warehouse.value:
                    source = card_location
                else:
                    source = await locations.get_or_create_default_warehouse(org_id)
                ref = await self._versioned_ref(org_id, refuel_ref(waybill.id, index))
                if await self.movements.get_by_external_ref(org_id, ref, include_void=False) is None:
                    await self.ledger.record(
                        actor,
                        StockMovementCreate(
                            movement_type=StockMovementType.transfer,
                            stock_item_id=line.stock_item_id,
                            quantity=received,
                            from_stock_location_id=source.id,
                            to_stock_location_id=tank.id,
                            occurred_at=line.refueled_at or waybill.valid_from or start_of_day(waybill.date),
                            occurred_seq=index * 100,
                            document_type=StockDocumentType.waybill,
                            document_id=waybill.id,
                            external_ref=ref,
                            comment=f"Refuel, waybill {waybill.number}",
                        ),
                        check_balance=False,
                    )

            consumed = effective_consumption(line)
            if consumed <= ZERO:
                continue

            expense_at = waybill.valid_to or end_of_day(waybill.date)
            available = await self.movements.get_balance(tank.id, line.stock_item_id, expense_at) + received
            if available < consumed:
                logger.warning(f"Waybill {waybill.number}: tank holds {available}, needs {consumed}")
                raise BadRequestError(
                    f"insufficient fuel in the vehicle tank to post waybill {waybill.number}: "
                    f"required {consumed:.2f}, available {available:.2f}",
                    code=INSUFFICIENT_TANK_FUEL,
                )

            ref = await self._versioned_ref(org_id, expense_ref(waybill.id, index))
            if await self.movements.get_by_external_ref(org_id, ref, include_void=False) is None:
                await self.ledger.record(
                    actor,
                    StockMovementCreate(
                        movement_type=StockMovementType.expense,
                        stock_item_id=line.stock_item_id,
                        quantity=consumed,
                        stock_location_id=tank.id,
                        occurred_at=expense_at,
                        occurred_seq=index * 100 + 50,
                        document_type=StockDocumentType.waybill,
                        document_id=waybill.id,
                        external_ref=ref,
                        comment=f"Consumption, waybill {waybill.number}",
                    ),
                    check_balance=False,
                )

        if waybill.blank_id:
            blank = await self.blanks.blanks.get_by_id(waybill.blank_id)
            if blank is not None and blank.status != BlankStatus.used.value:
                await self.blanks.mark_used(blank, waybill.id)

        if waybill.odometer_end is not None:
            vehicle.mileage = waybill.odometer_end
        if fuel_lines and fuel_lines[-1].fuel_end is not None:
            vehicle.current_fuel = to_quantity(fuel_lines[-1].fuel_end)
        await self.vehicles.update(vehicle)
        logger.info(f"Posted waybill {waybill.number} ({waybill.id})")

    async def cancel_posting(
        self,
        actor: Actor,
        waybill: Waybill,
        fuel_lines: Sequence[WaybillFuelLine],
        reason: Optional[str] = None,
    ) -> int:
        """
        Reverse a posting: void its movements and roll the vehicle back.

        Returns:
            Number of voided movements
        """
        reason = (reason or "").strip() or DEFAULT_STORNO_REASON
        try:
            voided = await self.ledger.storno(actor, StockDocumentType.waybill.value, waybill.id, reason)
        except NotFoundError:
            logger.info(f"Waybill {waybill.id} had no ledger movements to reverse")
            voided = 0

        vehicle = await self.vehicles.get_scoped(actor.organization_id, waybill.vehicle_id)
        if vehicle is not None:
            if waybill.odometer_start is not None:
                vehicle.mileage = waybill.odometer_start
            if fuel_lines and fuel_lines[0].fuel_start is not None:
                vehicle.current_fuel = to_quantity(fuel_lines[0].fuel_start)
            await self.vehicles.update(vehicle)

        if waybill.blank_id:
            blank = await self.blanks.blanks.get_by_id(waybill.blank_id)
            if blank is not None and blank.status == BlankStatus.used.value:
                await self.blanks.unmark_used(blank)

        logger.info(f"Cancelled posting of waybill {waybill.number}: {voided} movements voided")
        return voided
