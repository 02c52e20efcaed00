"""
Stock location service.

Tank and card locations are created lazily the first time the ledger needs
them, so a vehicle or fuel card never has to be registered twice.
"""

from __future__ import annotations

from typing import List, Optional

from waybill_ledger.core.database.entities.fuel_cards import FuelCard
from waybill_ledger.core.database.entities.stock import StockLocation
from waybill_ledger.core.database.entities.vehicles import Vehicle
from waybill_ledger.core.database.repositories.stock_locations import StockLocationRepository
from waybill_ledger.core.errors import NotFoundError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import StockLocationType

from .base import BaseService, transactional

logger = get_logger(__name__)

DEFAULT_WAREHOUSE_NAME = "Main warehouse"


class StockLocationService(BaseService):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.repository = StockLocationRepository(session)

    async def get_location(self, organization_id: str, location_id: str) -> StockLocation:
        location = await self.repository.get_scoped(organization_id, location_id)
        if location is None:
            raise NotFoundError("stock location not found")
        return location

    async def get_or_create_default_warehouse(self, organization_id: str) -> StockLocation:
        warehouse = await self.repository.get_default_warehouse(organization_id)
        if warehouse is None:
            warehouse = await self.repository.create(
                StockLocation(
                    organization_id=organization_id,
                    type=StockLocationType.warehouse.value,
                    name=DEFAULT_WAREHOUSE_NAME,
                    is_default=True,
                )
            )
            logger.info(f"Created default warehouse {warehouse.id} for organization {organization_id}")
        return warehouse

    async def get_or_create_vehicle_tank(self, vehicle: Vehicle) -> StockLocation:
        tank = await self.repository.get_by_vehicle(vehicle.id)
        if tank is None:
            tank = await self.repository.create(
                StockLocation(
                    organization_id=vehicle.organization_id,
                    type=StockLocationType.vehicle_tank.value,
                    name=f"Tank {vehicle.registration_number}",
                    vehicle_id=vehicle.id,
                )
            )
            logger.debug(f"Created tank location {tank.id} for vehicle {vehicle.id}")
        return tank

    async def get_or_create_fuel_card_location(self, card: FuelCard) -> StockLocation:
        location = await self.repository.get_by_fuel_card(card.id)
        if location is None:
            location = await self.repository.create(
                StockLocation(
                    organization_id=card.organization_id,
                    type=StockLocationType.fuel_card.value,
                    name=f"Card {card.card_number}",
                    fuel_card_id=card.id,
                )
            )
            logger.debug(f"Created fuel card location {location.id} for card {card.id}")
        return location

    async def list_locations(
        self, actor: Actor, location_type: Optional[StockLocationType] = None, is_active: Optional[bool] = None
    ) -> List[StockLocation]:
        return await self.repository.list_for_organization(
            actor.organization_id, location_type.value if location_type else None, is_active
        )

    @transactional
    async def create_warehouse(self, actor: Actor, name: str, is_default: bool = False) -> StockLocation:
        """Create a warehouse; a new default warehouse demotes the previous one."""
        if is_default:
            for existing in await self.repository.list_for_organization(
                actor.organization_id, StockLocationType.warehouse.value
            ):
                if existing.is_default:
                    existing.is_default = False
                    await self.repository.update(existing)
        warehouse = await self.repository.create(
            StockLocation(
                organization_id=actor.organization_id,
                type=StockLocationType.warehouse.value,
                name=name,
                is_default=is_default,
            )
        )
        logger.info(f"Created warehouse {warehouse.name} ({warehouse.id})")
        return warehouse
