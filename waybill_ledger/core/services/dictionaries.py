"""
Dictionary services.

CRUD for the reference data every waybill points at: the organization
itself, drivers, vehicles, fuel cards and stock items. All records are
scoped to the caller's organization; records of other organizations are
reported as not found.

Records that are referenced by waybills or stock movements cannot be
deleted. They can be deactivated instead.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from waybill_ledger.core.database.entities.drivers import Driver
from waybill_ledger.core.database.entities.fuel_cards import FuelCard
from waybill_ledger.core.database.entities.organizations import Organization
from waybill_ledger.core.database.entities.stock import StockItem
from waybill_ledger.core.database.entities.vehicles import Vehicle
from waybill_ledger.core.database.repositories.base import SQLModelRepository
from waybill_ledger.core.database.repositories.drivers import DriverRepository
from waybill_ledger.core.database.repositories.fuel_cards import FuelCardRepository
from waybill_ledger.core.database.repositories.organizations import OrganizationRepository
from waybill_ledger.core.database.repositories.stock_items import StockItemRepository
from waybill_ledger.core.database.repositories.stock_locations import StockLocationRepository
from waybill_ledger.core.database.repositories.stock_movements import StockMovementRepository
from waybill_ledger.core.database.repositories.vehicles import VehicleRepository
from waybill_ledger.core.database.repositories.waybills import WaybillRepository
from waybill_ledger.core.errors import BadRequestError, ConflictError, NotFoundError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.dictionaries import OrganizationUpdate

from .base import BaseService, transactional

logger = get_logger(__name__)

EntityType = TypeVar("EntityType")


class OrganizationService(BaseService):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.organizations = OrganizationRepository(session)

    async def get_own(self, actor: Actor) -> Organization:
        organization = await self.organizations.get_by_id(actor.organization_id)
        if organization is None:
            raise NotFoundError("organization not found")
        return organization

    @transactional
    async def update_own(self, actor: Actor, data: OrganizationUpdate) -> Organization:
        actor.require(Permission.settings_write)
        organization = await self.get_own(actor)
        for name, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(organization, name, value)
        return await self.organizations.update(organization)


class DictionaryService(BaseService, Generic[EntityType]):
    """
    Generic organization-scoped CRUD.

    Subclasses name the repository and the entity, and override
    ``_validate`` and ``_usage`` for reference checks.
    """

    entity_name: str = "record"
    model: Type[Any]

    def __init__(self, session) -> None:
        super().__init__(session)
        self.repository: SQLModelRepository = self._repository(session)

    def _repository(self, session) -> SQLModelRepository:
        raise NotImplementedError

    async def _validate(self, actor: Actor, values: Dict[str, Any], current: Optional[EntityType]) -> None:
        """Check references and uniqueness before a create or update."""

    async def _usage(self, entity: EntityType) -> Optional[str]:
        """Describe what still references ``entity``, or None when it is free."""
        return None

    async def _check_driver(self, actor: Actor, driver_id: Optional[str]) -> None:
        if driver_id and await DriverRepository(self.session).get_scoped(actor.organization_id, driver_id) is None:
            raise NotFoundError("driver not found")

    async def get(self, actor: Actor, entity_id: str) -> EntityType:
        entity = await self.repository.get_scoped(actor.organization_id, entity_id)
        if entity is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return entity

    async def list(self, actor: Actor, is_active: Optional[bool] = None) -> List[EntityType]:
        return await self.repository.list(filters={"organization_id": actor.organization_id, "is_active": is_active})

    @transactional
    async def create(self, actor: Actor, data: BaseModel) -> EntityType:
        actor.require(Permission.dictionary_write)
        values = data.model_dump()
        await self._validate(actor, values, None)
        entity = await self.repository.create(self.model(organization_id=actor.organization_id, **values))
        logger.info(f"Created {self.entity_name} {entity.id}")
        return entity

    @transactional
    async def update(self, actor: Actor, entity_id: str, data: BaseModel) -> EntityType:
        actor.require(Permission.dictionary_write)
        entity = await self.get(actor, entity_id)
        values = data.model_dump(exclude_unset=True)
        await self._validate(actor, values, entity)
        for name, value in values.items():
            setattr(entity, name, value)
        return await self.repository.update(entity)

    @transactional
    async def delete(self, actor: Actor, entity_id: str) -> None:
        actor.require(Permission.dictionary_write)
        entity = await self.get(actor, entity_id)
        usage = await self._usage(entity)
        if usage:
            raise BadRequestError(f"{self.entity_name} is in use ({usage}); deactivate it instead")
        await self.repository.delete(entity.id)
        logger.info(f"Deleted {self.entity_name} {entity_id}")


class DriverService(DictionaryService[Driver]):
    entity_name = "driver"
    model = Driver

    def _repository(self, session) -> SQLModelRepository:
        return DriverRepository(session)

    async def _usage(self, entity: Driver) -> Optional[str]:
        waybills = await WaybillRepository(self.session).count_for(driver_id=entity.id)
        if waybills:
            return f"{waybills} waybills"
        cards = await FuelCardRepository(self.session).count(filters={"assigned_driver_id": entity.id})
        return f"{cards} fuel cards" if cards else None


class VehicleService(DictionaryService[Vehicle]):
    entity_name = "vehicle"
    model = Vehicle

    def _repository(self, session) -> SQLModelRepository:
        return VehicleRepository(session)

    async def _validate(self, actor: Actor, values: Dict[str, Any], current: Optional[Vehicle]) -> None:
        number = values.get("registration_number")
        if number and (current is None or number != current.registration_number):
            if await self.repository.get_by_registration_number(actor.organization_id, number):
                raise ConflictError(f"vehicle {number} already exists")
        if values.get("fuel_stock_item_id"):
            item = await StockItemRepository(self.session).get_scoped(
                actor.organization_id, values["fuel_stock_item_id"]
            )
            if item is None:
                raise NotFoundError("stock item not found")
        await self._check_driver(actor, values.get("assigned_driver_id"))
        for name in ("mileage", "current_fuel"):
            if name in values and values[name] is None:
                values.pop(name)

    async def _usage(self, entity: Vehicle) -> Optional[str]:
        waybills = await WaybillRepository(self.session).count_for(vehicle_id=entity.id)
        if waybills:
            return f"{waybills} waybills"
        if await StockLocationRepository(self.session).get_by_vehicle(entity.id) is not None:
            return "fuel tank has stock movements"
        return None


class FuelCardService(DictionaryService[FuelCard]):
    entity_name = "fuel card"
    model = FuelCard

    def _repository(self, session) -> SQLModelRepository:
        return FuelCardRepository(session)

    async def _validate(self, actor: Actor, values: Dict[str, Any], current: Optional[FuelCard]) -> None:
        number = values.get("card_number")
        if number and (current is None or number != current.card_number):
            if await self.repository.get_by_number(actor.organization_id, number):
                raise ConflictError(f"fuel card {number} already exists")
        await self._check_driver(actor, values.get("assigned_driver_id"))

    async def _usage(self, entity: FuelCard) -> Optional[str]:
        waybills = await WaybillRepository(self.session).count_for(fuel_card_id=entity.id)
        if waybills:
            return f"{waybills} waybills"
        if await StockLocationRepository(self.session).get_by_fuel_card(entity.id) is not None:
            return "card has stock movements"
        return None


class StockItemService(DictionaryService[StockItem]):
    entity_name = "stock item"
    model = StockItem

    def _repository(self, session) -> SQLModelRepository:
        return StockItemRepository(session)

    async def _usage(self, entity: StockItem) -> Optional[str]:
        movements = await StockMovementRepository(self.session).count_referencing_item(entity.id)
        if movements:
            return f"{movements} stock movements"
        vehicles = await VehicleRepository(self.session).count(filters={"fuel_stock_item_id": entity.id})
        return f"fuel of {vehicles} vehicles" if vehicles else None
