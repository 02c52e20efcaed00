"""Unit tests for warehouse, tank and fuel card locations."""

import pytest

from waybill_ledger.core.database.entities.fuel_cards import FuelCard
from waybill_ledger.core.database.entities.vehicles import Vehicle
from waybill_ledger.core.errors import NotFoundError
from waybill_ledger.core.models.domain.enums import StockLocationType
from waybill_ledger.core.services.stock_locations import StockLocationService


@pytest.fixture
def service(session) -> StockLocationService:
    return StockLocationService(session)


async def test_default_warehouse_is_reused(service, seed):
    warehouse = await service.get_or_create_default_warehouse(seed.organization_id)
    assert warehouse.id == seed.warehouse_id


async def test_new_default_warehouse_demotes_previous(service, seed):
    created = await service.create_warehouse(seed.admin, "Night depot", is_default=True)

    default = await service.get_or_create_default_warehouse(seed.organization_id)
    assert default.id == created.id
    warehouses = await service.list_locations(seed.admin, StockLocationType.warehouse)
    assert sorted(location.is_default for location in warehouses) == [False, True]


async def test_tank_and_card_locations_created_once(service, seed, session):
    vehicle = await session.get(Vehicle, seed.vehicle_id)
    card = await session.get(FuelCard, seed.card_id)

    tank = await service.get_or_create_vehicle_tank(vehicle)
    card_location = await service.get_or_create_fuel_card_location(card)

    assert tank.type == StockLocationType.vehicle_tank.value
    assert tank.name == "Tank A123BC"
    assert card_location.fuel_card_id == seed.card_id
    assert (await service.get_or_create_vehicle_tank(vehicle)).id == tank.id
    assert (await service.get_or_create_fuel_card_location(card)).id == card_location.id


async def test_location_of_other_organization_not_found(service, seed, other_seed):
    with pytest.raises(NotFoundError):
        await service.get_location(other_seed.organization_id, seed.warehouse_id)
