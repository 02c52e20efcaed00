import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_organization_profile(client: AsyncClient, admin_headers, seed):
    response = await client.get("/api/v1/organizations/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["id"] == seed.organization_id

    response = await client.put("/api/v1/organizations/me", json={"inn": "7701234567"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["inn"] == "7701234567"


async def test_driver_crud(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/drivers", json={"full_name": "Olga Sidorova"}, headers=admin_headers)
    assert response.status_code == 201
    driver_id = response.json()["id"]

    response = await client.put(f"/api/v1/drivers/{driver_id}", json={"is_active": False}, headers=admin_headers)
    assert response.json()["is_active"] is False

    response = await client.get("/api/v1/drivers", params={"is_active": False}, headers=admin_headers)
    assert [driver["id"] for driver in response.json()] == [driver_id]

    assert (await client.delete(f"/api/v1/drivers/{driver_id}", headers=admin_headers)).status_code == 204
    assert (await client.get(f"/api/v1/drivers/{driver_id}", headers=admin_headers)).status_code == 404


async def test_driver_in_use_cannot_be_deleted(client: AsyncClient, admin_headers, seed):
    response = await client.delete(f"/api/v1/drivers/{seed.driver_id}", headers=admin_headers)
    assert response.status_code == 400
    assert "in use" in response.json()["detail"]


async def test_vehicle_create_and_conflict(client: AsyncClient, admin_headers, seed):
    payload = {
        "registration_number": "B456CD",
        "fuel_stock_item_id": seed.fuel_id,
        "summer_rate": "8.5",
        "winter_rate": 9.5,
    }
    response = await client.post("/api/v1/vehicles", json=payload, headers=admin_headers)
    assert response.status_code == 201
    vehicle = response.json()
    assert vehicle["summer_rate"] == 8.5
    assert vehicle["mileage"] == 0

    response = await client.post("/api/v1/vehicles", json=payload, headers=admin_headers)
    assert response.status_code == 409


async def test_fuel_card_conflict(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/fuel-cards", json={"card_number": "7000-0001"}, headers=admin_headers)
    assert response.status_code == 409


async def test_stock_items(client: AsyncClient, admin_headers, seed):
    response = await client.post("/api/v1/stock/items", json={"name": "Petrol", "code": "AI92"}, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["unit"] == "l"

    response = await client.get("/api/v1/stock/items", headers=admin_headers)
    assert sorted(item["name"] for item in response.json()) == ["Diesel", "Petrol"]

    response = await client.delete(f"/api/v1/stock/items/{seed.fuel_id}", headers=admin_headers)
    assert response.status_code == 400


async def test_dispatcher_reads_but_cannot_write(client: AsyncClient, make_user, seed):
    headers = await make_user("dispatcher")

    response = await client.get("/api/v1/vehicles", headers=headers)
    assert response.status_code == 200
    assert [vehicle["registration_number"] for vehicle in response.json()] == ["A123BC"]

    response = await client.post("/api/v1/vehicles", json={"registration_number": "X1"}, headers=headers)
    assert response.status_code == 403


async def test_other_organization_is_invisible(client: AsyncClient, admin_headers, other_seed):
    response = await client.get(f"/api/v1/vehicles/{other_seed.vehicle_id}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
