import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

RULES = "/api/v1/fuel-card-reset-rules"


async def _fill_card(client: AsyncClient, headers, seed, quantity=40):
    income = {
        "movement_type": "INCOME",
        "stock_item_id": seed.fuel_id,
        "quantity": 100,
        "stock_location_id": seed.warehouse_id,
        "occurred_at": "2024-06-01T08:00:00",
    }
    response = await client.post("/api/v1/stock/movements", json=income, headers=headers)
    assert response.status_code == 201
    topup = {"stock_item_id": seed.fuel_id, "quantity": quantity, "occurred_at": "2024-06-02T08:00:00"}
    response = await client.post(f"/api/v1/fuel-cards/{seed.card_id}/topup", json=topup, headers=headers)
    assert response.status_code == 201
    return response.json()["to_stock_location_id"]


async def _create_rule(client: AsyncClient, headers, seed, **extra):
    payload = {"name": "Monthly return", "frequency": "MONTHLY", "stock_item_id": seed.fuel_id, **extra}
    return await client.post(RULES, json=payload, headers=headers)


async def test_rule_crud(client: AsyncClient, admin_headers, seed):
    response = await _create_rule(client, admin_headers, seed, scope="SPECIFIC_CARDS", card_ids=[seed.card_id])
    assert response.status_code == 201
    rule = response.json()
    assert rule["card_ids"] == [seed.card_id]
    assert rule["next_run_at"] is not None

    response = await client.put(f"{RULES}/{rule['id']}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.get(RULES, params={"is_active": False}, headers=admin_headers)
    assert [item["id"] for item in response.json()] == [rule["id"]]

    response = await client.delete(f"{RULES}/{rule['id']}", headers=admin_headers)
    assert response.status_code == 204
    response = await client.get(f"{RULES}/{rule['id']}", headers=admin_headers)
    assert response.status_code == 404


async def test_specific_cards_without_cards_rejected(client: AsyncClient, admin_headers, seed):
    response = await _create_rule(client, admin_headers, seed, scope="SPECIFIC_CARDS")
    assert response.status_code == 400


async def test_preview_then_run(client: AsyncClient, admin_headers, seed):
    await _fill_card(client, admin_headers, seed)
    rule = (await _create_rule(client, admin_headers, seed, mode="TRANSFER_TO_WAREHOUSE")).json()
    run = {"rule_id": rule["id"], "reset_at": "2024-07-01T00:00:00"}

    response = await client.post(f"{RULES}/preview", json=run, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"processed": 1, "reset": 1, "skipped": 0, "errors": [], "dry_run": True}

    response = await client.post(f"{RULES}/run", json=run, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["reset"] == 1

    params = {"location_id": seed.warehouse_id, "stock_item_id": seed.fuel_id, "as_of": "2024-07-01T00:00:00"}
    response = await client.get("/api/v1/stock/balance", params=params, headers=admin_headers)
    assert float(response.json()["balance"]) == 100

    response = await client.post(f"{RULES}/run", json=run, headers=admin_headers)
    assert response.json()["skipped"] == 1


async def test_dispatcher_may_preview_but_not_run(client: AsyncClient, admin_headers, make_user, seed):
    rule = (await _create_rule(client, admin_headers, seed)).json()
    headers = await make_user("dispatcher")

    response = await client.post(f"{RULES}/preview", json={"rule_id": rule["id"]}, headers=headers)
    assert response.status_code == 200

    response = await client.post(f"{RULES}/run", json={"rule_id": rule["id"]}, headers=headers)
    assert response.status_code == 403
