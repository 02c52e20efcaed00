import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _register(client: AsyncClient, headers, series="AB", number_from=1, number_to=10):
    response = await client.post(
        "/api/v1/blanks/batches",
        json={"series": series, "number_from": number_from, "number_to": number_to},
        headers=headers,
    )
    assert response.status_code == 201
    batch_id = response.json()["id"]
    response = await client.post(f"/api/v1/blanks/batches/{batch_id}/materialize", headers=headers)
    assert response.status_code == 200
    return batch_id, response.json()["created"]


async def test_batch_registration_is_idempotent(client: AsyncClient, admin_headers):
    batch_id, created = await _register(client, admin_headers)
    assert created == 10

    response = await client.post(f"/api/v1/blanks/batches/{batch_id}/materialize", headers=admin_headers)
    assert response.json() == {"batch_id": batch_id, "created": 0}

    response = await client.get("/api/v1/blanks/batches", headers=admin_headers)
    assert [batch["series"] for batch in response.json()] == ["AB"]

    response = await client.get("/api/v1/blanks", params={"status": "AVAILABLE"}, headers=admin_headers)
    assert len(response.json()) == 10


async def test_reversed_batch_range_rejected(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/blanks/batches", json={"series": "AB", "number_from": 5, "number_to": 1}, headers=admin_headers
    )
    assert response.status_code == 422


async def test_issue_range_and_driver_summary(client: AsyncClient, admin_headers, seed):
    await _register(client, admin_headers)
    payload = {"series": "AB", "number_from": 3, "number_to": 6, "driver_id": seed.driver_id}
    response = await client.post("/api/v1/blanks/issue-range", json=payload, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"issued": 4}

    response = await client.post("/api/v1/blanks/issue-range", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "BLANK_NOT_AVAILABLE"

    response = await client.get(f"/api/v1/drivers/{seed.driver_id}/blanks/summary", headers=admin_headers)
    summary = response.json()
    assert summary["active"] == [{"series": "AB", "number_from": 3, "number_to": 6, "count": 4}]
    assert summary["used"] == []


async def test_issue_and_spoil_single_blank(client: AsyncClient, admin_headers, seed):
    await _register(client, admin_headers, number_to=2)
    blanks = (await client.get("/api/v1/blanks", headers=admin_headers)).json()
    blank_id = sorted(blanks, key=lambda blank: blank["number"])[0]["id"]

    response = await client.post(
        f"/api/v1/blanks/{blank_id}/issue", json={"driver_id": seed.driver_id}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ISSUED"
    assert response.json()["issued_to_driver_id"] == seed.driver_id

    response = await client.post(
        f"/api/v1/blanks/{blank_id}/spoil", json={"reason": "damaged", "note": "coffee"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "SPOILED"
    assert response.json()["spoil_reason"] == "damaged"

    response = await client.get("/api/v1/audit", params={"entity_type": "BLANK"}, headers=admin_headers)
    assert [entry["action_type"] for entry in response.json()] == ["BLANK_SPOIL"]


async def test_release_requires_reservation(client: AsyncClient, admin_headers):
    await _register(client, admin_headers, number_to=1)
    blank_id = (await client.get("/api/v1/blanks", headers=admin_headers)).json()[0]["id"]
    response = await client.post(f"/api/v1/blanks/{blank_id}/release", headers=admin_headers)
    assert response.status_code == 400


async def test_driver_sees_only_own_blanks(client: AsyncClient, admin_headers, make_user, seed):
    await _register(client, admin_headers)
    payload = {"series": "AB", "number_from": 1, "number_to": 2, "driver_id": seed.driver_id}
    await client.post("/api/v1/blanks/issue-range", json=payload, headers=admin_headers)

    headers = await make_user("driver", driver_id=seed.driver_id)

    response = await client.get("/api/v1/blanks", headers=headers)
    assert sorted(blank["number"] for blank in response.json()) == [1, 2]

    batch = {"series": "CD", "number_from": 1, "number_to": 2}
    response = await client.post("/api/v1/blanks/batches", json=batch, headers=headers)
    assert response.status_code == 403
