from typing import AsyncGenerator, Callable, Dict

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from waybill_ledger.core.database import get_session
from waybill_ledger.server.main import app


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client whose requests share the test session."""

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


async def login(client: AsyncClient, email: str, password: str) -> Dict[str, str]:
    """Log in through the API and return the authorization header."""
    response = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient, seed) -> Dict[str, str]:
    return await login(client, "admin@fleet.test", "admin-password")


@pytest_asyncio.fixture
async def make_user(client: AsyncClient, admin_headers) -> Callable:
    """Factory creating a user of the seeded organization and returning its headers."""

    async def factory(role: str, driver_id=None) -> Dict[str, str]:
        email = f"{role}@fleet.test"
        payload = {
            "email": email,
            "full_name": role.title(),
            "password": f"{role}-password",
            "role": role,
            "driver_id": driver_id,
        }
        response = await client.post("/api/v1/users", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return await login(client, email, f"{role}-password")

    return factory
