from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio

# Load dotenv files early so test fixtures can read overrides via os.getenv
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent
load_dotenv(TEST_ROOT / ".env", override=False)

from test.settings import test_settings  # noqa: E402

# Configure the application before any of its modules are imported
os.environ["DATABASE_URL"] = test_settings.database_url
os.environ["JWT_SECRET"] = test_settings.jwt_secret
os.environ.setdefault("NORM_EXCESS_TOLERANCE", "0.10")

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from waybill_ledger.core.database.entities.drivers import Driver  # noqa: E402
from waybill_ledger.core.database.entities.fuel_cards import FuelCard  # noqa: E402
from waybill_ledger.core.database.entities.organizations import Organization, User  # noqa: E402
from waybill_ledger.core.database.entities.stock import StockItem, StockLocation  # noqa: E402
from waybill_ledger.core.database.entities.vehicles import Vehicle  # noqa: E402
from waybill_ledger.core.database.utils import create_all, create_sessionmaker  # noqa: E402
from waybill_ledger.core.models.domain.actor import Actor  # noqa: E402
from waybill_ledger.core.models.domain.enums import StockLocationType, UserRole  # noqa: E402
from waybill_ledger.core.security import hash_password  # noqa: E402


@pytest.fixture(scope="session")
def test_config():
    """Fixture providing test configuration from Pydantic settings model.

    Returns:
        TestSettings: Test configuration with all environment variables loaded
    """
    return test_settings


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        test_settings.database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(engine)() as session:
        yield session


@dataclass(frozen=True)
class Seed:
    """Ids of the reference data of one organization.

    Plain ids stay readable after a service rolls the session back.
    """

    organization_id: str
    admin_id: str
    driver_id: str
    fuel_id: str
    vehicle_id: str
    card_id: str
    warehouse_id: str

    @property
    def admin(self) -> Actor:
        return self.actor(UserRole.admin)

    def actor(self, role: UserRole, driver_id: Optional[str] = None) -> Actor:
        return Actor(user_id=self.admin_id, organization_id=self.organization_id, role=role, driver_id=driver_id)


async def create_seed(session: AsyncSession, name: str = "Fleet Co", email: str = "admin@fleet.test") -> Seed:
    organization = Organization(name=name)
    session.add(organization)
    await session.flush()

    admin = User(
        organization_id=organization.id,
        email=email,
        full_name="Admin",
        password_hash=hash_password("admin-password"),
        role=UserRole.admin.value,
    )
    driver = Driver(organization_id=organization.id, full_name="Ivan Petrov", personnel_number="17")
    fuel = StockItem(organization_id=organization.id, name="Diesel", code="DT")
    session.add_all([admin, driver, fuel])
    await session.flush()

    vehicle = Vehicle(
        organization_id=organization.id,
        registration_number="A123BC",
        fuel_stock_item_id=fuel.id,
        summer_rate=Decimal("10"),
        winter_rate=Decimal("12"),
        city_increase_percent=Decimal("10"),
        warming_increase_percent=Decimal("5"),
        mileage=Decimal("1000"),
        assigned_driver_id=driver.id,
    )
    card = FuelCard(organization_id=organization.id, card_number="7000-0001", assigned_driver_id=driver.id)
    warehouse = StockLocation(
        organization_id=organization.id,
        type=StockLocationType.warehouse.value,
        name="Main warehouse",
        is_default=True,
    )
    session.add_all([vehicle, card, warehouse])
    await session.commit()
    return Seed(
        organization_id=organization.id,
        admin_id=admin.id,
        driver_id=driver.id,
        fuel_id=fuel.id,
        vehicle_id=vehicle.id,
        card_id=card.id,
        warehouse_id=warehouse.id,
    )


@pytest_asyncio.fixture
async def seed(session: AsyncSession) -> Seed:
    return await create_seed(session)


@pytest_asyncio.fixture
async def other_seed(session: AsyncSession, seed: Seed) -> Seed:
    """Reference data of a second organization sharing the database."""
    return await create_seed(session, name="Other Co", email="admin@other.test")
