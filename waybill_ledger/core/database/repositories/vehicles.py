"""Vehicle repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.vehicles import Vehicle
from .base import SQLModelRepository


class VehicleRepository(SQLModelRepository[Vehicle]):
    """Repository for vehicle data access operations."""

    default_order = (Vehicle.registration_number,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Vehicle)

    async def get_by_registration_number(self, organization_id: str, registration_number: str) -> Optional[Vehicle]:
        stmt = select(Vehicle).where(
            (Vehicle.organization_id == organization_id) & (Vehicle.registration_number == registration_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
