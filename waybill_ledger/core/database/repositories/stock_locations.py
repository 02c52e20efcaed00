"""
Stock location repository.

Provides lookups of the special locations that the ledger creates on demand:
the default warehouse of an organization, the tank of a vehicle and the
balance of a fuel card.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from waybill_ledger.core.models.domain.enums import StockLocationType

from ..entities.stock import StockLocation
from .base import SQLModelRepository


class StockLocationRepository(SQLModelRepository[StockLocation]):
    """Repository for stock location data access operations."""

    default_order = (StockLocation.type, StockLocation.name)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StockLocation)

    async def get_default_warehouse(self, organization_id: str) -> Optional[StockLocation]:
        stmt = (
            select(StockLocation)
            .where(
                (StockLocation.organization_id == organization_id)
                & (StockLocation.type == StockLocationType.warehouse.value)
            )
            .order_by(StockLocation.is_default.desc(), StockLocation.created_at.asc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_vehicle(self, vehicle_id: str) -> Optional[StockLocation]:
        stmt = select(StockLocation).where(StockLocation.vehicle_id == vehicle_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_fuel_card(self, fuel_card_id: str) -> Optional[StockLocation]:
        stmt = select(StockLocation).where(StockLocation.fuel_card_id == fuel_card_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_organization(
        self, organization_id: str, location_type: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[StockLocation]:
        return await self.list(
            filters={"organization_id": organization_id, "type": location_type, "is_active": is_active}
        )
