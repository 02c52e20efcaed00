"""Fuel card repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.fuel_cards import FuelCard
from .base import SQLModelRepository


class FuelCardRepository(SQLModelRepository[FuelCard]):
    """Repository for fuel card data access operations."""

    default_order = (FuelCard.card_number,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, FuelCard)

    async def get_by_number(self, organization_id: str, card_number: str) -> Optional[FuelCard]:
        stmt = select(FuelCard).where(
            (FuelCard.organization_id == organization_id) & (FuelCard.card_number == card_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_active_for_driver(self, organization_id: str, driver_id: str) -> Optional[FuelCard]:
        """Get the active card assigned to a driver.

        Args:
            organization_id: Owning organization
            driver_id: Driver the card is assigned to

        Returns:
            The oldest active card of the driver, or None
        """
        stmt = (
            select(FuelCard)
            .where(
                (FuelCard.organization_id == organization_id)
                & (FuelCard.assigned_driver_id == driver_id)
                & (FuelCard.is_active == True)  # noqa: E712
            )
            .order_by(FuelCard.created_at.asc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
