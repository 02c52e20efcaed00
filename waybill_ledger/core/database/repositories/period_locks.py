"""Period lock repository."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.period_locks import PeriodLock
from .base import SQLModelRepository


class PeriodLockRepository(SQLModelRepository[PeriodLock]):
    """Repository for period lock data access operations."""

    default_order = (PeriodLock.period.desc(),)  # type: ignore

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PeriodLock)

    async def get_by_period(self, organization_id: str, period: str) -> Optional[PeriodLock]:
        stmt = select(PeriodLock).where(
            (PeriodLock.organization_id == organization_id) & (PeriodLock.period == period)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_organization(self, organization_id: str) -> List[PeriodLock]:
        return await self.list(filters={"organization_id": organization_id})
