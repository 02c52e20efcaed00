"""
Blank repositories.

This module provides data access for blank batches and numbered blanks,
including the selection order used when a waybill needs a blank.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from waybill_ledger.core.models.domain.enums import BlankStatus

from ..entities.blanks import Blank, BlankBatch
from .base import QueryBuilder, SQLModelRepository


class BlankBatchRepository(SQLModelRepository[BlankBatch]):
    """Repository for blank batch data access operations."""

    default_order = (BlankBatch.series, BlankBatch.number_from)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, BlankBatch)


class BlankRepository(SQLModelRepository[Blank]):
    """Repository for blank data access operations."""

    default_order = (Blank.series, Blank.number)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Blank)

    async def existing_numbers(self, organization_id: str, series: str, number_from: int, number_to: int) -> Set[int]:
        """Get the numbers already registered for a series within a range."""
        stmt = select(Blank.number).where(
            (Blank.organization_id == organization_id)
            & (Blank.series == series)
            & (Blank.number >= number_from)
            & (Blank.number <= number_to)
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def list_range(self, organization_id: str, series: str, number_from: int, number_to: int) -> List[Blank]:
        stmt = (
            select(Blank)
            .where(
                (Blank.organization_id == organization_id)
                & (Blank.series == series)
                & (Blank.number >= number_from)
                & (Blank.number <= number_to)
            )
            .order_by(Blank.number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def next_issued_to_driver(self, organization_id: str, driver_id: str) -> Optional[Blank]:
        """Get the lowest-numbered blank issued to a driver and still unused."""
        stmt = (
            select(Blank)
            .where(
                (Blank.organization_id == organization_id)
                & (Blank.issued_to_driver_id == driver_id)
                & (Blank.status == BlankStatus.issued.value)
            )
            .order_by(*self.default_order)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def next_available(self, organization_id: str) -> Optional[Blank]:
        """Get the lowest-numbered blank from the organization pool."""
        stmt = (
            select(Blank)
            .where((Blank.organization_id == organization_id) & (Blank.status == BlankStatus.available.value))
            .order_by(*self.default_order)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_filtered(
        self,
        organization_id: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Blank]:
        stmt = select(Blank).where(Blank.organization_id == organization_id)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Blank, filters)
        stmt = QueryBuilder.apply_pagination(stmt.order_by(*self.default_order), limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_driver(self, organization_id: str, driver_id: str) -> List[Blank]:
        return await self.list_filtered(organization_id, {"issued_to_driver_id": driver_id})
