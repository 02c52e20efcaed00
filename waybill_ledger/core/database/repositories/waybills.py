"""
Waybill repositories.

This module provides data access for waybills and their child rows, and the
chronological queries used by the posting rules: the last posted waybill of
a vehicle, earlier unposted waybills and the prefill source.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from waybill_ledger.core.models.domain.enums import WaybillStatus

from ..entities.waybills import Waybill, WaybillFuelLine, WaybillRoute
from .base import QueryBuilder, SQLModelRepository


class WaybillRepository(SQLModelRepository[Waybill]):
    """Repository for waybill data access operations using SQLModel."""

    default_order = (Waybill.date.desc(), Waybill.number.desc())  # type: ignore

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Waybill)

    async def list_page(
        self,
        organization_id: str,
        limit: int,
        offset: int,
        filters: Optional[Dict[str, Any]] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> Tuple[List[Waybill], int]:
        """List waybills newest first with a total count.

        Args:
            organization_id: Owning organization
            limit: Page size
            offset: Records to skip
            filters: Equality filters (status, vehicle_id, driver_id)
            date_from: Lower bound on ``date`` (inclusive)
            date_to: Upper bound on ``date`` (inclusive)

        Returns:
            Tuple of the page of waybills and the total number of matches
        """
        conditions = [Waybill.organization_id == organization_id]
        if date_from:
            conditions.append(Waybill.date >= date_from)
        if date_to:
            conditions.append(Waybill.date <= date_to)

        stmt = select(Waybill).where(*conditions)
        count_stmt = select(func.count()).select_from(Waybill).where(*conditions)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Waybill, filters)
            count_stmt = QueryBuilder.apply_filters(count_stmt, Waybill, filters)

        stmt = QueryBuilder.apply_pagination(stmt.order_by(*self.default_order), limit, offset)
        result = await self.session.execute(stmt)
        total = await self.session.execute(count_stmt)
        return list(result.scalars().all()), int(total.scalar_one())

    async def get_fuel_lines(self, waybill_id: str) -> List[WaybillFuelLine]:
        stmt = (
            select(WaybillFuelLine)
            .where(WaybillFuelLine.waybill_id == waybill_id)
            .order_by(WaybillFuelLine.line_index)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_routes(self, waybill_id: str) -> List[WaybillRoute]:
        stmt = select(WaybillRoute).where(WaybillRoute.waybill_id == waybill_id).order_by(WaybillRoute.sequence)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_fuel_lines(self, waybill_id: str, lines: Sequence[WaybillFuelLine]) -> List[WaybillFuelLine]:
        """Replace all fuel lines of a waybill, numbering them in order."""
        await self.session.execute(delete(WaybillFuelLine).where(WaybillFuelLine.waybill_id == waybill_id))
        for index, line in enumerate(lines):
            line.waybill_id = waybill_id
            line.line_index = index
            self.session.add(line)
        await self.session.flush()
        return list(lines)

    async def replace_routes(self, waybill_id: str, routes: Sequence[WaybillRoute]) -> List[WaybillRoute]:
        """Replace all routes of a waybill, numbering them in order."""
        await self.session.execute(delete(WaybillRoute).where(WaybillRoute.waybill_id == waybill_id))
        for index, route in enumerate(routes):
            route.waybill_id = waybill_id
            route.sequence = index
            self.session.add(route)
        await self.session.flush()
        return list(routes)

    async def delete_with_children(self, waybill: Waybill) -> None:
        await self.session.execute(delete(WaybillFuelLine).where(WaybillFuelLine.waybill_id == waybill.id))
        await self.session.execute(delete(WaybillRoute).where(WaybillRoute.waybill_id == waybill.id))
        await self.session.delete(waybill)
        await self.session.flush()

    async def last_posted_for_vehicle(
        self, organization_id: str, vehicle_id: str, exclude_id: Optional[str] = None
    ) -> Optional[Waybill]:
        """Get the latest POSTED waybill of a vehicle by date, then odometer end."""
        stmt = select(Waybill).where(
            (Waybill.organization_id == organization_id)
            & (Waybill.vehicle_id == vehicle_id)
            & (Waybill.status == WaybillStatus.posted.value)
        )
        if exclude_id:
            stmt = stmt.where(Waybill.id != exclude_id)
        stmt = stmt.order_by(Waybill.date.desc(), Waybill.odometer_end.desc()).limit(1)  # type: ignore
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def unposted_before(
        self, organization_id: str, vehicle_id: str, before: dt.date, exclude_id: Optional[str] = None
    ) -> List[Waybill]:
        """List DRAFT and SUBMITTED waybills of a vehicle dated before ``before``."""
        stmt = select(Waybill).where(
            (Waybill.organization_id == organization_id)
            & (Waybill.vehicle_id == vehicle_id)
            & (Waybill.status.in_([WaybillStatus.draft.value, WaybillStatus.submitted.value]))  # type: ignore
            & (Waybill.date < before)
        )
        if exclude_id:
            stmt = stmt.where(Waybill.id != exclude_id)
        result = await self.session.execute(stmt.order_by(Waybill.date.asc()))  # type: ignore
        return list(result.scalars().all())

    async def last_for_vehicle(
        self, organization_id: str, vehicle_id: str, on_or_before: Optional[dt.date] = None
    ) -> Optional[Waybill]:
        """Get the latest non-cancelled waybill of a vehicle."""
        stmt = select(Waybill).where(
            (Waybill.organization_id == organization_id)
            & (Waybill.vehicle_id == vehicle_id)
            & (Waybill.status != WaybillStatus.cancelled.value)
        )
        if on_or_before:
            stmt = stmt.where(Waybill.date <= on_or_before)
        stmt = stmt.order_by(Waybill.date.desc(), Waybill.created_at.desc()).limit(1)  # type: ignore
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def posted_in_range(self, organization_id: str, start: dt.date, end: dt.date) -> List[Waybill]:
        """List POSTED waybills with ``start <= date < end`` ordered by id."""
        stmt = (
            select(Waybill)
            .where(
                (Waybill.organization_id == organization_id)
                & (Waybill.status == WaybillStatus.posted.value)
                & (Waybill.date >= start)
                & (Waybill.date < end)
            )
            .order_by(Waybill.id.asc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for(self, **filters: Any) -> int:
        return await self.count(filters=filters)

    async def posted_with_totals(
        self,
        organization_id: str,
        date_from: dt.date,
        date_to: dt.date,
        vehicle_id: Optional[str] = None,
        driver_id: Optional[str] = None,
    ) -> List[Tuple[Waybill, Decimal, int]]:
        """List POSTED waybills dated within ``[date_from, date_to]`` with their totals.

        Args:
            organization_id: Owning organization
            date_from: First day (inclusive)
            date_to: Last day (inclusive)
            vehicle_id: Only this vehicle
            driver_id: Only this driver

        Returns:
            Tuples of the waybill, the fuel consumed over its lines and its number of routes
        """
        fuel = (
            select(
                WaybillFuelLine.waybill_id,
                func.coalesce(func.sum(WaybillFuelLine.fuel_consumed), 0).label("consumed"),
            )
            .group_by(WaybillFuelLine.waybill_id)
            .subquery()
        )
        routes = (
            select(WaybillRoute.waybill_id, func.count().label("routes"))
            .group_by(WaybillRoute.waybill_id)
            .subquery()
        )
        stmt = (
            select(Waybill, fuel.c.consumed, routes.c.routes)
            .outerjoin(fuel, fuel.c.waybill_id == Waybill.id)
            .outerjoin(routes, routes.c.waybill_id == Waybill.id)
            .where(
                (Waybill.organization_id == organization_id)
                & (Waybill.status == WaybillStatus.posted.value)
                & (Waybill.date >= date_from)
                & (Waybill.date <= date_to)
            )
            .order_by(Waybill.date.asc())  # type: ignore
        )
        stmt = QueryBuilder.apply_filters(stmt, Waybill, {"vehicle_id": vehicle_id, "driver_id": driver_id})
        result = await self.session.execute(stmt)
        return [
            (waybill, Decimal(str(consumed or 0)), int(route_count or 0))
            for waybill, consumed, route_count in result.all()
        ]
