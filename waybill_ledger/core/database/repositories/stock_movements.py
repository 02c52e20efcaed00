"""
Stock movement repository interface and implementation.

This module provides data access for the stock ledger, including the
balance aggregation. A balance is never stored: it is the signed sum of
non-void movements touching a location up to a point in time.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from waybill_ledger.core.models.domain.enums import StockMovementType

from ..entities.stock import StockMovement
from .base import QueryBuilder, SQLModelRepository

QUANTUM = Decimal("0.001")


def to_quantity(value: Any) -> Decimal:
    """Normalize a numeric database value to a 3-place Decimal."""
    if value is None:
        return Decimal("0").quantize(QUANTUM)
    return Decimal(str(value)).quantize(QUANTUM)


def signed_quantity(movement: StockMovement, location_id: str) -> Decimal:
    """Effect of one movement on the balance of ``location_id``.

    Args:
        movement: Ledger row
        location_id: Location whose balance is being computed

    Returns:
        Signed quantity (zero when the movement does not touch the location)
    """
    quantity = to_quantity(movement.quantity)
    if movement.movement_type == StockMovementType.transfer.value:
        if movement.to_stock_location_id == location_id:
            return quantity
        if movement.from_stock_location_id == location_id:
            return -quantity
        return Decimal("0")
    if movement.stock_location_id != location_id:
        return Decimal("0")
    if movement.movement_type == StockMovementType.expense.value:
        return -quantity
    return quantity


class StockMovementRepository(SQLModelRepository[StockMovement]):
    """Repository for stock ledger data access operations using SQLModel."""

    default_order = (
        StockMovement.occurred_at.desc(),  # type: ignore
        StockMovement.occurred_seq.desc(),  # type: ignore
        StockMovement.created_at.desc(),  # type: ignore
    )

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StockMovement)

    async def get_balance(self, location_id: str, stock_item_id: str, as_of: datetime) -> Decimal:
        """Compute the balance of an item at a location.

        Sums INCOME and ADJUSTMENT at the location, subtracts EXPENSE at the
        location, adds TRANSFER into it and subtracts TRANSFER out of it.
        Only non-void movements with ``occurred_at <= as_of`` count.

        Args:
            location_id: Stock location
            stock_item_id: Stock item
            as_of: Point in time (inclusive)

        Returns:
            Balance as a 3-place Decimal
        """
        M = StockMovement
        signed = case(
            (
                and_(M.movement_type == StockMovementType.transfer.value, M.to_stock_location_id == location_id),
                M.quantity,
            ),
            (
                and_(M.movement_type == StockMovementType.transfer.value, M.from_stock_location_id == location_id),
                -M.quantity,
            ),
            (
                and_(M.movement_type == StockMovementType.expense.value, M.stock_location_id == location_id),
                -M.quantity,
            ),
            (
                and_(
                    M.movement_type.in_(  # type: ignore[attr-defined]
                        [StockMovementType.income.value, StockMovementType.adjustment.value]
                    ),
                    M.stock_location_id == location_id,
                ),
                M.quantity,
            ),
            else_=0,
        )
        stmt = select(func.coalesce(func.sum(signed), 0)).where(
            (M.stock_item_id == stock_item_id)
            & (M.is_void == False)  # noqa: E712
            & (M.occurred_at <= as_of)
            & or_(
                M.stock_location_id == location_id,
                M.from_stock_location_id == location_id,
                M.to_stock_location_id == location_id,
            )
        )
        result = await self.session.execute(stmt)
        return to_quantity(result.scalar_one())

    async def get_balances(
        self,
        organization_id: str,
        as_of: datetime,
        location_id: Optional[str] = None,
        stock_item_id: Optional[str] = None,
    ) -> Dict[Tuple[str, str], Decimal]:
        """Compute balances of every (location, item) pair.

        Args:
            organization_id: Owning organization
            as_of: Point in time (inclusive)
            location_id: Restrict to one location
            stock_item_id: Restrict to one item

        Returns:
            Mapping of ``(location_id, stock_item_id)`` to balance
        """
        M = StockMovement
        stmt = select(M).where(
            (M.organization_id == organization_id)
            & (M.is_void == False)  # noqa: E712
            & (M.occurred_at <= as_of)
        )
        if stock_item_id:
            stmt = stmt.where(M.stock_item_id == stock_item_id)
        if location_id:
            stmt = stmt.where(
                or_(
                    M.stock_location_id == location_id,
                    M.from_stock_location_id == location_id,
                    M.to_stock_location_id == location_id,
                )
            )
        result = await self.session.execute(stmt)

        balances: Dict[Tuple[str, str], Decimal] = defaultdict(lambda: Decimal("0"))
        for movement in result.scalars().all():
            touched = {movement.stock_location_id, movement.from_stock_location_id, movement.to_stock_location_id}
            for touched_location in touched - {None}:
                if location_id and touched_location != location_id:
                    continue
                key = (touched_location, movement.stock_item_id)
                balances[key] += signed_quantity(movement, touched_location)
        return {key: to_quantity(value) for key, value in balances.items()}

    async def list_page(
        self,
        organization_id: str,
        limit: int,
        offset: int,
        filters: Optional[Dict[str, Any]] = None,
        location_id: Optional[str] = None,
        occurred_from: Optional[datetime] = None,
        occurred_to: Optional[datetime] = None,
        include_void: bool = False,
    ) -> Tuple[List[StockMovement], int]:
        """List movements newest first with a total count.

        Args:
            organization_id: Owning organization
            limit: Page size
            offset: Records to skip
            filters: Equality filters (stock_item_id, movement_type, document_type, document_id)
            location_id: Match movements touching this location on any side
            occurred_from: Lower bound on ``occurred_at`` (inclusive)
            occurred_to: Upper bound on ``occurred_at`` (inclusive)
            include_void: Include voided movements

        Returns:
            Tuple of the page of movements and the total number of matches
        """
        M = StockMovement
        conditions = [M.organization_id == organization_id]
        if not include_void:
            conditions.append(M.is_void == False)  # noqa: E712
        if location_id:
            conditions.append(
                or_(
                    M.stock_location_id == location_id,
                    M.from_stock_location_id == location_id,
                    M.to_stock_location_id == location_id,
                )
            )
        if occurred_from:
            conditions.append(M.occurred_at >= occurred_from)
        if occurred_to:
            conditions.append(M.occurred_at <= occurred_to)

        stmt = select(M).where(*conditions)
        count_stmt = select(func.count()).select_from(M).where(*conditions)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, M, filters)
            count_stmt = QueryBuilder.apply_filters(count_stmt, M, filters)

        stmt = QueryBuilder.apply_pagination(stmt.order_by(*self.default_order), limit, offset)
        result = await self.session.execute(stmt)
        total = await self.session.execute(count_stmt)
        return list(result.scalars().all()), int(total.scalar_one())

    async def get_by_external_ref(
        self, organization_id: str, external_ref: str, include_void: bool = True
    ) -> Optional[StockMovement]:
        stmt = select(StockMovement).where(
            (StockMovement.organization_id == organization_id) & (StockMovement.external_ref == external_ref)
        )
        if not include_void:
            stmt = stmt.where(StockMovement.is_void == False)  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_voided_versions(self, organization_id: str, base_ref: str) -> int:
        """Count voided movements carrying ``base_ref`` or one of its ``:vN`` versions.

        Used to version the external refs of re-posted documents.
        """
        stmt = (
            select(func.count())
            .select_from(StockMovement)
            .where(
                (StockMovement.organization_id == organization_id)
                & or_(
                    StockMovement.external_ref == base_ref,
                    StockMovement.external_ref.startswith(f"{base_ref}:v"),  # type: ignore[union-attr]
                )
                & (StockMovement.is_void == True)  # noqa: E712
            )
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_active_for_document(
        self, organization_id: str, document_type: str, document_id: str
    ) -> List[StockMovement]:
        stmt = (
            select(StockMovement)
            .where(
                (StockMovement.organization_id == organization_id)
                & (StockMovement.document_type == document_type)
                & (StockMovement.document_id == document_id)
                & (StockMovement.is_void == False)  # noqa: E712
            )
            .order_by(StockMovement.occurred_at.asc(), StockMovement.occurred_seq.asc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_in_range(self, organization_id: str, start: datetime, end: datetime) -> List[StockMovement]:
        """List non-void movements with ``start <= occurred_at < end`` ordered by id."""
        stmt = (
            select(StockMovement)
            .where(
                (StockMovement.organization_id == organization_id)
                & (StockMovement.is_void == False)  # noqa: E712
                & (StockMovement.occurred_at >= start)
                & (StockMovement.occurred_at < end)
            )
            .order_by(StockMovement.id.asc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_referencing_item(self, stock_item_id: str) -> int:
        return await self.count(filters={"stock_item_id": stock_item_id})
