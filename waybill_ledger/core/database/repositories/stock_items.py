"""Stock item repository."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.stock import StockItem
from .base import SQLModelRepository


class StockItemRepository(SQLModelRepository[StockItem]):
    """Repository for stock item data access operations."""

    default_order = (StockItem.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StockItem)
