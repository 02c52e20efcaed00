"""Driver repository."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.drivers import Driver
from .base import SQLModelRepository


class DriverRepository(SQLModelRepository[Driver]):
    """Repository for driver data access operations."""

    default_order = (Driver.full_name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Driver)
