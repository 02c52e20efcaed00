"""Fuel card reset rule repository."""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from waybill_ledger.core.models.domain.enums import ResetFrequency

from ..entities.reset_rules import FuelCardResetRule
from .base import SQLModelRepository


class FuelCardResetRuleRepository(SQLModelRepository[FuelCardResetRule]):
    """Repository for fuel card reset rule data access operations."""

    default_order = (FuelCardResetRule.created_at.desc(),)  # type: ignore

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, FuelCardResetRule)

    async def list_due(self, organization_id: str, moment: datetime) -> List[FuelCardResetRule]:
        """List active rules due at ``moment``. MANUAL rules are always due.

        Args:
            organization_id: Owning organization
            moment: Point in time the resets run at

        Returns:
            Due rules, oldest first
        """
        R = FuelCardResetRule
        stmt = (
            select(R)
            .where(
                (R.organization_id == organization_id)
                & (R.is_active == True)  # noqa: E712
                & or_(R.next_run_at <= moment, R.frequency == ResetFrequency.manual.value)  # type: ignore
            )
            .order_by(R.created_at.asc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
