"""Key/value settings repository."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.app_settings import AppSetting
from .base import SQLModelRepository


class AppSettingRepository(SQLModelRepository[AppSetting]):
    """Repository for per-organization settings."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AppSetting)

    async def get_by_key(self, organization_id: str, key: str) -> Optional[AppSetting]:
        stmt = select(AppSetting).where((AppSetting.organization_id == organization_id) & (AppSetting.key == key))
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def upsert(self, organization_id: str, key: str, value: Any) -> AppSetting:
        setting = await self.get_by_key(organization_id, key)
        if setting is None:
            setting = AppSetting(organization_id=organization_id, key=key)
        setting.set_value(value)
        return await self.update(setting)
