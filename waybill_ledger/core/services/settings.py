"""
Runtime settings service.

Settings live in the key/value ``app_settings`` table, one row per key and
organization. Missing rows fall back to defaults: recurring seasons for the
season settings and the environment configuration for the app settings.
"""

from __future__ import annotations

from pydantic import TypeAdapter

from waybill_ledger.core.database.repositories.app_settings import AppSettingRepository
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.seasons import DEFAULT_SEASON_SETTINGS, SeasonSettings
from waybill_ledger.core.models.io.settings import AppSettings, AppSettingsUpdate
from waybill_ledger.server.core.config import settings as env_settings

from .base import BaseService, transactional

logger = get_logger(__name__)

SEASON_KEY = "season"
APP_KEY = "app"

season_settings_adapter: TypeAdapter[SeasonSettings] = TypeAdapter(SeasonSettings)


class SettingsService(BaseService):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.repository = AppSettingRepository(session)

    async def get_season_settings(self, organization_id: str) -> SeasonSettings:
        setting = await self.repository.get_by_key(organization_id, SEASON_KEY)
        if setting is None:
            return DEFAULT_SEASON_SETTINGS
        return season_settings_adapter.validate_python(setting.get_value())

    @transactional
    async def save_season_settings(self, organization_id: str, season: SeasonSettings) -> SeasonSettings:
        await self.repository.upsert(organization_id, SEASON_KEY, season.model_dump(mode="json"))
        logger.info(f"Season settings of organization {organization_id} set to {season.type}")
        return season

    async def get_app_settings(self, organization_id: str) -> AppSettings:
        defaults = AppSettings(allow_delete_posted_waybills=env_settings.allow_delete_posted_waybills)
        setting = await self.repository.get_by_key(organization_id, APP_KEY)
        if setting is None:
            return defaults
        return defaults.model_copy(update=setting.get_value() or {})

    @transactional
    async def update_app_settings(self, organization_id: str, update: AppSettingsUpdate) -> AppSettings:
        current = await self.get_app_settings(organization_id)
        merged = current.model_copy(update=update.model_dump(exclude_unset=True, exclude_none=True))
        await self.repository.upsert(organization_id, APP_KEY, merged.model_dump(mode="json"))
        logger.info(f"App settings of organization {organization_id} updated")
        return merged
