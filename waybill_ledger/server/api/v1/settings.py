"""
Runtime Settings Endpoints.

Season boundaries decide whether winter fuel norms apply; app settings
override environment defaults for one organization.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.domain.seasons import SeasonSettings
from waybill_ledger.core.models.io.settings import AppSettings, AppSettingsUpdate
from waybill_ledger.server.services.deps import CurrentUserDep, SettingsServiceDep, require_permission

router = APIRouter()

WriterDep = Annotated[Actor, Depends(require_permission(Permission.settings_write))]


@router.get("/season", response_model=SeasonSettings, summary="Get Season Settings")
async def get_season_settings(actor: CurrentUserDep, service: SettingsServiceDep) -> SeasonSettings:
    return await service.get_season_settings(actor.organization_id)


@router.put(
    "/season",
    response_model=SeasonSettings,
    summary="Save Season Settings",
    description="Store either recurring yearly boundaries or a manual winter date range.",
)
async def save_season_settings(
    season: Annotated[SeasonSettings, Body()], actor: WriterDep, service: SettingsServiceDep
) -> SeasonSettings:
    return await service.save_season_settings(actor.organization_id, season)


@router.get("/app", response_model=AppSettings, summary="Get App Settings")
async def get_app_settings(actor: CurrentUserDep, service: SettingsServiceDep) -> AppSettings:
    return await service.get_app_settings(actor.organization_id)


@router.put("/app", response_model=AppSettings, summary="Update App Settings")
async def update_app_settings(data: AppSettingsUpdate, actor: WriterDep, service: SettingsServiceDep) -> AppSettings:
    return await service.update_app_settings(actor.organization_id, data)
