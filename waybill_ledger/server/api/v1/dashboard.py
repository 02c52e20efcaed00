"""Dashboard Endpoints."""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.dashboard import DashboardStats
from waybill_ledger.server.services.deps import DashboardServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.waybill_read))]


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard Statistics",
    description="Mileage and fuel of posted waybills for the month, quarter and year to date, plus monthly charts.",
)
async def get_stats(
    actor: ReaderDep,
    service: DashboardServiceDep,
    vehicle_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> DashboardStats:
    return await service.get_stats(actor, vehicle_id=vehicle_id, date_from=date_from, date_to=date_to)
