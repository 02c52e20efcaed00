"""
Driver Endpoints.

CRUD for drivers and the summary of blanks a driver holds.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Response, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.blanks import DriverBlankSummary
from waybill_ledger.core.models.io.dictionaries import DriverCreate, DriverRead, DriverUpdate
from waybill_ledger.server.services.deps import BlankServiceDep, DriverServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_read))]
WriterDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_write))]


@router.get("", response_model=List[DriverRead], summary="List Drivers")
async def list_drivers(
    actor: ReaderDep, service: DriverServiceDep, is_active: Optional[bool] = None
) -> List[DriverRead]:
    return [DriverRead.model_validate(driver) for driver in await service.list(actor, is_active)]


@router.post("", response_model=DriverRead, status_code=status.HTTP_201_CREATED, summary="Create Driver")
async def create_driver(data: DriverCreate, actor: WriterDep, service: DriverServiceDep) -> DriverRead:
    return DriverRead.model_validate(await service.create(actor, data))


@router.get("/{driver_id}", response_model=DriverRead, summary="Get Driver")
async def get_driver(driver_id: str, actor: ReaderDep, service: DriverServiceDep) -> DriverRead:
    return DriverRead.model_validate(await service.get(actor, driver_id))


@router.put("/{driver_id}", response_model=DriverRead, summary="Update Driver")
async def update_driver(driver_id: str, data: DriverUpdate, actor: WriterDep, service: DriverServiceDep) -> DriverRead:
    return DriverRead.model_validate(await service.update(actor, driver_id, data))


@router.delete(
    "/{driver_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Driver",
    description="Delete a driver that no waybill or fuel card references. Deactivate referenced drivers instead.",
    responses={400: {"description": "Driver is in use"}},
)
async def delete_driver(driver_id: str, actor: WriterDep, service: DriverServiceDep) -> Response:
    await service.delete(actor, driver_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{driver_id}/blanks/summary",
    response_model=DriverBlankSummary,
    summary="Driver Blank Summary",
    description="Blanks held by a driver, grouped into contiguous number ranges by state.",
)
async def driver_blank_summary(
    driver_id: str,
    actor: Annotated[Actor, Depends(require_permission(Permission.blank_read))],
    service: BlankServiceDep,
) -> DriverBlankSummary:
    return await service.driver_summary(actor, driver_id)
