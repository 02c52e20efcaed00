"""
Waybill Endpoints.

CRUD for waybills, the status transition endpoint that posts to and
reverses from the stock ledger, and prefill of a new waybill from the
history of a vehicle.
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import BlankAction, Permission, WaybillStatus
from waybill_ledger.core.models.io.waybills import (
    PrefillRead,
    StatusChangeRequest,
    WaybillCreate,
    WaybillPage,
    WaybillRead,
    WaybillUpdate,
)
from waybill_ledger.core.services.waybills import WaybillDetails
from waybill_ledger.server.services.deps import CurrentUserDep, WaybillServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.waybill_read))]
CreatorDep = Annotated[Actor, Depends(require_permission(Permission.waybill_create))]
EditorDep = Annotated[Actor, Depends(require_permission(Permission.waybill_edit))]
DeleterDep = Annotated[Actor, Depends(require_permission(Permission.waybill_delete))]


def _read(details: WaybillDetails) -> WaybillRead:
    return WaybillRead.from_entities(details.waybill, details.fuel_lines, details.routes)


@router.get("", response_model=WaybillPage, summary="List Waybills")
async def list_waybills(
    actor: ReaderDep,
    service: WaybillServiceDep,
    status: Optional[WaybillStatus] = None,
    vehicle_id: Optional[str] = None,
    driver_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=200),
) -> WaybillPage:
    """
    List waybills newest first.

    Users with the driver role only see the waybills of their own driver.
    """
    items, total = await service.list_waybills(
        actor, status, vehicle_id, driver_id, date_from, date_to, page=page, page_size=page_size
    )
    return WaybillPage(items=[_read(item) for item in items], total=total, page=page, page_size=page_size)


@router.get(
    "/prefill/{vehicle_id}",
    response_model=PrefillRead,
    summary="Prefill Waybill",
    description="Suggest driver, odometer and fuel values for the next waybill of a vehicle.",
)
async def prefill_waybill(
    vehicle_id: str, actor: CreatorDep, service: WaybillServiceDep, on_date: Optional[date] = None
) -> PrefillRead:
    return await service.prefill(actor, vehicle_id, on_date)


@router.post(
    "",
    response_model=WaybillRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Waybill",
    description="Create a DRAFT waybill and reserve a blank for it.",
    responses={
        400: {"description": "Invalid data, closed period or no blank available"},
        404: {"description": "Vehicle, driver, card or stock item not found"},
    },
)
async def create_waybill(data: WaybillCreate, actor: CreatorDep, service: WaybillServiceDep) -> WaybillRead:
    """
    Create a waybill.

    - **fuel_calculation_method**: `BOILER` needs both odometer readings, `SEGMENTS`
      needs routes with distances and `MIXED` needs both.
    - **fuel_lines**: `fuel_planned` and `fuel_end` are computed when omitted.
    """
    return _read(await service.create_waybill(actor, data))


@router.get("/{waybill_id}", response_model=WaybillRead, summary="Get Waybill")
async def get_waybill(waybill_id: str, actor: ReaderDep, service: WaybillServiceDep) -> WaybillRead:
    return _read(await service.get_waybill(actor, waybill_id))


@router.put(
    "/{waybill_id}",
    response_model=WaybillRead,
    summary="Update Waybill",
    description="Edit a DRAFT or SUBMITTED waybill. Fuel lines and routes are replaced when given.",
)
async def update_waybill(
    waybill_id: str, data: WaybillUpdate, actor: EditorDep, service: WaybillServiceDep
) -> WaybillRead:
    return _read(await service.update_waybill(actor, waybill_id, data))


@router.delete(
    "/{waybill_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Waybill",
    description="Delete a waybill. Its reserved blank is returned or spoiled according to `blank_action`.",
    responses={400: {"description": "POSTED waybill or closed period"}},
)
async def delete_waybill(
    waybill_id: str,
    actor: DeleterDep,
    service: WaybillServiceDep,
    blank_action: BlankAction = BlankAction.release,
) -> Response:
    await service.delete_waybill(actor, waybill_id, blank_action)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{waybill_id}/status",
    response_model=WaybillRead,
    summary="Change Waybill Status",
    description="Move a waybill through DRAFT, SUBMITTED, POSTED and CANCELLED.",
    responses={
        400: {"description": "Invalid transition or a posting rule failed"},
        403: {"description": "Permission for the transition is missing"},
    },
)
async def change_status(
    waybill_id: str, data: StatusChangeRequest, actor: CurrentUserDep, service: WaybillServiceDep
) -> WaybillRead:
    """
    Change the status of a waybill.

    Posting records the refuels and the consumption in the stock ledger and
    marks the blank as used. Returning a POSTED waybill to DRAFT reverses
    those movements; **reason** is stored on the voided movements.
    """
    return _read(await service.change_status(actor, waybill_id, data.status, data.reason))
