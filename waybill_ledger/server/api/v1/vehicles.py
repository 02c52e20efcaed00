"""
Vehicle Endpoints.

Vehicles carry the fuel norms used for planned consumption. Mileage and
current fuel are kept in sync by waybill posting.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Response, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.dictionaries import VehicleCreate, VehicleRead, VehicleUpdate
from waybill_ledger.server.services.deps import VehicleServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_read))]
WriterDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_write))]


@router.get("", response_model=List[VehicleRead], summary="List Vehicles")
async def list_vehicles(
    actor: ReaderDep, service: VehicleServiceDep, is_active: Optional[bool] = None
) -> List[VehicleRead]:
    return [VehicleRead.model_validate(vehicle) for vehicle in await service.list(actor, is_active)]


@router.post(
    "",
    response_model=VehicleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Vehicle",
    responses={409: {"description": "Registration number already exists"}},
)
async def create_vehicle(data: VehicleCreate, actor: WriterDep, service: VehicleServiceDep) -> VehicleRead:
    return VehicleRead.model_validate(await service.create(actor, data))


@router.get("/{vehicle_id}", response_model=VehicleRead, summary="Get Vehicle")
async def get_vehicle(vehicle_id: str, actor: ReaderDep, service: VehicleServiceDep) -> VehicleRead:
    return VehicleRead.model_validate(await service.get(actor, vehicle_id))


@router.put("/{vehicle_id}", response_model=VehicleRead, summary="Update Vehicle")
async def update_vehicle(
    vehicle_id: str, data: VehicleUpdate, actor: WriterDep, service: VehicleServiceDep
) -> VehicleRead:
    return VehicleRead.model_validate(await service.update(actor, vehicle_id, data))


@router.delete(
    "/{vehicle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Vehicle",
    responses={400: {"description": "Vehicle is in use"}},
)
async def delete_vehicle(vehicle_id: str, actor: WriterDep, service: VehicleServiceDep) -> Response:
    await service.delete(actor, vehicle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
