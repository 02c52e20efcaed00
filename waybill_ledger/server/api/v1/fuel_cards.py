"""
Fuel Card Endpoints.

CRUD for fuel cards plus the two ledger operations on a card: topping it
up from the default warehouse and resetting its balance back.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Response, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.dictionaries import FuelCardCreate, FuelCardRead, FuelCardUpdate
from waybill_ledger.core.models.io.stock import FuelCardReset, FuelCardTopup, StockMovementRead
from waybill_ledger.server.services.deps import FuelCardServiceDep, LedgerServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_read))]
WriterDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_write))]
StockWriterDep = Annotated[Actor, Depends(require_permission(Permission.stock_write))]


@router.get("", response_model=List[FuelCardRead], summary="List Fuel Cards")
async def list_fuel_cards(
    actor: ReaderDep, service: FuelCardServiceDep, is_active: Optional[bool] = None
) -> List[FuelCardRead]:
    return [FuelCardRead.model_validate(card) for card in await service.list(actor, is_active)]


@router.post(
    "",
    response_model=FuelCardRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Fuel Card",
    responses={409: {"description": "Card number already exists"}},
)
async def create_fuel_card(data: FuelCardCreate, actor: WriterDep, service: FuelCardServiceDep) -> FuelCardRead:
    return FuelCardRead.model_validate(await service.create(actor, data))


@router.get("/{card_id}", response_model=FuelCardRead, summary="Get Fuel Card")
async def get_fuel_card(card_id: str, actor: ReaderDep, service: FuelCardServiceDep) -> FuelCardRead:
    return FuelCardRead.model_validate(await service.get(actor, card_id))


@router.put("/{card_id}", response_model=FuelCardRead, summary="Update Fuel Card")
async def update_fuel_card(
    card_id: str, data: FuelCardUpdate, actor: WriterDep, service: FuelCardServiceDep
) -> FuelCardRead:
    return FuelCardRead.model_validate(await service.update(actor, card_id, data))


@router.delete(
    "/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Fuel Card",
    responses={400: {"description": "Fuel card is in use"}},
)
async def delete_fuel_card(card_id: str, actor: WriterDep, service: FuelCardServiceDep) -> Response:
    await service.delete(actor, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{card_id}/topup",
    response_model=StockMovementRead,
    status_code=status.HTTP_201_CREATED,
    summary="Top Up Fuel Card",
    description="Transfer fuel from the default warehouse onto the card.",
    responses={400: {"description": "Insufficient stock in the warehouse"}},
)
async def topup_fuel_card(
    card_id: str, data: FuelCardTopup, actor: StockWriterDep, ledger: LedgerServiceDep
) -> StockMovementRead:
    return StockMovementRead.model_validate(await ledger.fuel_card_topup(actor, card_id, data))


@router.post(
    "/{card_id}/reset",
    response_model=Optional[StockMovementRead],
    summary="Reset Fuel Card",
    description="Move the whole positive balance of the card back to the default warehouse. "
    "Returns null when the card is already empty.",
)
async def reset_fuel_card(
    card_id: str, data: FuelCardReset, actor: StockWriterDep, ledger: LedgerServiceDep
) -> Optional[StockMovementRead]:
    movement = await ledger.fuel_card_reset(actor, card_id, data)
    return StockMovementRead.model_validate(movement) if movement else None
