"""
Stock Endpoints.

Stock items, locations, the movement ledger and balances.

Balances are always computed from the non-void movements up to a point in
time; nothing here stores a running total. Movements are never deleted:
they are voided individually or reversed per document through storno.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission, StockLocationType, StockMovementType
from waybill_ledger.core.models.io.dictionaries import StockItemCreate, StockItemRead, StockItemUpdate
from waybill_ledger.core.models.io.stock import (
    BalanceRead,
    CorrectionCreate,
    LocationBalanceRead,
    StockLocationRead,
    StockMovementCreate,
    StockMovementPage,
    StockMovementRead,
    StockMovementUpdate,
    StornoRequest,
    StornoResult,
    VoidRequest,
    WarehouseCreate,
)
from waybill_ledger.core.timeutils import to_naive_utc, utc_now
from waybill_ledger.server.services.deps import (
    LedgerServiceDep,
    StockItemServiceDep,
    StockLocationServiceDep,
    require_permission,
)

router = APIRouter()

DictionaryReaderDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_read))]
DictionaryWriterDep = Annotated[Actor, Depends(require_permission(Permission.dictionary_write))]
StockReaderDep = Annotated[Actor, Depends(require_permission(Permission.stock_read))]
StockWriterDep = Annotated[Actor, Depends(require_permission(Permission.stock_write))]
StockVoiderDep = Annotated[Actor, Depends(require_permission(Permission.stock_void))]


# =====================================================================
# Stock items
# =====================================================================


@router.get("/items", response_model=List[StockItemRead], summary="List Stock Items")
async def list_stock_items(
    actor: DictionaryReaderDep, service: StockItemServiceDep, is_active: Optional[bool] = None
) -> List[StockItemRead]:
    return [StockItemRead.model_validate(item) for item in await service.list(actor, is_active)]


@router.post("/items", response_model=StockItemRead, status_code=status.HTTP_201_CREATED, summary="Create Stock Item")
async def create_stock_item(
    data: StockItemCreate, actor: DictionaryWriterDep, service: StockItemServiceDep
) -> StockItemRead:
    return StockItemRead.model_validate(await service.create(actor, data))


@router.get("/items/{item_id}", response_model=StockItemRead, summary="Get Stock Item")
async def get_stock_item(item_id: str, actor: DictionaryReaderDep, service: StockItemServiceDep) -> StockItemRead:
    return StockItemRead.model_validate(await service.get(actor, item_id))


@router.put("/items/{item_id}", response_model=StockItemRead, summary="Update Stock Item")
async def update_stock_item(
    item_id: str, data: StockItemUpdate, actor: DictionaryWriterDep, service: StockItemServiceDep
) -> StockItemRead:
    return StockItemRead.model_validate(await service.update(actor, item_id, data))


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Stock Item",
    responses={400: {"description": "Stock item is referenced by movements or vehicles"}},
)
async def delete_stock_item(item_id: str, actor: DictionaryWriterDep, service: StockItemServiceDep) -> Response:
    await service.delete(actor, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =====================================================================
# Locations
# =====================================================================


@router.get("/locations", response_model=List[StockLocationRead], summary="List Stock Locations")
async def list_locations(
    actor: StockReaderDep,
    service: StockLocationServiceDep,
    type: Optional[StockLocationType] = None,
    is_active: Optional[bool] = None,
) -> List[StockLocationRead]:
    locations = await service.list_locations(actor, type, is_active)
    return [StockLocationRead.model_validate(location) for location in locations]


@router.post(
    "/locations",
    response_model=StockLocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Warehouse",
    description="Create a warehouse location. Tank and card locations are created automatically.",
)
async def create_warehouse(
    data: WarehouseCreate, actor: StockWriterDep, service: StockLocationServiceDep
) -> StockLocationRead:
    return StockLocationRead.model_validate(await service.create_warehouse(actor, data.name, data.is_default))


# =====================================================================
# Movements
# =====================================================================


@router.post(
    "/movements",
    response_model=StockMovementRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Stock Movement",
    description="Record a manual INCOME, EXPENSE, TRANSFER or ADJUSTMENT.",
    responses={
        400: {"description": "Invalid movement, insufficient stock or closed period"},
        409: {"description": "Duplicate external reference"},
    },
)
async def create_movement(
    data: StockMovementCreate, actor: StockWriterDep, ledger: LedgerServiceDep
) -> StockMovementRead:
    """
    Record a movement.

    - **INCOME / EXPENSE / ADJUSTMENT**: require `stock_location_id`.
    - **TRANSFER**: requires distinct `from_stock_location_id` and `to_stock_location_id`.
    - **EXPENSE / TRANSFER** are rejected when the source balance at `occurred_at` is too low.
    """
    return StockMovementRead.model_validate(await ledger.create_movement(actor, data))


@router.get("/movements", response_model=StockMovementPage, summary="List Stock Movements")
async def list_movements(
    actor: StockReaderDep,
    ledger: LedgerServiceDep,
    stock_item_id: Optional[str] = None,
    location_id: Optional[str] = None,
    movement_type: Optional[StockMovementType] = None,
    document_type: Optional[str] = None,
    document_id: Optional[str] = None,
    occurred_from: Optional[datetime] = None,
    occurred_to: Optional[datetime] = None,
    include_void: bool = False,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=200),
) -> StockMovementPage:
    items, total = await ledger.list_movements(
        actor,
        stock_item_id=stock_item_id,
        location_id=location_id,
        movement_type=movement_type,
        document_type=document_type,
        document_id=document_id,
        occurred_from=occurred_from,
        occurred_to=occurred_to,
        include_void=include_void,
        page=page,
        page_size=page_size,
    )
    return StockMovementPage(
        items=[StockMovementRead.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/movements/{movement_id}", response_model=StockMovementRead, summary="Get Stock Movement")
async def get_movement(movement_id: str, actor: StockReaderDep, ledger: LedgerServiceDep) -> StockMovementRead:
    return StockMovementRead.model_validate(await ledger.get_movement(actor, movement_id))


@router.patch(
    "/movements/{movement_id}",
    response_model=StockMovementRead,
    summary="Update Stock Movement",
    description="Edit a manual movement. Movements generated by documents are reversed through storno instead.",
)
async def update_movement(
    movement_id: str, data: StockMovementUpdate, actor: StockWriterDep, ledger: LedgerServiceDep
) -> StockMovementRead:
    return StockMovementRead.model_validate(await ledger.update_movement(actor, movement_id, data))


@router.delete(
    "/movements/{movement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Stock Movement",
    description="Always rejected: the ledger is append-only. Void the movement instead.",
    responses={403: {"description": "Hard delete is disabled"}},
)
async def delete_movement(movement_id: str, actor: StockVoiderDep, ledger: LedgerServiceDep) -> Response:
    await ledger.delete_movement(actor, movement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/movements/{movement_id}/void", response_model=StockMovementRead, summary="Void Stock Movement")
async def void_movement(
    movement_id: str, data: VoidRequest, actor: StockVoiderDep, ledger: LedgerServiceDep
) -> StockMovementRead:
    return StockMovementRead.model_validate(await ledger.void_movement(actor, movement_id, data.reason))


@router.post(
    "/corrections",
    response_model=StockMovementRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Correction",
    description="Add a signed ADJUSTMENT to a balance under a new correction document.",
)
async def create_correction(
    data: CorrectionCreate, actor: StockWriterDep, ledger: LedgerServiceDep
) -> StockMovementRead:
    return StockMovementRead.model_validate(await ledger.create_correction(actor, data))


@router.post(
    "/storno",
    response_model=StornoResult,
    summary="Storno Document",
    description="Void every active movement generated by a document.",
    responses={404: {"description": "The document has no active movements"}},
)
async def storno_document(data: StornoRequest, actor: StockVoiderDep, ledger: LedgerServiceDep) -> StornoResult:
    count = await ledger.storno_document(actor, data.document_type, data.document_id, data.reason)
    return StornoResult(document_type=data.document_type.value, document_id=data.document_id, voided_count=count)


# =====================================================================
# Balances
# =====================================================================


@router.get("/balance", response_model=BalanceRead, summary="Get Balance")
async def get_balance(
    actor: StockReaderDep,
    ledger: LedgerServiceDep,
    location_id: str,
    stock_item_id: str,
    as_of: Optional[datetime] = None,
) -> BalanceRead:
    """Balance of one item at one location as of `as_of` (inclusive, default now)."""
    moment = to_naive_utc(as_of) or utc_now()
    balance = await ledger.get_balance(actor.organization_id, location_id, stock_item_id, moment)
    return BalanceRead(stock_location_id=location_id, stock_item_id=stock_item_id, as_of=moment, balance=balance)


@router.get("/balances", response_model=List[BalanceRead], summary="List Balances")
async def list_balances(
    actor: StockReaderDep,
    ledger: LedgerServiceDep,
    location_id: Optional[str] = None,
    stock_item_id: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> List[BalanceRead]:
    return await ledger.balances(actor, location_id, stock_item_id, as_of)


@router.get("/balances/by-location", response_model=List[LocationBalanceRead], summary="Balances by Location")
async def list_location_balances(
    actor: StockReaderDep, ledger: LedgerServiceDep, as_of: Optional[datetime] = None
) -> List[LocationBalanceRead]:
    return await ledger.location_balances(actor, as_of)
