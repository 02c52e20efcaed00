"""
Blank Endpoints.

Strict-accountability blanks are registered in batches, materialized into
individual numbered blanks, issued to drivers and consumed by waybills.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import BlankStatus, Permission
from waybill_ledger.core.models.io.blanks import (
    BlankBatchCreate,
    BlankBatchRead,
    BlankRead,
    IssueBlankRequest,
    IssueRangeRequest,
    IssueRangeResult,
    MaterializeResult,
    SpoilBlankRequest,
)
from waybill_ledger.server.services.deps import BlankServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.blank_read))]
ManagerDep = Annotated[Actor, Depends(require_permission(Permission.blank_manage))]


@router.post(
    "/batches",
    response_model=BlankBatchRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register Blank Batch",
    description="Register a series and number range of printed blanks. Blanks are created by materializing the batch.",
)
async def create_batch(data: BlankBatchCreate, actor: ManagerDep, service: BlankServiceDep) -> BlankBatchRead:
    return BlankBatchRead.model_validate(await service.create_batch(actor, data))


@router.get("/batches", response_model=List[BlankBatchRead], summary="List Blank Batches")
async def list_batches(actor: ReaderDep, service: BlankServiceDep) -> List[BlankBatchRead]:
    return [BlankBatchRead.model_validate(batch) for batch in await service.list_batches(actor)]


@router.post(
    "/batches/{batch_id}/materialize",
    response_model=MaterializeResult,
    summary="Materialize Blank Batch",
    description="Create an AVAILABLE blank for every number of the batch that does not exist yet. Idempotent.",
)
async def materialize_batch(batch_id: str, actor: ManagerDep, service: BlankServiceDep) -> MaterializeResult:
    created = await service.materialize_batch(actor, batch_id)
    return MaterializeResult(batch_id=batch_id, created=created)


@router.get("", response_model=List[BlankRead], summary="List Blanks")
async def list_blanks(
    actor: ReaderDep,
    service: BlankServiceDep,
    series: Optional[str] = None,
    status: Optional[BlankStatus] = None,
    driver_id: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> List[BlankRead]:
    blanks = await service.list_blanks(actor, series, status, driver_id, limit, offset)
    return [BlankRead.model_validate(blank) for blank in blanks]


@router.post(
    "/issue-range",
    response_model=IssueRangeResult,
    summary="Issue Blank Range",
    description="Issue every blank of a number range to a driver. All blanks must be AVAILABLE or nothing is issued.",
)
async def issue_range(data: IssueRangeRequest, actor: ManagerDep, service: BlankServiceDep) -> IssueRangeResult:
    issued = await service.issue_range(actor, data.series, data.number_from, data.number_to, data.driver_id)
    return IssueRangeResult(issued=issued)


@router.post("/{blank_id}/issue", response_model=BlankRead, summary="Issue Blank")
async def issue_blank(
    blank_id: str, data: IssueBlankRequest, actor: ManagerDep, service: BlankServiceDep
) -> BlankRead:
    return BlankRead.model_validate(await service.issue_blank(actor, blank_id, data.driver_id))


@router.post(
    "/{blank_id}/release",
    response_model=BlankRead,
    summary="Release Blank",
    description="Return a RESERVED blank to its previous state when no active waybill holds it.",
)
async def release_blank(blank_id: str, actor: ManagerDep, service: BlankServiceDep) -> BlankRead:
    return BlankRead.model_validate(await service.release(actor, blank_id))


@router.post("/{blank_id}/spoil", response_model=BlankRead, summary="Spoil Blank")
async def spoil_blank(
    blank_id: str, data: SpoilBlankRequest, actor: ManagerDep, service: BlankServiceDep
) -> BlankRead:
    return BlankRead.model_validate(await service.spoil(actor, blank_id, data.reason, data.note))
