"""
Fuel Card Reset Rule Endpoints.

Rules empty fuel cards once per month, quarter or year. ``/run`` executes
the due rules (or one rule) and ``/preview`` reports what a run would do
without writing anything.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Response, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.reset_rules import (
    ResetRuleCreate,
    ResetRuleRead,
    ResetRuleUpdate,
    ResetRunRequest,
    ResetRunResult,
)
from waybill_ledger.server.services.deps import ResetServiceDep, require_permission

router = APIRouter()

ReaderDep = Annotated[Actor, Depends(require_permission(Permission.stock_read))]
WriterDep = Annotated[Actor, Depends(require_permission(Permission.stock_write))]


@router.get("", response_model=List[ResetRuleRead], summary="List Reset Rules")
async def list_rules(
    actor: ReaderDep, service: ResetServiceDep, is_active: Optional[bool] = None
) -> List[ResetRuleRead]:
    return [ResetRuleRead.model_validate(rule) for rule in await service.list_rules(actor, is_active)]


@router.post(
    "",
    response_model=ResetRuleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Reset Rule",
    responses={400: {"description": "Invalid target or card list"}, 404: {"description": "Unknown item or card"}},
)
async def create_rule(data: ResetRuleCreate, actor: WriterDep, service: ResetServiceDep) -> ResetRuleRead:
    return ResetRuleRead.model_validate(await service.create_rule(actor, data))


@router.post(
    "/run",
    response_model=ResetRunResult,
    summary="Run Reset Rules",
    description="Run the due rules, or only ``rule_id`` whether due or not.",
)
async def run_resets(data: ResetRunRequest, actor: WriterDep, service: ResetServiceDep) -> ResetRunResult:
    return await service.run_resets(actor, reset_at=data.reset_at, rule_id=data.rule_id)


@router.post("/preview", response_model=ResetRunResult, summary="Preview Reset Run")
async def preview_resets(data: ResetRunRequest, actor: ReaderDep, service: ResetServiceDep) -> ResetRunResult:
    return await service.preview_resets(actor, reset_at=data.reset_at, rule_id=data.rule_id)


@router.get("/{rule_id}", response_model=ResetRuleRead, summary="Get Reset Rule")
async def get_rule(rule_id: str, actor: ReaderDep, service: ResetServiceDep) -> ResetRuleRead:
    return ResetRuleRead.model_validate(await service.get_rule(actor, rule_id))


@router.put("/{rule_id}", response_model=ResetRuleRead, summary="Update Reset Rule")
async def update_rule(
    rule_id: str, data: ResetRuleUpdate, actor: WriterDep, service: ResetServiceDep
) -> ResetRuleRead:
    return ResetRuleRead.model_validate(await service.update_rule(actor, rule_id, data))


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Reset Rule")
async def delete_rule(rule_id: str, actor: WriterDep, service: ResetServiceDep) -> Response:
    await service.delete_rule(actor, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
