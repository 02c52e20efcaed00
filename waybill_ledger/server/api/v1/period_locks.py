"""
Period Lock Endpoints.

Closing a month freezes every waybill and stock movement dated inside it
and stores a hash of that data for later verification.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission
from waybill_ledger.core.models.io.period_locks import PeriodLockCreate, PeriodLockRead, PeriodVerifyResult
from waybill_ledger.server.services.deps import PeriodLockServiceDep, require_permission

router = APIRouter()

LockerDep = Annotated[Actor, Depends(require_permission(Permission.period_lock))]
UnlockerDep = Annotated[Actor, Depends(require_permission(Permission.period_unlock))]


@router.get("", response_model=List[PeriodLockRead], summary="List Closed Periods")
async def list_locks(actor: LockerDep, service: PeriodLockServiceDep) -> List[PeriodLockRead]:
    return [PeriodLockRead.model_validate(lock) for lock in await service.list_locks(actor)]


@router.post(
    "",
    response_model=PeriodLockRead,
    status_code=status.HTTP_201_CREATED,
    summary="Close Period",
    responses={
        400: {"description": "Invalid period or nothing to close"},
        409: {"description": "Period already closed"},
    },
)
async def close_period(data: PeriodLockCreate, actor: LockerDep, service: PeriodLockServiceDep) -> PeriodLockRead:
    return PeriodLockRead.model_validate(await service.close_period(actor, data.period, data.notes))


@router.post(
    "/{lock_id}/verify",
    response_model=PeriodVerifyResult,
    summary="Verify Closed Period",
    description="Recompute the hash of a closed period and compare it with the stored one.",
)
async def verify_period(lock_id: str, actor: LockerDep, service: PeriodLockServiceDep) -> PeriodVerifyResult:
    return await service.verify_period(actor, lock_id)


@router.delete(
    "/{lock_id}",
    response_model=PeriodLockRead,
    summary="Reopen Period",
    description="Delete the lock of a period. Admin only.",
)
async def delete_lock(lock_id: str, actor: UnlockerDep, service: PeriodLockServiceDep) -> PeriodLockRead:
    return PeriodLockRead.model_validate(await service.delete_lock(actor, lock_id))
