"""
Audit Trail Endpoint.

Read-only access to the audit log of the caller's organization.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import AuditAction, AuditEntity, Permission
from waybill_ledger.core.models.io.audit import AuditLogRead
from waybill_ledger.server.services.deps import AuditServiceDep, require_permission

router = APIRouter()


@router.get(
    "",
    response_model=List[AuditLogRead],
    summary="List Audit Entries",
    description="List audit entries newest first, optionally for one entity or action type.",
)
async def list_audit_entries(
    actor: Annotated[Actor, Depends(require_permission(Permission.audit_read))],
    service: AuditServiceDep,
    entity_type: Optional[AuditEntity] = None,
    entity_id: Optional[str] = None,
    action_type: Optional[AuditAction] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> List[AuditLogRead]:
    entries = await service.list_entries(
        actor,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        action_type=action_type.value if action_type else None,
        limit=limit,
        offset=offset,
    )
    return [AuditLogRead.model_validate(entry) for entry in entries]
