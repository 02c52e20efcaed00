"""
Audit trail service.

Writes and lists append-only audit entries. Values are stored as JSON with
``Decimal`` and datetime values rendered as strings.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

from waybill_ledger.core.database.entities.audit_log import AuditLog
from waybill_ledger.core.database.repositories.audit_log import AuditLogRepository
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import AuditAction, AuditEntity

from .base import BaseService


def _to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, ensure_ascii=False, sort_keys=True)


class AuditService(BaseService):
    """Records who changed what."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.repository = AuditLogRepository(session)

    async def record(
        self,
        actor: Actor,
        action: AuditAction,
        entity_type: AuditEntity,
        entity_id: str,
        description: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
    ) -> AuditLog:
        """
        Append an audit entry inside the caller's transaction.

        Args:
            actor: User performing the change
            action: Kind of change
            entity_type: Kind of entity changed
            entity_id: Identifier of the entity
            description: Human readable summary
            old_value: State before the change (JSON serializable)
            new_value: State after the change (JSON serializable)

        Returns:
            The flushed audit entry
        """
        entry = AuditLog(
            organization_id=actor.organization_id,
            user_id=actor.user_id,
            action_type=AuditAction(action).value,
            entity_type=AuditEntity(entity_type).value,
            entity_id=entity_id,
            description=description,
            old_value=_to_json(old_value),
            new_value=_to_json(new_value),
        )
        return await self.repository.create(entry)

    async def list_entries(
        self,
        actor: Actor,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        action_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditLog]:
        return await self.repository.list_for_organization(
            actor.organization_id,
            filters={"entity_type": entity_type, "entity_id": entity_id, "action_type": action_type},
            limit=limit,
            offset=offset,
        )
