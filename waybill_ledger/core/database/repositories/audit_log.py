"""Audit log repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.audit_log import AuditLog
from .base import SQLModelRepository


class AuditLogRepository(SQLModelRepository[AuditLog]):
    """Repository for the append-only audit trail."""

    default_order = (AuditLog.created_at.desc(),)  # type: ignore

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuditLog)

    async def list_for_organization(
        self,
        organization_id: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[AuditLog]:
        scoped = {**(filters or {}), "organization_id": organization_id}
        return await self.list(limit=limit, offset=offset, filters=scoped)
