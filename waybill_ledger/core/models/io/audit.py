"""Audit trail I/O models."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from waybill_ledger.core.models.domain.enums import AuditAction, AuditEntity


class AuditLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    action_type: AuditAction
    entity_type: AuditEntity
    entity_id: str
    description: Optional[str] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    created_at: datetime

    @field_validator("old_value", "new_value", mode="before")
    @classmethod
    def _decode(cls, value: Any) -> Any:
        """Stored states are JSON text."""
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value
