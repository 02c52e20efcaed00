"""
Audit log entity model.

Append-only record of document changes. Old and new values are stored as
JSON strings for SQLModel compatibility.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class AuditLog(Base, table=True):
    """Entity for an audit trail entry.

    Table: audit_log
    """

    __tablename__ = "audit_log"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    user_id: Optional[str] = Field(default=None, max_length=64)
    action_type: str = Field(max_length=32)
    entity_type: str = Field(max_length=32, index=True)
    entity_id: str = Field(max_length=64, index=True)
    description: Optional[str] = Field(default=None, max_length=1000)
    old_value: Optional[str] = Field(default=None, description="JSON encoded previous state")
    new_value: Optional[str] = Field(default=None, description="JSON encoded new state")
    created_at: datetime = Field(default_factory=utc_now, index=True)

    def get_old_value(self) -> Optional[Any]:
        """Get the previous state as a Python object."""
        return json.loads(self.old_value) if self.old_value else None

    def get_new_value(self) -> Optional[Any]:
        """Get the new state as a Python object."""
        return json.loads(self.new_value) if self.new_value else None

    def __repr__(self) -> str:
        return f"AuditLog(id={self.id}, action={self.action_type}, entity={self.entity_type}:{self.entity_id})"
