"""Key/value settings entity model."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class AppSetting(Base, table=True):
    """Entity for a per-organization setting stored as a JSON string.

    Table: app_settings
    """

    __tablename__ = "app_settings"
    __table_args__ = (UniqueConstraint("organization_id", "key", name="uq_app_settings_org_key"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    key: str = Field(max_length=64)
    value: str = Field(default="{}", description="JSON encoded setting value")
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_value(self) -> Any:
        return json.loads(self.value) if self.value else None

    def set_value(self, value: Any) -> None:
        self.value = json.dumps(value)
