"""Driver entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class Driver(Base, table=True):
    """Entity for a driver employed by an organization.

    Table: drivers
    """

    __tablename__ = "drivers"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    full_name: str = Field(max_length=255)
    personnel_number: Optional[str] = Field(default=None, max_length=64)
    license_number: Optional[str] = Field(default=None, max_length=64)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Driver(id={self.id}, full_name={self.full_name})"
