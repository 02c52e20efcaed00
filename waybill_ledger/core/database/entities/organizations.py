"""
Organization and user entity models.

Every other table is scoped by ``organization_id``. Users authenticate with
email and password and act within exactly one organization.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class Organization(Base, table=True):
    """Entity for a tenant organization.

    Table: organizations
    """

    __tablename__ = "organizations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    name: str = Field(max_length=255)
    inn: Optional[str] = Field(default=None, max_length=32)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Organization(id={self.id}, name={self.name})"


class User(Base, table=True):
    """Entity for an application user.

    ``driver_id`` links users with the ``driver`` role to the driver record
    whose waybills they may see and edit.

    Table: users
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str = Field(max_length=255)
    password_hash: str = Field(max_length=255)
    role: str = Field(max_length=32)
    driver_id: Optional[str] = Field(default=None, foreign_key="drivers.id", max_length=64)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, role={self.role})"
