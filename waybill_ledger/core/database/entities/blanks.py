"""
Blank entity models.

Blanks are pre-numbered strict-accountability forms. They are registered in
batches (a series plus a number range), issued to drivers, reserved by draft
waybills and marked used when the waybill is posted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class BlankBatch(Base, table=True):
    """Entity for a registered range of blank numbers.

    Table: blank_batches
    """

    __tablename__ = "blank_batches"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    series: str = Field(max_length=16)
    number_from: int = Field(ge=1)
    number_to: int = Field(ge=1)
    created_by_user_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def size(self) -> int:
        return self.number_to - self.number_from + 1

    def __repr__(self) -> str:
        return f"BlankBatch(id={self.id}, series={self.series}, range={self.number_from}-{self.number_to})"


class Blank(Base, table=True):
    """Entity for a single numbered blank.

    ``return_status`` remembers the status held before a reservation so that
    releasing it puts the blank back with the same driver or in the pool.

    Table: blanks
    """

    __tablename__ = "blanks"
    __table_args__ = (UniqueConstraint("organization_id", "series", "number", name="uq_blanks_org_series_number"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    batch_id: Optional[str] = Field(default=None, foreign_key="blank_batches.id", max_length=64, index=True)
    series: str = Field(max_length=16)
    number: int = Field(ge=1)
    status: str = Field(default="AVAILABLE", max_length=16, index=True)
    return_status: Optional[str] = Field(default=None, max_length=16)

    issued_to_driver_id: Optional[str] = Field(default=None, foreign_key="drivers.id", max_length=64, index=True)
    issued_at: Optional[datetime] = Field(default=None)
    reserved_by_waybill_id: Optional[str] = Field(default=None, max_length=64)
    reserved_at: Optional[datetime] = Field(default=None)
    used_in_waybill_id: Optional[str] = Field(default=None, max_length=64)
    used_at: Optional[datetime] = Field(default=None)
    spoiled_at: Optional[datetime] = Field(default=None)
    spoil_reason: Optional[str] = Field(default=None, max_length=16)
    spoil_note: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Blank(id={self.id}, series={self.series}, number={self.number}, status={self.status})"
