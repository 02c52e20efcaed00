"""Period lock entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class PeriodLock(Base, table=True):
    """Entity for a closed accounting month.

    ``data_hash`` is a SHA-256 fingerprint of the posted documents of the
    month taken when the period was closed. Verification recomputes it.

    Table: period_locks
    """

    __tablename__ = "period_locks"
    __table_args__ = (UniqueConstraint("organization_id", "period", name="uq_period_locks_org_period"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    period: str = Field(max_length=7)
    locked_by_user_id: Optional[str] = Field(default=None, max_length=64)
    locked_at: datetime = Field(default_factory=utc_now)
    data_hash: str = Field(max_length=64)
    record_count: int = Field(default=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    last_verified_at: Optional[datetime] = Field(default=None)
    last_verify_result: Optional[bool] = Field(default=None)

    def __repr__(self) -> str:
        return f"PeriodLock(id={self.id}, period={self.period})"
