"""Fuel card entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class FuelCard(Base, table=True):
    """Entity for a fuel card, optionally assigned to a driver.

    Table: fuel_cards
    """

    __tablename__ = "fuel_cards"
    __table_args__ = (UniqueConstraint("organization_id", "card_number", name="uq_fuel_cards_org_number"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    card_number: str = Field(max_length=64)
    assigned_driver_id: Optional[str] = Field(default=None, foreign_key="drivers.id", max_length=64, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"FuelCard(id={self.id}, card_number={self.card_number})"
