"""
Fuel card reset rule entity model.

The card ids of a SPECIFIC_CARDS rule are stored as a JSON string for
SQLModel compatibility.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class FuelCardResetRule(Base, table=True):
    """Entity for a rule that empties fuel cards once per period.

    Table: fuel_card_reset_rules
    """

    __tablename__ = "fuel_card_reset_rules"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    name: str = Field(max_length=255)
    frequency: str = Field(max_length=16)
    scope: str = Field(default="ALL_CARDS", max_length=32)
    card_ids: Optional[str] = Field(default=None, description="JSON encoded list of fuel card ids")
    mode: str = Field(default="EXPIRE_EXPENSE", max_length=32)
    stock_item_id: str = Field(foreign_key="stock_items.id", max_length=64)
    target_location_id: Optional[str] = Field(default=None, foreign_key="stock_locations.id", max_length=64)
    is_active: bool = Field(default=True)
    last_run_at: Optional[datetime] = Field(default=None)
    next_run_at: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_card_ids(self) -> List[str]:
        return json.loads(self.card_ids) if self.card_ids else []

    def set_card_ids(self, card_ids: Optional[List[str]]) -> None:
        self.card_ids = json.dumps(list(card_ids)) if card_ids else None

    def __repr__(self) -> str:
        return f"FuelCardResetRule(id={self.id}, name={self.name}, frequency={self.frequency})"
