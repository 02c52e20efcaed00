"""
Waybill entity models.

A waybill is a trip document for one vehicle and one driver. Its fuel lines
record refuels and consumption per stock item, and its routes record the
segments driven. Lines and routes are children of the waybill and are
replaced as a whole when the waybill is edited.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class Waybill(Base, table=True):
    """Entity for a waybill document.

    Table: waybills
    """

    __tablename__ = "waybills"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    number: str = Field(max_length=32, index=True)
    date: dt.date = Field(index=True)
    status: str = Field(default="DRAFT", max_length=16, index=True)

    vehicle_id: str = Field(foreign_key="vehicles.id", max_length=64, index=True)
    driver_id: str = Field(foreign_key="drivers.id", max_length=64, index=True)
    fuel_card_id: Optional[str] = Field(default=None, foreign_key="fuel_cards.id", max_length=64)
    blank_id: Optional[str] = Field(default=None, foreign_key="blanks.id", max_length=64)

    valid_from: Optional[dt.datetime] = Field(default=None)
    valid_to: Optional[dt.datetime] = Field(default=None)
    odometer_start: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=1)
    odometer_end: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=1)

    fuel_calculation_method: str = Field(default="BOILER", max_length=16)
    is_city_driving: bool = Field(default=False)
    is_warming: bool = Field(default=False)
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_by_user_id: Optional[str] = Field(default=None, max_length=64)
    approved_by_user_id: Optional[str] = Field(default=None, max_length=64)
    completed_by_user_id: Optional[str] = Field(default=None, max_length=64)
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Waybill(id={self.id}, number={self.number}, status={self.status})"


class WaybillFuelLine(Base, table=True):
    """Entity for the fuel accounting of one stock item on a waybill.

    Table: waybill_fuel_lines
    """

    __tablename__ = "waybill_fuel_lines"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    waybill_id: str = Field(foreign_key="waybills.id", max_length=64, index=True)
    line_index: int = Field(default=0)
    stock_item_id: str = Field(foreign_key="stock_items.id", max_length=64)

    fuel_start: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=3)
    fuel_received: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=3)
    fuel_consumed: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=3)
    fuel_end: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=3)
    fuel_planned: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=3)

    source_type: str = Field(default="FUEL_CARD", max_length=16)
    refueled_at: Optional[dt.datetime] = Field(default=None)

    def __repr__(self) -> str:
        return f"WaybillFuelLine(id={self.id}, waybill_id={self.waybill_id}, index={self.line_index})"


class WaybillRoute(Base, table=True):
    """Entity for a driven route segment.

    Table: waybill_routes
    """

    __tablename__ = "waybill_routes"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    waybill_id: str = Field(foreign_key="waybills.id", max_length=64, index=True)
    sequence: int = Field(default=0)
    from_point: Optional[str] = Field(default=None, max_length=255)
    to_point: Optional[str] = Field(default=None, max_length=255)
    distance_km: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=1)
    is_city_driving: bool = Field(default=False)
    is_warming: bool = Field(default=False)

    def __repr__(self) -> str:
        return f"WaybillRoute(id={self.id}, waybill_id={self.waybill_id}, sequence={self.sequence})"
