"""
Vehicle entity model.

A vehicle carries its fuel consumption norms (summer and winter rates in
liters per 100 km plus percentage surcharges) and the readings that posting
keeps in sync: ``mileage`` and ``current_fuel``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class Vehicle(Base, table=True):
    """Entity for a fleet vehicle.

    Table: vehicles
    """

    __tablename__ = "vehicles"
    __table_args__ = (UniqueConstraint("organization_id", "registration_number", name="uq_vehicles_org_reg_number"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    registration_number: str = Field(max_length=32)
    brand: Optional[str] = Field(default=None, max_length=128)
    model: Optional[str] = Field(default=None, max_length=128)
    fuel_stock_item_id: Optional[str] = Field(default=None, foreign_key="stock_items.id", max_length=64)

    # Consumption norms
    summer_rate: Optional[Decimal] = Field(default=None, max_digits=8, decimal_places=2)
    winter_rate: Optional[Decimal] = Field(default=None, max_digits=8, decimal_places=2)
    city_increase_percent: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=2)
    warming_increase_percent: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=2)
    tank_capacity: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    # Readings synced by posting
    mileage: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=1)
    current_fuel: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=3)

    assigned_driver_id: Optional[str] = Field(default=None, foreign_key="drivers.id", max_length=64)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Vehicle(id={self.id}, registration_number={self.registration_number})"
