"""
Dictionary I/O models.

Create/Read/Update schemas for organizations, drivers, vehicles, fuel cards
and stock items. Update schemas are partial: only fields that are set are
applied.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Quantity


class OrganizationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    inn: Optional[str] = None
    is_active: bool
    created_at: datetime


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    inn: Optional[str] = Field(default=None, max_length=32)


class DriverCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    personnel_number: Optional[str] = Field(default=None, max_length=64)
    license_number: Optional[str] = Field(default=None, max_length=64)
    is_active: bool = True


class DriverUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    personnel_number: Optional[str] = Field(default=None, max_length=64)
    license_number: Optional[str] = Field(default=None, max_length=64)
    is_active: Optional[bool] = None


class DriverRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    personnel_number: Optional[str] = None
    license_number: Optional[str] = None
    is_active: bool
    created_at: datetime


class VehicleCreate(BaseModel):
    registration_number: str = Field(min_length=1, max_length=32)
    brand: Optional[str] = Field(default=None, max_length=128)
    model: Optional[str] = Field(default=None, max_length=128)
    fuel_stock_item_id: Optional[str] = None
    summer_rate: Optional[Decimal] = Field(default=None, ge=0, description="Liters per 100 km in summer")
    winter_rate: Optional[Decimal] = Field(default=None, ge=0, description="Liters per 100 km in winter")
    city_increase_percent: Optional[Decimal] = Field(default=None, ge=0)
    warming_increase_percent: Optional[Decimal] = Field(default=None, ge=0)
    tank_capacity: Optional[Decimal] = Field(default=None, gt=0)
    mileage: Decimal = Field(default=Decimal("0"), ge=0)
    current_fuel: Decimal = Field(default=Decimal("0"), ge=0)
    assigned_driver_id: Optional[str] = None
    is_active: bool = True


class VehicleUpdate(BaseModel):
    registration_number: Optional[str] = Field(default=None, min_length=1, max_length=32)
    brand: Optional[str] = Field(default=None, max_length=128)
    model: Optional[str] = Field(default=None, max_length=128)
    fuel_stock_item_id: Optional[str] = None
    summer_rate: Optional[Decimal] = Field(default=None, ge=0)
    winter_rate: Optional[Decimal] = Field(default=None, ge=0)
    city_increase_percent: Optional[Decimal] = Field(default=None, ge=0)
    warming_increase_percent: Optional[Decimal] = Field(default=None, ge=0)
    tank_capacity: Optional[Decimal] = Field(default=None, gt=0)
    mileage: Optional[Decimal] = Field(default=None, ge=0)
    current_fuel: Optional[Decimal] = Field(default=None, ge=0)
    assigned_driver_id: Optional[str] = None
    is_active: Optional[bool] = None


class VehicleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    registration_number: str
    brand: Optional[str] = None
    model: Optional[str] = None
    fuel_stock_item_id: Optional[str] = None
    summer_rate: Optional[Quantity] = None
    winter_rate: Optional[Quantity] = None
    city_increase_percent: Optional[Quantity] = None
    warming_increase_percent: Optional[Quantity] = None
    tank_capacity: Optional[Quantity] = None
    mileage: Quantity
    current_fuel: Quantity
    assigned_driver_id: Optional[str] = None
    is_active: bool
    created_at: datetime


class FuelCardCreate(BaseModel):
    card_number: str = Field(min_length=1, max_length=64)
    assigned_driver_id: Optional[str] = None
    is_active: bool = True


class FuelCardUpdate(BaseModel):
    card_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    assigned_driver_id: Optional[str] = None
    is_active: Optional[bool] = None


class FuelCardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    card_number: str
    assigned_driver_id: Optional[str] = None
    is_active: bool
    created_at: datetime


class StockItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, max_length=64)
    unit: str = Field(default="l", max_length=16)
    is_fuel: bool = True
    is_active: bool = True


class StockItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, max_length=64)
    unit: Optional[str] = Field(default=None, max_length=16)
    is_fuel: Optional[bool] = None
    is_active: Optional[bool] = None


class StockItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: Optional[str] = None
    unit: str
    is_fuel: bool
    is_active: bool
    created_at: datetime
