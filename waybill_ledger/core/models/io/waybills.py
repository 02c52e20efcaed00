"""
Waybill I/O models.

Fuel lines and routes are nested in the create and update payloads and are
always replaced as a whole.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from waybill_ledger.core.models.domain.enums import (
    FuelCalculationMethod,
    FuelSourceType,
    WaybillStatus,
)

from .common import Quantity


class FuelLineInput(BaseModel):
    stock_item_id: str
    fuel_start: Optional[Decimal] = Field(default=None, ge=0)
    fuel_received: Optional[Decimal] = Field(default=None, ge=0)
    fuel_consumed: Optional[Decimal] = Field(default=None, ge=0)
    fuel_end: Optional[Decimal] = Field(default=None, ge=0, description="Computed when omitted")
    fuel_planned: Optional[Decimal] = Field(default=None, ge=0, description="Computed from the norms when omitted")
    source_type: FuelSourceType = FuelSourceType.fuel_card
    refueled_at: Optional[dt.datetime] = None


class FuelLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    line_index: int
    stock_item_id: str
    fuel_start: Optional[Quantity] = None
    fuel_received: Optional[Quantity] = None
    fuel_consumed: Optional[Quantity] = None
    fuel_end: Optional[Quantity] = None
    fuel_planned: Optional[Quantity] = None
    source_type: FuelSourceType
    refueled_at: Optional[dt.datetime] = None


class RouteInput(BaseModel):
    from_point: Optional[str] = Field(default=None, max_length=255)
    to_point: Optional[str] = Field(default=None, max_length=255)
    distance_km: Optional[Decimal] = Field(default=None, ge=0)
    is_city_driving: bool = False
    is_warming: bool = False


class RouteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sequence: int
    from_point: Optional[str] = None
    to_point: Optional[str] = None
    distance_km: Optional[Quantity] = None
    is_city_driving: bool
    is_warming: bool


class WaybillCreate(BaseModel):
    """Schema for creating a DRAFT waybill."""

    date: dt.date
    vehicle_id: str
    driver_id: str
    number: Optional[str] = Field(
        default=None, max_length=32, description="Used only when no blank can be reserved"
    )
    blank_id: Optional[str] = Field(default=None, description="Blank to reserve; the next free one when omitted")
    fuel_card_id: Optional[str] = None
    valid_from: Optional[dt.datetime] = None
    valid_to: Optional[dt.datetime] = None
    odometer_start: Optional[Decimal] = Field(default=None, ge=0)
    odometer_end: Optional[Decimal] = Field(default=None, ge=0)
    fuel_calculation_method: FuelCalculationMethod = FuelCalculationMethod.boiler
    is_city_driving: bool = False
    is_warming: bool = False
    notes: Optional[str] = Field(default=None, max_length=1000)
    fuel_lines: List[FuelLineInput] = Field(default_factory=list)
    routes: List[RouteInput] = Field(default_factory=list)


class WaybillUpdate(BaseModel):
    """Schema for editing a DRAFT or SUBMITTED waybill. Unset fields are kept."""

    date: Optional[dt.date] = None
    vehicle_id: Optional[str] = None
    driver_id: Optional[str] = None
    fuel_card_id: Optional[str] = None
    valid_from: Optional[dt.datetime] = None
    valid_to: Optional[dt.datetime] = None
    odometer_start: Optional[Decimal] = Field(default=None, ge=0)
    odometer_end: Optional[Decimal] = Field(default=None, ge=0)
    fuel_calculation_method: Optional[FuelCalculationMethod] = None
    is_city_driving: Optional[bool] = None
    is_warming: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    fuel_lines: Optional[List[FuelLineInput]] = None
    routes: Optional[List[RouteInput]] = None


class WaybillRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    number: str
    date: dt.date
    status: WaybillStatus
    vehicle_id: str
    driver_id: str
    fuel_card_id: Optional[str] = None
    blank_id: Optional[str] = None
    valid_from: Optional[dt.datetime] = None
    valid_to: Optional[dt.datetime] = None
    odometer_start: Optional[Quantity] = None
    odometer_end: Optional[Quantity] = None
    fuel_calculation_method: FuelCalculationMethod
    is_city_driving: bool
    is_warming: bool
    notes: Optional[str] = None
    created_by_user_id: Optional[str] = None
    approved_by_user_id: Optional[str] = None
    completed_by_user_id: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    fuel_lines: List[FuelLineRead] = Field(default_factory=list)
    routes: List[RouteRead] = Field(default_factory=list)

    @classmethod
    def from_entities(cls, waybill: Any, fuel_lines: Iterable[Any], routes: Iterable[Any]) -> "WaybillRead":
        read = cls.model_validate(waybill)
        read.fuel_lines = [FuelLineRead.model_validate(line) for line in fuel_lines]
        read.routes = [RouteRead.model_validate(route) for route in routes]
        return read


class WaybillPage(BaseModel):
    items: List[WaybillRead]
    total: int
    page: int
    page_size: int


class StatusChangeRequest(BaseModel):
    status: WaybillStatus
    reason: Optional[str] = Field(default=None, max_length=500, description="Storno reason when a posting is reversed")


class PrefillRead(BaseModel):
    """Starting values for the next waybill of a vehicle."""

    vehicle_id: str
    driver_id: Optional[str] = None
    odometer_start: Optional[Quantity] = None
    fuel_start: Optional[Quantity] = None
    fuel_stock_item_id: Optional[str] = None
    tank_balance: Optional[Quantity] = None
    last_waybill_id: Optional[str] = None
    last_waybill_number: Optional[str] = None
    last_waybill_date: Optional[dt.date] = None
