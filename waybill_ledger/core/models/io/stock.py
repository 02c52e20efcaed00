"""
Stock ledger I/O models.

Business rules (positive quantities, distinct transfer ends, length limits)
are checked by the ledger service so that they surface as 400 errors with a
message rather than as request validation errors.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from waybill_ledger.core.models.domain.enums import StockDocumentType, StockLocationType, StockMovementType

from .common import Quantity


class StockMovementCreate(BaseModel):
    """Schema for recording a ledger movement."""

    movement_type: StockMovementType
    stock_item_id: str
    quantity: Decimal = Field(description="Positive quantity; ADJUSTMENT may be negative")
    stock_location_id: Optional[str] = Field(default=None, description="Location for INCOME, EXPENSE and ADJUSTMENT")
    from_stock_location_id: Optional[str] = Field(default=None, description="TRANSFER source")
    to_stock_location_id: Optional[str] = Field(default=None, description="TRANSFER destination")
    occurred_at: Optional[datetime] = Field(default=None, description="Defaults to now")
    occurred_seq: int = 0
    document_type: Optional[StockDocumentType] = None
    document_id: Optional[str] = None
    external_ref: Optional[str] = None
    comment: Optional[str] = None


class StockMovementUpdate(BaseModel):
    """Schema for editing a manual movement."""

    quantity: Optional[Decimal] = None
    occurred_at: Optional[datetime] = None
    occurred_seq: Optional[int] = None
    comment: Optional[str] = None


class StockMovementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stock_item_id: str
    movement_type: StockMovementType
    quantity: Quantity
    stock_location_id: Optional[str] = None
    from_stock_location_id: Optional[str] = None
    to_stock_location_id: Optional[str] = None
    occurred_at: datetime
    occurred_seq: int
    document_type: Optional[str] = None
    document_id: Optional[str] = None
    external_ref: Optional[str] = None
    comment: Optional[str] = None
    is_void: bool
    voided_at: Optional[datetime] = None
    voided_by_user_id: Optional[str] = None
    void_reason: Optional[str] = None
    created_by_user_id: Optional[str] = None
    created_at: datetime


class StockMovementPage(BaseModel):
    items: List[StockMovementRead]
    total: int
    page: int
    page_size: int


class VoidRequest(BaseModel):
    reason: str = Field(description="Why the movement is voided (at least 5 characters)")


class CorrectionCreate(BaseModel):
    """Schema for an inventory correction."""

    stock_location_id: str
    stock_item_id: str
    delta: Decimal = Field(description="Signed quantity to add to the balance")
    occurred_at: Optional[datetime] = None
    reason: str


class StornoRequest(BaseModel):
    document_type: StockDocumentType
    document_id: str
    reason: str


class StornoResult(BaseModel):
    document_type: str
    document_id: str
    voided_count: int


class BalanceRead(BaseModel):
    stock_location_id: str
    stock_item_id: str
    as_of: datetime
    balance: Quantity


class LocationBalanceRead(BaseModel):
    """Balances of one location keyed by stock item id."""

    stock_location_id: str
    name: str
    type: StockLocationType
    balances: Dict[str, Quantity]


class StockLocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: StockLocationType
    name: str
    vehicle_id: Optional[str] = None
    fuel_card_id: Optional[str] = None
    is_default: bool
    is_active: bool


class WarehouseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    is_default: bool = False


class FuelCardTopup(BaseModel):
    stock_item_id: str
    quantity: Decimal = Field(gt=0)
    occurred_at: Optional[datetime] = None


class FuelCardReset(BaseModel):
    stock_item_id: str
    occurred_at: Optional[datetime] = None
