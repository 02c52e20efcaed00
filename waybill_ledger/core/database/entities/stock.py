"""
Stock entity models.

This module contains the entities of the fuel stock ledger:

- ``StockItem``: a stocked product, usually a fuel grade.
- ``StockLocation``: a place where stock is held. A location is a warehouse,
  a fuel card or a vehicle tank.
- ``StockMovement``: an append-only ledger row. Balances are never stored;
  they are summed from non-void movements up to a point in time.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field

from waybill_ledger.core.timeutils import utc_now

from ..base import Base, new_id


class StockItem(Base, table=True):
    """Entity for a stocked product.

    Table: stock_items
    """

    __tablename__ = "stock_items"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    name: str = Field(max_length=255)
    code: Optional[str] = Field(default=None, max_length=64)
    unit: str = Field(default="l", max_length=16)
    is_fuel: bool = Field(default=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"StockItem(id={self.id}, name={self.name})"


class StockLocation(Base, table=True):
    """Entity for a stock holding place.

    Exactly one of ``vehicle_id`` / ``fuel_card_id`` is set for tank and card
    locations. Warehouses have neither; one of them per organization is
    flagged ``is_default`` and receives stock when no other source applies.

    Table: stock_locations
    """

    __tablename__ = "stock_locations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    type: str = Field(max_length=32, index=True)
    name: str = Field(max_length=255)
    vehicle_id: Optional[str] = Field(default=None, foreign_key="vehicles.id", max_length=64, unique=True)
    fuel_card_id: Optional[str] = Field(default=None, foreign_key="fuel_cards.id", max_length=64, unique=True)
    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"StockLocation(id={self.id}, type={self.type}, name={self.name})"


class StockMovement(Base, table=True):
    """Entity for a single stock ledger row.

    ``INCOME``, ``EXPENSE`` and ``ADJUSTMENT`` rows use ``stock_location_id``.
    ``TRANSFER`` rows use ``from_stock_location_id`` and
    ``to_stock_location_id``. ``ADJUSTMENT`` is the only type whose quantity
    may be negative.

    Rows are ordered by ``occurred_at`` then ``occurred_seq``. Voided rows
    stay in the table and are excluded from balances.

    Table: stock_movements
    """

    __tablename__ = "stock_movements"
    __table_args__ = (
        UniqueConstraint("organization_id", "external_ref", name="uq_stock_movements_org_external_ref"),
        Index("ix_stock_movements_document", "document_type", "document_id"),
        Index("ix_stock_movements_item_occurred", "stock_item_id", "occurred_at"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    stock_item_id: str = Field(foreign_key="stock_items.id", max_length=64)
    movement_type: str = Field(max_length=16, index=True)
    quantity: Decimal = Field(max_digits=14, decimal_places=3)

    stock_location_id: Optional[str] = Field(default=None, foreign_key="stock_locations.id", max_length=64, index=True)
    from_stock_location_id: Optional[str] = Field(
        default=None, foreign_key="stock_locations.id", max_length=64, index=True
    )
    to_stock_location_id: Optional[str] = Field(
        default=None, foreign_key="stock_locations.id", max_length=64, index=True
    )

    occurred_at: datetime = Field(default_factory=utc_now)
    occurred_seq: int = Field(default=0)

    document_type: Optional[str] = Field(default=None, max_length=32)
    document_id: Optional[str] = Field(default=None, max_length=64)
    external_ref: Optional[str] = Field(default=None, max_length=120)
    comment: Optional[str] = Field(default=None, max_length=500)

    is_void: bool = Field(default=False, index=True)
    voided_at: Optional[datetime] = Field(default=None)
    voided_by_user_id: Optional[str] = Field(default=None, max_length=64)
    void_reason: Optional[str] = Field(default=None, max_length=500)

    created_by_user_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now)

    def touches(self, location_id: str) -> bool:
        """Whether this movement changes the balance of ``location_id``."""
        return location_id in (self.stock_location_id, self.from_stock_location_id, self.to_stock_location_id)

    def __repr__(self) -> str:
        return f"StockMovement(id={self.id}, type={self.movement_type}, quantity={self.quantity})"
