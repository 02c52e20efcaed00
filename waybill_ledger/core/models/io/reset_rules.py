"""Fuel card reset rule I/O models."""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from waybill_ledger.core.models.domain.enums import ResetFrequency, ResetMode, ResetScope


class ResetRuleCreate(BaseModel):
    """Schema for creating a reset rule."""

    name: str = Field(min_length=1, max_length=255)
    frequency: ResetFrequency
    scope: ResetScope = ResetScope.all_cards
    card_ids: List[str] = Field(default_factory=list, description="Cards of a SPECIFIC_CARDS rule")
    mode: ResetMode = ResetMode.expire_expense
    stock_item_id: str
    target_location_id: Optional[str] = Field(
        default=None, description="Warehouse for TRANSFER_TO_WAREHOUSE; the default warehouse when empty"
    )
    is_active: bool = True


class ResetRuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    frequency: Optional[ResetFrequency] = None
    scope: Optional[ResetScope] = None
    card_ids: Optional[List[str]] = None
    mode: Optional[ResetMode] = None
    stock_item_id: Optional[str] = None
    target_location_id: Optional[str] = None
    is_active: Optional[bool] = None


class ResetRuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    frequency: ResetFrequency
    scope: ResetScope
    card_ids: List[str] = Field(default_factory=list)
    mode: ResetMode
    stock_item_id: str
    target_location_id: Optional[str] = None
    is_active: bool
    last_run_at: Optional[datetime] = None
    next_run_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("card_ids", mode="before")
    @classmethod
    def _decode_card_ids(cls, value):
        if isinstance(value, str):
            return json.loads(value)
        return value or []


class ResetRunRequest(BaseModel):
    reset_at: Optional[datetime] = Field(default=None, description="Moment of the reset, defaults to now")
    rule_id: Optional[str] = Field(default=None, description="Run only this rule, due or not")


class ResetRunResult(BaseModel):
    """Outcome of a reset run.

    ``reset`` counts cards emptied (or that would be, on a dry run),
    ``skipped`` counts empty cards and cards already reset in the period.
    """

    processed: int = 0
    reset: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    dry_run: bool = False
