"""Blank I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from waybill_ledger.core.models.domain.enums import BlankSpoilReason, BlankStatus


class BlankBatchCreate(BaseModel):
    series: str = Field(min_length=1, max_length=16)
    number_from: int = Field(ge=1)
    number_to: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_range(self) -> "BlankBatchCreate":
        if self.number_from > self.number_to:
            raise ValueError("number_from must not exceed number_to")
        return self


class BlankBatchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    series: str
    number_from: int
    number_to: int
    created_by_user_id: Optional[str] = None
    created_at: datetime


class MaterializeResult(BaseModel):
    batch_id: str
    created: int


class BlankRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    batch_id: Optional[str] = None
    series: str
    number: int
    status: BlankStatus
    issued_to_driver_id: Optional[str] = None
    issued_at: Optional[datetime] = None
    reserved_by_waybill_id: Optional[str] = None
    reserved_at: Optional[datetime] = None
    used_in_waybill_id: Optional[str] = None
    used_at: Optional[datetime] = None
    spoiled_at: Optional[datetime] = None
    spoil_reason: Optional[BlankSpoilReason] = None
    spoil_note: Optional[str] = None


class IssueBlankRequest(BaseModel):
    driver_id: str


class IssueRangeRequest(BaseModel):
    series: str = Field(min_length=1, max_length=16)
    number_from: int = Field(ge=1)
    number_to: int = Field(ge=1)
    driver_id: str


class IssueRangeResult(BaseModel):
    issued: int


class SpoilBlankRequest(BaseModel):
    reason: BlankSpoilReason
    note: Optional[str] = Field(default=None, max_length=500)


class BlankRange(BaseModel):
    """Contiguous run of blank numbers within one series."""

    series: str
    number_from: int
    number_to: int
    count: int


class DriverBlankSummary(BaseModel):
    driver_id: str
    active: List[BlankRange] = Field(default_factory=list, description="ISSUED and RESERVED blanks")
    used: List[BlankRange] = Field(default_factory=list)
    spoiled: List[BlankRange] = Field(default_factory=list)
