"""Period lock I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PeriodLockCreate(BaseModel):
    period: str = Field(description="Month to close in YYYY-MM format", examples=["2025-01"])
    notes: Optional[str] = Field(default=None, max_length=1000)


class PeriodLockRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    period: str
    locked_by_user_id: Optional[str] = None
    locked_at: datetime
    data_hash: str
    record_count: int
    notes: Optional[str] = None
    last_verified_at: Optional[datetime] = None
    last_verify_result: Optional[bool] = None


class PeriodVerifyResult(BaseModel):
    """Outcome of re-hashing a closed period."""

    is_valid: bool
    current_hash: str = Field(description="Recomputed hash, or 'count_mismatch' when the record count changed")
    stored_hash: str
    details: Optional[str] = None
