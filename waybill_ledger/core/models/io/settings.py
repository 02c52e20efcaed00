"""Runtime settings I/O models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AppSettings(BaseModel):
    """Per-organization switches that override environment defaults."""

    allow_delete_posted_waybills: bool = Field(
        default=False, description="Allow deleting POSTED waybills instead of cancelling the posting first"
    )


class AppSettingsUpdate(BaseModel):
    allow_delete_posted_waybills: Optional[bool] = None
