"""
Authentication and user I/O models.

This module contains Pydantic schemas for login, organization bootstrap and
user management endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from waybill_ledger.core.models.domain.enums import UserRole


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value:
        raise ValueError("invalid email address")
    return value


class LoginRequest(BaseModel):
    """Schema for password login."""

    email: str = Field(description="Login email")
    password: str = Field(min_length=1, description="Plain text password")

    _email = field_validator("email")(_normalize_email)


class TokenResponse(BaseModel):
    """Schema for an issued access token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")


class RegisterOrganizationRequest(BaseModel):
    """Schema for creating an organization together with its first admin."""

    organization_name: str = Field(min_length=1, max_length=255)
    inn: Optional[str] = Field(default=None, max_length=32)
    admin_email: str
    admin_full_name: str = Field(min_length=1, max_length=255)
    admin_password: str = Field(min_length=8, max_length=128)

    _email = field_validator("admin_email")(_normalize_email)


class UserCreate(BaseModel):
    """Schema for creating a user inside the caller's organization."""

    email: str
    full_name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=128)
    role: UserRole = UserRole.dispatcher
    driver_id: Optional[str] = Field(default=None, description="Driver record linked to a driver-role user")

    _email = field_validator("email")(_normalize_email)


class UserUpdate(BaseModel):
    """Schema for partially updating a user."""

    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    role: Optional[UserRole] = None
    driver_id: Optional[str] = None
    is_active: Optional[bool] = None


class UserRead(BaseModel):
    """Schema for reading a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    email: str
    full_name: str
    role: UserRole
    driver_id: Optional[str] = None
    is_active: bool
    created_at: datetime


class MeRead(UserRead):
    """Schema for the current user with resolved permissions."""

    permissions: List[str] = Field(default_factory=list)
