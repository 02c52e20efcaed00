"""The authenticated user on whose behalf a service operation runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from waybill_ledger.core.errors import ForbiddenError

from .enums import ROLE_PERMISSIONS, Permission, UserRole


@dataclass(frozen=True)
class Actor:
    user_id: str
    organization_id: str
    role: UserRole
    driver_id: Optional[str] = None

    @property
    def permissions(self) -> FrozenSet[Permission]:
        return ROLE_PERMISSIONS.get(UserRole(self.role), frozenset())

    @property
    def is_driver(self) -> bool:
        return UserRole(self.role) == UserRole.driver

    @property
    def is_admin(self) -> bool:
        return UserRole(self.role) == UserRole.admin

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

    def require(self, permission: Permission) -> None:
        """Raise ``ForbiddenError`` unless the actor holds ``permission``."""
        if not self.has_permission(permission):
            raise ForbiddenError(f"permission '{permission.value}' required")
