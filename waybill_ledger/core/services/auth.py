"""
Authentication and user management service.

Handles organization bootstrap, password login and the admin-only user
administration endpoints.
"""

from __future__ import annotations

from typing import List

from waybill_ledger.core.database.entities.organizations import Organization, User
from waybill_ledger.core.database.repositories.drivers import DriverRepository
from waybill_ledger.core.database.repositories.organizations import OrganizationRepository, UserRepository
from waybill_ledger.core.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission, UserRole
from waybill_ledger.core.models.io.auth import (
    LoginRequest,
    MeRead,
    RegisterOrganizationRequest,
    TokenResponse,
    UserCreate,
    UserUpdate,
)
from waybill_ledger.core.security import create_access_token, hash_password, verify_password
from waybill_ledger.server.core.config import settings

from .base import BaseService, transactional
from .stock_locations import StockLocationService

logger = get_logger(__name__)


def issue_token(user: User) -> TokenResponse:
    token = create_access_token(user.id, user.organization_id, user.role, user.driver_id)
    return TokenResponse(access_token=token, expires_in=settings.jwt.expires_minutes * 60)


class AuthService(BaseService):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.organizations = OrganizationRepository(session)
        self.users = UserRepository(session)
        self.drivers = DriverRepository(session)
        self.locations = StockLocationService(session)

    @transactional
    async def register_organization(self, data: RegisterOrganizationRequest) -> TokenResponse:
        """Create an organization, its first admin and its default warehouse."""
        if await self.users.get_by_email(data.admin_email) is not None:
            raise ConflictError("a user with this email already exists")

        organization = await self.organizations.create(Organization(name=data.organization_name, inn=data.inn))
        admin = await self.users.create(
            User(
                organization_id=organization.id,
                email=data.admin_email,
                full_name=data.admin_full_name,
                password_hash=hash_password(data.admin_password),
                role=UserRole.admin.value,
            )
        )
        await self.locations.get_or_create_default_warehouse(organization.id)
        logger.info(f"Registered organization {organization.name} ({organization.id}) with admin {admin.email}")
        return issue_token(admin)

    async def login(self, data: LoginRequest) -> TokenResponse:
        user = await self.users.get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.warning(f"Failed login attempt for {data.email}")
            raise UnauthorizedError("invalid email or password")
        if not user.is_active:
            logger.warning(f"Login attempt for inactive user {data.email}")
            raise UnauthorizedError("user is inactive")
        return issue_token(user)

    async def get_active_user(self, user_id: str) -> User:
        """Load the user behind a token; inactive or removed users are rejected."""
        user = await self.users.get_by_id(user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("user is inactive or no longer exists")
        return user

    async def me(self, actor: Actor) -> MeRead:
        user = await self.get_active_user(actor.user_id)
        me = MeRead.model_validate(user)
        me.permissions = sorted(permission.value for permission in actor.permissions)
        return me


class UserService(BaseService):
    """User administration inside the caller's organization."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.users = UserRepository(session)
        self.drivers = DriverRepository(session)

    async def _check_driver_link(self, actor: Actor, role: UserRole, driver_id) -> None:
        if role == UserRole.driver and not driver_id:
            raise BadRequestError("a driver-role user must be linked to a driver")
        if driver_id and await self.drivers.get_scoped(actor.organization_id, driver_id) is None:
            raise NotFoundError("driver not found")

    async def get_user(self, actor: Actor, user_id: str) -> User:
        actor.require(Permission.user_manage)
        user = await self.users.get_scoped(actor.organization_id, user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def list_users(self, actor: Actor) -> List[User]:
        actor.require(Permission.user_manage)
        return await self.users.list_for_organization(actor.organization_id)

    @transactional
    async def create_user(self, actor: Actor, data: UserCreate) -> User:
        actor.require(Permission.user_manage)
        if await self.users.get_by_email(data.email) is not None:
            raise ConflictError("a user with this email already exists")
        await self._check_driver_link(actor, data.role, data.driver_id)
        user = await self.users.create(
            User(
                organization_id=actor.organization_id,
                email=data.email,
                full_name=data.full_name,
                password_hash=hash_password(data.password),
                role=data.role.value,
                driver_id=data.driver_id,
            )
        )
        logger.info(f"Created user {user.email} with role {user.role}")
        return user

    @transactional
    async def update_user(self, actor: Actor, user_id: str, data: UserUpdate) -> User:
        user = await self.get_user(actor, user_id)
        changes = data.model_dump(exclude_unset=True)

        role = UserRole(changes.get("role") or user.role)
        driver_id = changes["driver_id"] if "driver_id" in changes else user.driver_id
        await self._check_driver_link(actor, role, driver_id)
        if user.id == actor.user_id and (role != UserRole.admin or changes.get("is_active") is False):
            raise BadRequestError("administrators cannot demote or deactivate themselves")

        if data.full_name is not None:
            user.full_name = data.full_name
        if data.password is not None:
            user.password_hash = hash_password(data.password)
        if data.is_active is not None:
            user.is_active = data.is_active
        user.role = role.value
        user.driver_id = driver_id
        await self.users.update(user)
        logger.info(f"Updated user {user.email}: {sorted(changes.keys())}")
        return user
