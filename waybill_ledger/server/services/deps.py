"""
Request Dependencies.

Provides the database session, the authenticated ``Actor`` and permission
guards for API endpoints, plus one ``Annotated`` alias per service so
routers can declare what they use in their signatures.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from waybill_ledger.core.database import get_session
from waybill_ledger.core.errors import UnauthorizedError
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import Permission, UserRole
from waybill_ledger.core.security import decode_access_token
from waybill_ledger.core.services.audit import AuditService
from waybill_ledger.core.services.auth import AuthService, UserService
from waybill_ledger.core.services.blanks import BlankService
from waybill_ledger.core.services.dashboard import DashboardService
from waybill_ledger.core.services.dictionaries import (
    DriverService,
    FuelCardService,
    OrganizationService,
    StockItemService,
    VehicleService,
)
from waybill_ledger.core.services.fuel_card_resets import FuelCardResetService
from waybill_ledger.core.services.period_locks import PeriodLockService
from waybill_ledger.core.services.settings import SettingsService
from waybill_ledger.core.services.stock_ledger import StockLedgerService
from waybill_ledger.core.services.stock_locations import StockLocationService
from waybill_ledger.core.services.waybills import WaybillService

SessionDep = Annotated[AsyncSession, Depends(get_session)]

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    session: SessionDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Actor:
    """
    Resolve the caller from the ``Authorization: Bearer`` header.

    The user must still exist and be active; role and driver link are read
    from the database so a changed role takes effect before the token expires.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("not authenticated")
    payload = decode_access_token(credentials.credentials)
    user = await AuthService(session).get_active_user(payload["sub"])
    if user.organization_id != payload["organization_id"]:
        raise UnauthorizedError("invalid token")
    return Actor(
        user_id=user.id,
        organization_id=user.organization_id,
        role=UserRole(user.role),
        driver_id=user.driver_id,
    )


CurrentUserDep = Annotated[Actor, Depends(get_current_user)]


def require_permission(permission: Permission) -> Callable:
    """Build a dependency that returns the caller when they hold ``permission``."""

    async def checker(actor: CurrentUserDep) -> Actor:
        actor.require(permission)
        return actor

    return checker


def get_auth_service(session: SessionDep) -> AuthService:
    return AuthService(session)


def get_user_service(session: SessionDep) -> UserService:
    return UserService(session)


def get_organization_service(session: SessionDep) -> OrganizationService:
    return OrganizationService(session)


def get_driver_service(session: SessionDep) -> DriverService:
    return DriverService(session)


def get_vehicle_service(session: SessionDep) -> VehicleService:
    return VehicleService(session)


def get_fuel_card_service(session: SessionDep) -> FuelCardService:
    return FuelCardService(session)


def get_stock_item_service(session: SessionDep) -> StockItemService:
    return StockItemService(session)


def get_stock_location_service(session: SessionDep) -> StockLocationService:
    return StockLocationService(session)


def get_ledger_service(session: SessionDep) -> StockLedgerService:
    return StockLedgerService(session)


def get_blank_service(session: SessionDep) -> BlankService:
    return BlankService(session)


def get_waybill_service(session: SessionDep) -> WaybillService:
    return WaybillService(session)


def get_reset_service(session: SessionDep) -> FuelCardResetService:
    return FuelCardResetService(session)


def get_dashboard_service(session: SessionDep) -> DashboardService:
    return DashboardService(session)


def get_period_lock_service(session: SessionDep) -> PeriodLockService:
    return PeriodLockService(session)


def get_audit_service(session: SessionDep) -> AuditService:
    return AuditService(session)


def get_settings_service(session: SessionDep) -> SettingsService:
    return SettingsService(session)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
OrganizationServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]
DriverServiceDep = Annotated[DriverService, Depends(get_driver_service)]
VehicleServiceDep = Annotated[VehicleService, Depends(get_vehicle_service)]
FuelCardServiceDep = Annotated[FuelCardService, Depends(get_fuel_card_service)]
StockItemServiceDep = Annotated[StockItemService, Depends(get_stock_item_service)]
StockLocationServiceDep = Annotated[StockLocationService, Depends(get_stock_location_service)]
LedgerServiceDep = Annotated[StockLedgerService, Depends(get_ledger_service)]
BlankServiceDep = Annotated[BlankService, Depends(get_blank_service)]
WaybillServiceDep = Annotated[WaybillService, Depends(get_waybill_service)]
PeriodLockServiceDep = Annotated[PeriodLockService, Depends(get_period_lock_service)]
ResetServiceDep = Annotated[FuelCardResetService, Depends(get_reset_service)]
DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]
AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]
