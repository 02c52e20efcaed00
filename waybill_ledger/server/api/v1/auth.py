"""
Authentication Endpoints.

Organization bootstrap, password login and the current user profile.
"""

from fastapi import APIRouter, status

from waybill_ledger.core.models.io.auth import LoginRequest, MeRead, RegisterOrganizationRequest, TokenResponse
from waybill_ledger.server.services.deps import AuthServiceDep, CurrentUserDep

router = APIRouter()


@router.post(
    "/register-organization",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Organization",
    description="Create a new organization with its first administrator and return an access token for that user.",
    responses={
        201: {"description": "Organization created"},
        409: {"description": "Email already registered"},
    },
)
async def register_organization(data: RegisterOrganizationRequest, service: AuthServiceDep) -> TokenResponse:
    """
    Bootstrap a tenant.

    - **organization_name**: Display name of the organization.
    - **admin_email** / **admin_password**: Credentials of the first admin.
    """
    return await service.register_organization(data)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login",
    description="Exchange email and password for a bearer token.",
    responses={401: {"description": "Invalid credentials or inactive user"}},
)
async def login(data: LoginRequest, service: AuthServiceDep) -> TokenResponse:
    return await service.login(data)


@router.get(
    "/me",
    response_model=MeRead,
    summary="Current User",
    description="Return the authenticated user with the permissions of their role.",
    responses={401: {"description": "Missing or invalid token"}},
)
async def me(actor: CurrentUserDep, service: AuthServiceDep) -> MeRead:
    return await service.me(actor)
