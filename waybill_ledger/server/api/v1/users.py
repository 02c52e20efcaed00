"""
User Management Endpoints.

Administrators create users, assign roles and deactivate accounts inside
their own organization.
"""

from typing import List

from fastapi import APIRouter, status

from waybill_ledger.core.models.io.auth import UserCreate, UserRead, UserUpdate
from waybill_ledger.server.services.deps import CurrentUserDep, UserServiceDep

router = APIRouter()


@router.get(
    "",
    response_model=List[UserRead],
    summary="List Users",
    description="List the users of the caller's organization. Admin only.",
)
async def list_users(actor: CurrentUserDep, service: UserServiceDep) -> List[UserRead]:
    return [UserRead.model_validate(user) for user in await service.list_users(actor)]


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="Create a user in the caller's organization. Driver-role users must be linked to a driver.",
    responses={
        201: {"description": "User created"},
        409: {"description": "Email already registered"},
    },
)
async def create_user(data: UserCreate, actor: CurrentUserDep, service: UserServiceDep) -> UserRead:
    return UserRead.model_validate(await service.create_user(actor, data))


@router.get("/{user_id}", response_model=UserRead, summary="Get User")
async def get_user(user_id: str, actor: CurrentUserDep, service: UserServiceDep) -> UserRead:
    return UserRead.model_validate(await service.get_user(actor, user_id))


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update User",
    description="Change name, password, role, driver link or active flag of a user.",
)
async def update_user(user_id: str, data: UserUpdate, actor: CurrentUserDep, service: UserServiceDep) -> UserRead:
    return UserRead.model_validate(await service.update_user(actor, user_id, data))
