"""
Organization Endpoints.

A user can only see and edit the organization they belong to.
"""

from fastapi import APIRouter

from waybill_ledger.core.models.io.dictionaries import OrganizationRead, OrganizationUpdate
from waybill_ledger.server.services.deps import CurrentUserDep, OrganizationServiceDep

router = APIRouter()


@router.get(
    "/me",
    response_model=OrganizationRead,
    summary="Get Own Organization",
    description="Retrieve the organization of the authenticated user.",
)
async def get_own_organization(actor: CurrentUserDep, service: OrganizationServiceDep) -> OrganizationRead:
    return OrganizationRead.model_validate(await service.get_own(actor))


@router.put(
    "/me",
    response_model=OrganizationRead,
    summary="Update Own Organization",
    description="Update the name or tax number of the caller's organization. Requires `settings.write`.",
    responses={403: {"description": "Permission denied"}},
)
async def update_own_organization(
    data: OrganizationUpdate, actor: CurrentUserDep, service: OrganizationServiceDep
) -> OrganizationRead:
    return OrganizationRead.model_validate(await service.update_own(actor, data))
