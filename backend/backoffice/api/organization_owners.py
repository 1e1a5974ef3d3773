"""
Organization owner API endpoints.

WHY: Ownership changes decide who controls an organization, so every
mutation is guarded by the caller's own ownership:
1. POST - ADMIN or OWNER role (the caller is recorded as assigned_by)
2. DELETE, PATCH /role - OWNER role only
3. PATCH /{user_id}/deactivate, /reactivate - ADMIN or OWNER role
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.deps import get_current_user
from backoffice.core.guards import require_admin_or_owner, require_owner_only
from backoffice.db.session import get_db
from backoffice.models.user import User
from backoffice.schemas.organization import OrganizationWithOwnersResponse
from backoffice.schemas.organization_owner import (
    AddOwnersRequest,
    OwnerInfo,
    RemoveOwnersRequest,
    UpdateOwnerRoleRequest,
)
from backoffice.services.organization_owner_service import OrganizationOwnerService


router = APIRouter(prefix="/organizations/{organization_id}/owners", tags=["organization owners"])


@router.get(
    "",
    response_model=List[OwnerInfo],
    summary="List owners",
    description="Ownership records of an organization, optionally only active ones",
)
async def list_owners(
    organization_id: uuid.UUID,
    active_only: bool = Query(False, description="Only return active owners"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[OwnerInfo]:
    service = OrganizationOwnerService(db)
    if active_only:
        owners = await service.get_active_owners(organization_id)
    else:
        owners = await service.get_owners(organization_id)
    return [OwnerInfo.model_validate(owner) for owner in owners]


@router.get("/active", response_model=List[OwnerInfo], summary="List active owners")
async def list_active_owners(
    organization_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[OwnerInfo]:
    owners = await OrganizationOwnerService(db).get_active_owners(organization_id)
    return [OwnerInfo.model_validate(owner) for owner in owners]


@router.get("/by-role/{role}", response_model=List[OwnerInfo], summary="List owners by role")
async def list_owners_by_role(
    organization_id: uuid.UUID,
    role: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[OwnerInfo]:
    owners = await OrganizationOwnerService(db).get_owners_by_role(organization_id, role.upper())
    return [OwnerInfo.model_validate(owner) for owner in owners]


@router.post(
    "",
    response_model=OrganizationWithOwnersResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add owners",
    description="Add 1 to 10 users as owners (ADMIN or OWNER role)",
)
async def add_owners(
    organization_id: uuid.UUID,
    request: AddOwnersRequest,
    current_user: User = Depends(require_admin_or_owner),
    db: AsyncSession = Depends(get_db),
) -> OrganizationWithOwnersResponse:
    """
    Raises:
        ValidationError (400): If a user doesn't exist or is inactive
        ConflictError (409): If a user already has an ownership record
    """
    organization = await OrganizationOwnerService(db).add_owners(
        organization_id,
        request.user_ids,
        role=request.role,
        assigned_by=current_user.id,
    )
    return OrganizationWithOwnersResponse.model_validate(organization)


@router.delete(
    "",
    response_model=OrganizationWithOwnersResponse,
    summary="Remove owners",
    description="Remove owners; at least one active owner must remain (OWNER role only)",
)
async def remove_owners(
    organization_id: uuid.UUID,
    request: RemoveOwnersRequest,
    current_user: User = Depends(require_owner_only),
    db: AsyncSession = Depends(get_db),
) -> OrganizationWithOwnersResponse:
    """
    Raises:
        ValidationError (400): If a user is not an active owner or no owner would remain
    """
    organization = await OrganizationOwnerService(db).remove_owners(
        organization_id, request.user_ids
    )
    return OrganizationWithOwnersResponse.model_validate(organization)


@router.patch(
    "/role",
    response_model=OrganizationWithOwnersResponse,
    summary="Change owner role",
    description="Change the role of an active owner (OWNER role only)",
)
async def update_owner_role(
    organization_id: uuid.UUID,
    request: UpdateOwnerRoleRequest,
    current_user: User = Depends(require_owner_only),
    db: AsyncSession = Depends(get_db),
) -> OrganizationWithOwnersResponse:
    organization = await OrganizationOwnerService(db).update_owner_role(
        organization_id, request.user_id, request.new_role
    )
    return OrganizationWithOwnersResponse.model_validate(organization)


@router.patch(
    "/{user_id}/deactivate",
    response_model=OwnerInfo,
    summary="Deactivate owner",
    description="Deactivate an owner without deleting the record (ADMIN or OWNER role)",
)
async def deactivate_owner(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: User = Depends(require_admin_or_owner),
    db: AsyncSession = Depends(get_db),
) -> OwnerInfo:
    owner = await OrganizationOwnerService(db).deactivate_owner(organization_id, user_id)
    return OwnerInfo.model_validate(owner)


@router.patch(
    "/{user_id}/reactivate",
    response_model=OwnerInfo,
    summary="Reactivate owner",
    description="Reactivate a deactivated owner (ADMIN or OWNER role)",
)
async def reactivate_owner(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: User = Depends(require_admin_or_owner),
    db: AsyncSession = Depends(get_db),
) -> OwnerInfo:
    owner = await OrganizationOwnerService(db).reactivate_owner(organization_id, user_id)
    return OwnerInfo.model_validate(owner)
