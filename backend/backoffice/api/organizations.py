"""
Organization management API endpoints.

WHY: These endpoints provide organization CRUD operations. Reads are open
to any authenticated user; changes are protected by ownership guards on
the organization_id path parameter:
1. PATCH /{organization_id} - ADMIN or OWNER role
2. DELETE /{organization_id} - OWNER role only
"""

import uuid
from typing import List, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.deps import get_current_user
from backoffice.core.exceptions import OrganizationNotFoundError
from backoffice.core.guards import (
    OrganizationContext,
    get_organization_context,
    require_admin_or_owner,
    require_owner_only,
)
from backoffice.db.session import get_db
from backoffice.models.user import User
from backoffice.schemas.common import MessageResponse
from backoffice.schemas.organization import (
    OrganizationContextResponse,
    OrganizationCreate,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdate,
    OrganizationWithOwnersListResponse,
    OrganizationWithOwnersResponse,
)
from backoffice.services.organization_service import OrganizationService


router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post(
    "",
    response_model=OrganizationWithOwnersResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    description="Create an organization; every listed user becomes an OWNER",
)
async def create_organization(
    request: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrganizationWithOwnersResponse:
    """
    Create a new organization.

    Raises:
        ConflictError (409): If the name is already taken
        ValidationError (400): If an owner doesn't exist or is inactive
    """
    organization = await OrganizationService(db).create(
        name=request.name,
        owner_ids=request.owner_ids,
        description=request.description,
    )
    return OrganizationWithOwnersResponse.model_validate(organization)


@router.get(
    "",
    response_model=None,
    summary="List organizations",
    description="Paginated list of organizations, optionally with their owners",
)
async def list_organizations(
    page: int = Query(1, description="Page number (1-based)"),
    limit: int = Query(10, description="Items per page (max 100)"),
    include_owners: bool = Query(False, description="Include ownership records"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Union[OrganizationWithOwnersListResponse, OrganizationListResponse]:
    service = OrganizationService(db)
    if include_owners:
        result = await service.find_all_with_owners_paginated(page, limit)
        return OrganizationWithOwnersListResponse(
            data=[OrganizationWithOwnersResponse.model_validate(o) for o in result.data],
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        )

    result = await service.find_all_paginated(page, limit)
    return OrganizationListResponse(
        data=[OrganizationResponse.model_validate(o) for o in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get(
    "/active",
    response_model=List[OrganizationResponse],
    summary="List active organizations",
)
async def list_active_organizations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[OrganizationResponse]:
    organizations = await OrganizationService(db).find_active_organizations()
    return [OrganizationResponse.model_validate(o) for o in organizations]


@router.get(
    "/by-owner/{owner_id}",
    response_model=List[OrganizationResponse],
    summary="List organizations by owner",
    description="Organizations in which the user is an active owner",
)
async def list_organizations_by_owner(
    owner_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[OrganizationResponse]:
    organizations = await OrganizationService(db).find_by_owner(owner_id)
    return [OrganizationResponse.model_validate(o) for o in organizations]


@router.get(
    "/name/{name}",
    response_model=OrganizationResponse,
    summary="Get organization by name",
)
async def get_organization_by_name(
    name: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrganizationResponse:
    organization = await OrganizationService(db).find_by_name(name)
    if organization is None:
        raise OrganizationNotFoundError(name=name)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{organization_id}",
    response_model=OrganizationWithOwnersResponse,
    summary="Get organization by ID",
)
async def get_organization(
    organization_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrganizationWithOwnersResponse:
    organization = await OrganizationService(db).find_one_with_owners(organization_id)
    return OrganizationWithOwnersResponse.model_validate(organization)


@router.get(
    "/{organization_id}/context",
    response_model=OrganizationContextResponse,
    summary="Get caller's organization context",
    description="The organization (must be active) and the caller's role in it",
)
async def get_context(
    current_user: User = Depends(get_current_user),
    context: OrganizationContext = Depends(get_organization_context),
) -> OrganizationContextResponse:
    return OrganizationContextResponse(
        organization=OrganizationResponse.model_validate(context.organization),
        is_owner=context.is_owner,
        user_role=context.user_role,
    )


@router.patch(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Update organization",
    description="Update name, description or status (ADMIN or OWNER role)",
)
async def update_organization(
    organization_id: uuid.UUID,
    request: OrganizationUpdate,
    current_user: User = Depends(require_admin_or_owner),
    db: AsyncSession = Depends(get_db),
) -> OrganizationResponse:
    organization = await OrganizationService(db).update(
        organization_id,
        name=request.name,
        description=request.description,
        is_active=request.is_active,
    )
    return OrganizationResponse.model_validate(organization)


@router.delete(
    "/{organization_id}",
    response_model=MessageResponse,
    summary="Delete organization",
    description="Delete an organization and all its ownership records (OWNER role only)",
)
async def delete_organization(
    organization_id: uuid.UUID,
    current_user: User = Depends(require_owner_only),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await OrganizationService(db).remove(organization_id)
    return MessageResponse(message="Organization deleted")
