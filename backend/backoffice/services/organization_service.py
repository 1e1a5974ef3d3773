"""
Organization Service.

WHAT: Organization lifecycle: creation with initial owners, updates,
deletion with its ownership cascade and listing.

WHY: An organization must never exist without an active owner, so creation
bootstraps ownership and undoes itself if that fails, and deletion clears
ownership rows before the organization row goes away.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.dao.organization import OrganizationDAO
from backoffice.dao.organization_owner import OrganizationOwnerDAO
from backoffice.models.organization import Organization
from backoffice.services.organization_owner_service import OrganizationOwnerService
from backoffice.core.exceptions import (
    AppException,
    DatabaseError,
    OrganizationNameConflictError,
    OrganizationNotFoundError,
    ValidationError,
)
from backoffice.core.pagination import PaginatedResult, normalize_pagination
from backoffice.core.roles import OrganizationRole

logger = logging.getLogger(__name__)


class OrganizationService:
    """
    Service for organization lifecycle operations.

    WHAT: Create, update, delete and query organizations.

    WHY: Keeps name uniqueness, initial ownership and the deletion cascade
    together in one transaction-scoped unit.

    HOW: Uses OrganizationDAO for organization rows and delegates owner
    validation to OrganizationOwnerService.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize OrganizationService.

        Args:
            session: Async database session
        """
        self.session = session
        self.organization_dao = OrganizationDAO(session)
        self.owner_dao = OrganizationOwnerDAO(session)
        self.owner_service = OrganizationOwnerService(session)

    async def create(
        self,
        name: str,
        owner_ids: List[uuid.UUID],
        description: Optional[str] = None,
    ) -> Organization:
        """
        Create an organization and make every listed user an OWNER.

        WHY: If any owner cannot be assigned the organization row is deleted
        again before the error propagates, so a failed create never leaves an
        ownerless organization behind.

        Args:
            name: Globally unique organization name
            owner_ids: Initial owners (at least one)
            description: Optional description

        Returns:
            The created organization with its owners loaded

        Raises:
            OrganizationNameConflictError: If the name is taken
            ValidationError: If owner_ids is empty or an owner is invalid
        """
        if await self.organization_dao.name_exists(name):
            raise OrganizationNameConflictError(name=name)

        if not owner_ids:
            raise ValidationError(message="At least one owner must be specified")

        organization = await self.organization_dao.create_organization(
            name=name,
            description=description,
            is_active=True,
        )

        try:
            owner_ids = list(dict.fromkeys(owner_ids))
            await self.owner_service.validate_owners(owner_ids)
            for owner_id in owner_ids:
                await self.owner_dao.add_owner(
                    organization.id,
                    owner_id,
                    OrganizationRole.OWNER.value,
                    None,
                )
        except AppException:
            logger.info(
                f"Owner assignment failed for new organization {organization.id}; "
                f"deleting it"
            )
            await self.organization_dao.delete(organization.id)
            raise

        logger.info(
            f"Created organization {organization.id} ({name}) with {len(owner_ids)} owner(s)"
        )
        return await self.find_one_with_owners(organization.id)

    async def update(
        self,
        id: uuid.UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Organization:
        """
        Update name, description or active flag.

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            OrganizationNameConflictError: If the new name belongs to another organization
        """
        organization = await self.find_one(id)

        changes = {}
        if name is not None and name != organization.name:
            if await self.organization_dao.name_exists(name, exclude_id=id):
                raise OrganizationNameConflictError(name=name)
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if is_active is not None:
            changes["is_active"] = is_active

        if changes:
            organization = await self.organization_dao.update_organization(id, **changes)
            logger.info(f"Updated organization {id}: {sorted(changes)}")

        return organization

    async def remove(self, id: uuid.UUID) -> None:
        """
        Delete an organization after removing all of its ownership rows.

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            DatabaseError: If the row could not be deleted after the cascade
        """
        organization = await self.organization_dao.lock_for_update(id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id=str(id))

        removed = await self.owner_dao.remove_all_owners(id)
        logger.info(f"Removed {removed} owner(s) from organization {id}")

        if not await self.organization_dao.delete(id):
            raise DatabaseError(
                message="Failed to delete organization",
                organization_id=str(id),
            )
        logger.info(f"Deleted organization {id}")

    async def find_one(self, id: uuid.UUID) -> Organization:
        organization = await self.organization_dao.get_by_id(id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id=str(id))
        return organization

    async def find_one_with_owners(self, id: uuid.UUID) -> Organization:
        organization = await self.organization_dao.get_with_owners(id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id=str(id))
        return organization

    async def find_by_name(self, name: str) -> Optional[Organization]:
        return await self.organization_dao.get_by_name(name)

    async def find_by_owner(self, owner_id: uuid.UUID) -> List[Organization]:
        """Organizations in which ``owner_id`` holds an active ownership row."""
        return await self.organization_dao.get_by_owner(owner_id)

    async def find_active_organizations(self) -> List[Organization]:
        return await self.organization_dao.get_active()

    async def find_all(self) -> List[Organization]:
        return await self.organization_dao.get_ordered()

    async def find_all_paginated(
        self, page: int = 1, limit: int = 10, with_owners: bool = False
    ) -> PaginatedResult[Organization]:
        """
        Return one page of organizations, oldest first.

        page < 1 is treated as 1, limit < 1 as the default page size, and
        limit is capped at the maximum page size.
        """
        page, limit = normalize_pagination(page, limit)
        result = PaginatedResult(page=page, limit=limit)
        result.total = await self.organization_dao.count()
        result.data = await self.organization_dao.get_page(
            result.skip, limit, with_owners=with_owners
        )
        return result

    async def find_all_with_owners_paginated(
        self, page: int = 1, limit: int = 10
    ) -> PaginatedResult[Organization]:
        return await self.find_all_paginated(page, limit, with_owners=True)
