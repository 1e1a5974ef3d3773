"""
Organization Data Access Object.

WHY: OrganizationDAO owns every query against the organizations table,
including the row lock that serializes ownership mutations per organization.
"""

import uuid
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice.core.exceptions import OrganizationNameConflictError
from backoffice.dao.base import BaseDAO
from backoffice.models.organization import Organization
from backoffice.models.organization_owner import OrganizationOwner


class OrganizationDAO(BaseDAO[Organization]):
    """
    Data Access Object for Organization model.
    """

    def __init__(self, session: AsyncSession):
        """Initialize OrganizationDAO with session."""
        super().__init__(Organization, session)

    async def get_by_name(self, name: str) -> Optional[Organization]:
        """
        Retrieve an organization by its exact name.

        Args:
            name: Organization name

        Returns:
            Organization if found, None otherwise
        """
        result = await self.session.execute(
            select(Organization).where(Organization.name == name)
        )
        return result.scalar_one_or_none()

    async def name_exists(self, name: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        """
        Check whether an organization name is taken.

        WHY: Renames must be allowed to keep their own name, so the
        organization being updated can be excluded from the check.

        Args:
            name: Name to check
            exclude_id: Organization id to ignore

        Returns:
            True if another organization already uses the name
        """
        query = select(Organization.id).where(Organization.name == name)
        if exclude_id is not None:
            query = query.where(Organization.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def create_organization(
        self,
        name: str,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Organization:
        """
        Insert an organization inside a SAVEPOINT.

        WHY: Callers check name_exists() first, but two concurrent creates can
        both pass that check. The unique index on name decides, and the
        losing insert is reported as a conflict instead of a raw
        IntegrityError. Only the savepoint is rolled back.

        Raises:
            OrganizationNameConflictError: If the name is already taken
        """
        try:
            async with self.session.begin_nested():
                organization = await self.create(
                    name=name,
                    description=description,
                    is_active=is_active,
                )
        except IntegrityError as e:
            raise OrganizationNameConflictError(name=name) from e
        return organization

    async def update_organization(
        self, organization_id: uuid.UUID, **changes
    ) -> Optional[Organization]:
        """
        Update an organization inside a SAVEPOINT.

        Raises:
            OrganizationNameConflictError: If a rename collides with another organization
        """
        try:
            async with self.session.begin_nested():
                organization = await self.update(organization_id, **changes)
        except IntegrityError as e:
            raise OrganizationNameConflictError(name=changes.get("name")) from e
        return organization

    async def get_with_owners(self, organization_id: uuid.UUID) -> Optional[Organization]:
        """
        Retrieve an organization with its ownership set freshly loaded.

        WHY: Ownership rows may have changed earlier in the same session
        through bulk statements; populate_existing forces the owners
        collection to be reloaded instead of served from the identity map.

        Args:
            organization_id: Organization id

        Returns:
            Organization with ``owners`` loaded, or None
        """
        result = await self.session.execute(
            select(Organization)
            .where(Organization.id == organization_id)
            .options(selectinload(Organization.owners).selectinload(OrganizationOwner.user))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def lock_for_update(self, organization_id: uuid.UUID) -> Optional[Organization]:
        """
        Lock the organization row for the rest of the transaction.

        WHY: Every ownership mutation takes this lock first, so last-owner
        checks and the writes that follow are serialized per organization.
        SQLite ignores FOR UPDATE.

        Args:
            organization_id: Organization id

        Returns:
            The locked organization, or None if it doesn't exist
        """
        result = await self.session.execute(
            select(Organization).where(Organization.id == organization_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_active(self) -> List[Organization]:
        """Retrieve all active organizations ordered by creation time."""
        result = await self.session.execute(
            select(Organization)
            .where(Organization.is_active.is_(True))
            .order_by(Organization.created_at)
        )
        return list(result.scalars().all())

    async def get_by_owner(self, user_id: uuid.UUID) -> List[Organization]:
        """
        Retrieve organizations in which the user holds an active ownership row.

        Args:
            user_id: User id

        Returns:
            Distinct organizations ordered by creation time
        """
        result = await self.session.execute(
            select(Organization)
            .join(OrganizationOwner, OrganizationOwner.organization_id == Organization.id)
            .where(
                OrganizationOwner.user_id == user_id,
                OrganizationOwner.is_active.is_(True),
            )
            .distinct()
            .order_by(Organization.created_at)
        )
        return list(result.scalars().all())

    async def get_ordered(self) -> List[Organization]:
        """Retrieve every organization ordered by creation time."""
        result = await self.session.execute(
            select(Organization).order_by(Organization.created_at, Organization.id)
        )
        return list(result.scalars().all())

    async def get_page(self, skip: int, limit: int, with_owners: bool = False) -> List[Organization]:
        """
        Retrieve a page of organizations ordered by creation time.

        Args:
            skip: Rows to skip
            limit: Maximum rows to return
            with_owners: Also eager-load each organization's owners and their users

        Returns:
            List of organizations
        """
        query = select(Organization).order_by(Organization.created_at, Organization.id)
        if with_owners:
            query = query.options(
                selectinload(Organization.owners).selectinload(OrganizationOwner.user)
            ).execution_options(populate_existing=True)
        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())
