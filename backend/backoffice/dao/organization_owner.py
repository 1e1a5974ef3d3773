"""
Organization ownership Data Access Object.

WHY: OrganizationOwnerDAO is the only code that reads or writes
organization_owners rows. It enforces no business rules (last-owner
protection, activation transitions and role validation live in
OrganizationOwnerService); it only translates store constraint failures
into application exceptions.
"""

import uuid
from typing import List, Optional
from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice.dao.base import BaseDAO
from backoffice.models.organization import Organization
from backoffice.models.organization_owner import OrganizationOwner
from backoffice.core.exceptions import OwnershipConflictError, OwnershipNotFoundError
from backoffice.core.roles import DEFAULT_OWNER_ROLE


class OrganizationOwnerDAO(BaseDAO[OrganizationOwner]):
    """
    Data Access Object for OrganizationOwner rows.

    Rows are keyed by (organization_id, user_id); the id-based BaseDAO
    helpers are not used here.
    """

    def __init__(self, session: AsyncSession):
        """Initialize OrganizationOwnerDAO with session."""
        super().__init__(OrganizationOwner, session)

    @staticmethod
    def _pair(organization_id: uuid.UUID, user_id: uuid.UUID):
        return (
            OrganizationOwner.organization_id == organization_id,
            OrganizationOwner.user_id == user_id,
        )

    # ========================================================================
    # Mutations
    # ========================================================================

    async def add_owner(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str = DEFAULT_OWNER_ROLE,
        assigned_by: Optional[uuid.UUID] = None,
    ) -> OrganizationOwner:
        """
        Insert an active ownership row.

        WHY: The insert runs inside a savepoint so a unique violation only
        discards this row; the caller's transaction stays usable.

        Args:
            organization_id: Organization id
            user_id: User becoming owner
            role: Role inside the organization
            assigned_by: User who made the assignment, if any

        Returns:
            The created OrganizationOwner

        Raises:
            OwnershipConflictError: If a row already exists for the pair
        """
        owner = OrganizationOwner(
            organization_id=organization_id,
            user_id=user_id,
            role=role,
            assigned_by=assigned_by,
            is_active=True,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(owner)
        except IntegrityError as e:
            raise OwnershipConflictError(
                message="User is already an owner of this organization",
                organization_id=str(organization_id),
                user_ids=[str(user_id)],
            ) from e

        await self.session.refresh(owner)
        return owner

    async def remove_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """
        Hard-delete the ownership row for a pair.

        Returns:
            True if a row was deleted
        """
        result = await self.session.execute(
            delete(OrganizationOwner).where(*self._pair(organization_id, user_id))
        )
        return result.rowcount > 0

    async def update_owner_role(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, new_role: str
    ) -> OrganizationOwner:
        """
        Change the role of an existing ownership row in place.

        assigned_at and assigned_by are left untouched.

        Raises:
            OwnershipNotFoundError: If no row exists for the pair
        """
        owner = await self.find_owner_relation(organization_id, user_id)
        if owner is None:
            raise OwnershipNotFoundError(
                organization_id=str(organization_id),
                user_id=str(user_id),
            )

        owner.role = new_role
        await self.session.flush()
        return owner

    async def deactivate_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Set is_active to False for the pair, keeping the rest of the row."""
        await self._set_active(organization_id, user_id, False)

    async def reactivate_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Set is_active to True for the pair, keeping the rest of the row."""
        await self._set_active(organization_id, user_id, True)

    async def _set_active(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, is_active: bool
    ) -> None:
        await self.session.execute(
            update(OrganizationOwner)
            .where(*self._pair(organization_id, user_id))
            .values(is_active=is_active)
            .execution_options(synchronize_session="fetch")
        )

    async def remove_all_owners(self, organization_id: uuid.UUID) -> int:
        """
        Hard-delete every ownership row of an organization.

        Only used by the organization deletion cascade.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(OrganizationOwner).where(OrganizationOwner.organization_id == organization_id)
        )
        return result.rowcount

    async def remove_user_from_all_organizations(self, user_id: uuid.UUID) -> int:
        """
        Hard-delete every ownership row held by a user.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(OrganizationOwner).where(OrganizationOwner.user_id == user_id)
        )
        return result.rowcount

    # ========================================================================
    # Queries by organization
    # ========================================================================

    async def find_owners(self, organization_id: uuid.UUID) -> List[OrganizationOwner]:
        """All ownership rows of an organization, active or not."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .where(OrganizationOwner.organization_id == organization_id)
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def find_active_owners(self, organization_id: uuid.UUID) -> List[OrganizationOwner]:
        """Active ownership rows of an organization."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .where(
                OrganizationOwner.organization_id == organization_id,
                OrganizationOwner.is_active.is_(True),
            )
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def find_owners_by_role(
        self, organization_id: uuid.UUID, role: str
    ) -> List[OrganizationOwner]:
        """Active ownership rows of an organization holding ``role``."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .where(
                OrganizationOwner.organization_id == organization_id,
                OrganizationOwner.role == role,
                OrganizationOwner.is_active.is_(True),
            )
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def find_owner_relation(
        self, organization_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[OrganizationOwner]:
        """The ownership row for a pair regardless of its active flag, or None."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .where(*self._pair(organization_id, user_id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_owners_with_user_info(
        self, organization_id: uuid.UUID
    ) -> List[OrganizationOwner]:
        """Active ownership rows with their users eager-loaded, oldest first."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .options(selectinload(OrganizationOwner.user))
            .where(
                OrganizationOwner.organization_id == organization_id,
                OrganizationOwner.is_active.is_(True),
            )
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def is_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """True if any ownership row exists for the pair, active or not."""
        return await self.count_rows(organization_id, user_id) > 0

    async def is_active_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """True if an active ownership row exists for the pair."""
        return await self.count_rows(organization_id, user_id, active_only=True) > 0

    async def owner_exists(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Alias of is_owner."""
        return await self.is_owner(organization_id, user_id)

    async def count_rows(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, active_only: bool = False
    ) -> int:
        query = (
            select(func.count())
            .select_from(OrganizationOwner)
            .where(*self._pair(organization_id, user_id))
        )
        if active_only:
            query = query.where(OrganizationOwner.is_active.is_(True))
        result = await self.session.execute(query)
        return result.scalar_one()

    async def count_owners(self, organization_id: uuid.UUID) -> int:
        """Number of ownership rows of an organization, active or not."""
        return await self.count(organization_id=organization_id)

    async def count_active_owners(self, organization_id: uuid.UUID) -> int:
        """Number of active ownership rows of an organization."""
        return await self.count(organization_id=organization_id, is_active=True)

    # ========================================================================
    # Inverse queries (by user)
    # ========================================================================

    async def find_organizations_by_owner(self, user_id: uuid.UUID) -> List[OrganizationOwner]:
        """Every ownership row held by a user, with organizations loaded."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .options(selectinload(OrganizationOwner.organization))
            .where(OrganizationOwner.user_id == user_id)
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def find_active_organizations_by_owner(
        self, user_id: uuid.UUID
    ) -> List[OrganizationOwner]:
        """Active ownership rows held by a user, with organizations loaded."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .options(selectinload(OrganizationOwner.organization))
            .where(
                OrganizationOwner.user_id == user_id,
                OrganizationOwner.is_active.is_(True),
            )
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def find_organizations_by_role(
        self, user_id: uuid.UUID, role: str
    ) -> List[OrganizationOwner]:
        """Active ownership rows in which a user holds ``role``."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .options(selectinload(OrganizationOwner.organization))
            .where(
                OrganizationOwner.user_id == user_id,
                OrganizationOwner.role == role,
                OrganizationOwner.is_active.is_(True),
            )
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def find_organizations_with_org_info(
        self, user_id: uuid.UUID
    ) -> List[OrganizationOwner]:
        """Active ownership rows of a user in active organizations."""
        result = await self.session.execute(
            select(OrganizationOwner)
            .join(Organization, Organization.id == OrganizationOwner.organization_id)
            .options(selectinload(OrganizationOwner.organization))
            .where(
                OrganizationOwner.user_id == user_id,
                OrganizationOwner.is_active.is_(True),
                Organization.is_active.is_(True),
            )
            .order_by(OrganizationOwner.assigned_at)
        )
        return list(result.scalars().all())

    async def count_organizations_by_owner(self, user_id: uuid.UUID) -> int:
        """Number of organizations in which a user holds an active ownership row."""
        return await self.count(user_id=user_id, is_active=True)

    async def find_active_organization_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        """
        Ids of organizations where ``user_id`` holds an active ownership row.

        Sorted by id so callers locking several organizations always take
        the locks in the same order.
        """
        result = await self.session.execute(
            select(OrganizationOwner.organization_id)
            .where(
                OrganizationOwner.user_id == user_id,
                OrganizationOwner.is_active.is_(True),
            )
            .order_by(OrganizationOwner.organization_id)
        )
        return list(result.scalars().all())

    async def find_sole_owned_organization_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        """
        Ids of organizations where ``user_id`` is the only active owner.

        WHY: Deleting such a user would leave those organizations ownerless.
        """
        active = (
            select(
                OrganizationOwner.organization_id,
                func.count().label("active_count"),
            )
            .where(OrganizationOwner.is_active.is_(True))
            .group_by(OrganizationOwner.organization_id)
            .subquery()
        )
        result = await self.session.execute(
            select(OrganizationOwner.organization_id)
            .join(active, active.c.organization_id == OrganizationOwner.organization_id)
            .where(
                OrganizationOwner.user_id == user_id,
                OrganizationOwner.is_active.is_(True),
                active.c.active_count == 1,
            )
        )
        return list(result.scalars().all())
