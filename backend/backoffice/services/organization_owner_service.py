"""
Organization Owner Service.

WHAT: Business logic for organization ownership: adding, removing and
re-roling owners, the activation state machine and the authorization
queries used by the organization guards.

WHY: Ownership decides who may act on an organization. The service is the
only place that enforces the last-owner invariant (every organization keeps
at least one active owner) and the validate-all-before-mutate-any rule.

HOW: Every mutation first locks the organization row, validates the whole
request, writes through OrganizationOwnerDAO, then re-counts active owners
inside the same transaction. A zero count raises LastOwnerError, which makes
get_db roll the request back.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.dao.organization import OrganizationDAO
from backoffice.dao.organization_owner import OrganizationOwnerDAO
from backoffice.dao.user import UserDAO
from backoffice.models.organization import Organization
from backoffice.models.organization_owner import OrganizationOwner
from backoffice.models.user import User
from backoffice.core.exceptions import (
    InactiveUserError,
    InvalidOwnersError,
    LastOwnerError,
    OrganizationNotFoundError,
    OwnershipConflictError,
    UserNotFoundError,
    ValidationError,
)
from backoffice.core.roles import DEFAULT_OWNER_ROLE, is_known_role

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[uuid.UUID]) -> List[uuid.UUID]:
    # Order-preserving de-duplication
    return list(dict.fromkeys(ids))


def _ids_to_str(ids: Iterable[uuid.UUID]) -> List[str]:
    return [str(i) for i in ids]


class OrganizationOwnerService:
    """
    Service for organization ownership operations.

    WHAT: Add/remove/re-role owners, deactivate/reactivate ownership rows and
    answer ownership queries.

    WHY: Keeps every ownership rule in one place so routes and guards never
    touch OrganizationOwnerDAO directly.

    HOW: Coordinates OrganizationDAO, OrganizationOwnerDAO and UserDAO inside
    the caller's session.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize OrganizationOwnerService.

        Args:
            session: Async database session
        """
        self.session = session
        self.organization_dao = OrganizationDAO(session)
        self.owner_dao = OrganizationOwnerDAO(session)
        self.user_dao = UserDAO(session)

    # ========================================================================
    # Mutations
    # ========================================================================

    async def add_owners(
        self,
        organization_id: uuid.UUID,
        user_ids: List[uuid.UUID],
        role: str = DEFAULT_OWNER_ROLE,
        assigned_by: Optional[uuid.UUID] = None,
    ) -> Organization:
        """
        Add users as active owners of an organization.

        Nothing is written unless every user passes validation.

        Args:
            organization_id: Organization id
            user_ids: Users to add
            role: Role given to every new owner (defaults to OWNER)
            assigned_by: User performing the assignment

        Returns:
            The organization with its current owners loaded

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            InvalidOwnersError: If any user doesn't exist (all are listed)
            InactiveUserError: If a user is inactive
            OwnershipConflictError: If any user already has an ownership row
            ValidationError: If role is not a known role
        """
        await self._lock_organization(organization_id)

        if not is_known_role(role):
            raise ValidationError(message=f"Unknown role: {role}", role=role)

        user_ids = _unique(user_ids)
        await self.validate_owners(user_ids)

        active_duplicates: List[uuid.UUID] = []
        inactive_duplicates: List[uuid.UUID] = []
        for user_id in user_ids:
            relation = await self.owner_dao.find_owner_relation(organization_id, user_id)
            if relation is None:
                continue
            if relation.is_active:
                active_duplicates.append(user_id)
            else:
                inactive_duplicates.append(user_id)

        if active_duplicates:
            raise OwnershipConflictError(
                message=(
                    "The following users are already active owners: "
                    + ", ".join(_ids_to_str(active_duplicates))
                ),
                user_ids=_ids_to_str(active_duplicates),
            )
        if inactive_duplicates:
            raise OwnershipConflictError(
                message=(
                    "The following users have an inactive ownership record, "
                    "reactivate them instead: " + ", ".join(_ids_to_str(inactive_duplicates))
                ),
                user_ids=_ids_to_str(inactive_duplicates),
            )

        for user_id in user_ids:
            await self.owner_dao.add_owner(organization_id, user_id, role, assigned_by)

        logger.info(
            f"Added {len(user_ids)} owner(s) with role {role} to organization {organization_id}"
        )
        return await self._organization_with_owners(organization_id)

    async def remove_owners(
        self, organization_id: uuid.UUID, user_ids: List[uuid.UUID]
    ) -> Organization:
        """
        Hard-delete ownership rows for the given users.

        Membership is validated first; the last-owner check is then applied
        to the validated set.

        Args:
            organization_id: Organization id
            user_ids: Users to remove

        Returns:
            The organization with its remaining owners loaded

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            InvalidOwnersError: If any user is not an active owner (all are listed)
            LastOwnerError: If no active owner would remain
        """
        await self._lock_organization(organization_id)

        user_ids = _unique(user_ids)
        not_owners = [
            user_id
            for user_id in user_ids
            if not await self.owner_dao.is_active_owner(organization_id, user_id)
        ]
        if not_owners:
            raise InvalidOwnersError(
                message=(
                    "The following users are not active owners: "
                    + ", ".join(_ids_to_str(not_owners))
                ),
                user_ids=_ids_to_str(not_owners),
            )

        active_count = await self.owner_dao.count_active_owners(organization_id)
        if active_count <= len(user_ids):
            logger.warning(
                f"Refused to remove {len(user_ids)} of {active_count} active owner(s) "
                f"from organization {organization_id}"
            )
            raise LastOwnerError(
                message="Cannot remove every owner. At least one active owner must remain",
                organization_id=str(organization_id),
            )

        for user_id in user_ids:
            await self.owner_dao.remove_owner(organization_id, user_id)

        await self._ensure_active_owner_remains(organization_id)
        logger.info(f"Removed {len(user_ids)} owner(s) from organization {organization_id}")
        return await self._organization_with_owners(organization_id)

    async def update_owner_role(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, new_role: str
    ) -> Organization:
        """
        Change the role of an active owner in place.

        Args:
            organization_id: Organization id
            user_id: Owner whose role changes
            new_role: Role to assign

        Returns:
            The organization with its owners loaded

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            ValidationError: If the user is not an active owner or the role is unknown
        """
        await self._lock_organization(organization_id)

        if not await self.owner_dao.is_active_owner(organization_id, user_id):
            raise ValidationError(
                message="User is not an active owner of this organization",
                user_id=str(user_id),
            )
        if not is_known_role(new_role):
            raise ValidationError(message=f"Unknown role: {new_role}", role=new_role)

        await self.owner_dao.update_owner_role(organization_id, user_id, new_role)
        logger.info(
            f"Changed role of user {user_id} in organization {organization_id} to {new_role}"
        )
        return await self._organization_with_owners(organization_id)

    async def deactivate_owner(
        self, organization_id: uuid.UUID, user_id: uuid.UUID
    ) -> OrganizationOwner:
        """
        Move an ownership row from ACTIVE to INACTIVE.

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            ValidationError: If the user is not an active owner
            LastOwnerError: If the user is the only active owner
        """
        await self._lock_organization(organization_id)

        if not await self.owner_dao.is_active_owner(organization_id, user_id):
            raise ValidationError(
                message="User is not an active owner of this organization",
                user_id=str(user_id),
            )

        if await self.owner_dao.count_active_owners(organization_id) <= 1:
            logger.warning(
                f"Refused to deactivate the only active owner {user_id} "
                f"of organization {organization_id}"
            )
            raise LastOwnerError(
                message="Cannot deactivate the only active owner",
                organization_id=str(organization_id),
            )

        await self.owner_dao.deactivate_owner(organization_id, user_id)
        await self._ensure_active_owner_remains(organization_id)
        logger.info(f"Deactivated owner {user_id} of organization {organization_id}")
        return await self.owner_dao.find_owner_relation(organization_id, user_id)

    async def reactivate_owner(
        self, organization_id: uuid.UUID, user_id: uuid.UUID
    ) -> OrganizationOwner:
        """
        Move an ownership row from INACTIVE back to ACTIVE.

        Raises:
            OrganizationNotFoundError: If the organization doesn't exist
            ValidationError: If no row exists for the pair or it is already active
        """
        await self._lock_organization(organization_id)

        relation = await self.owner_dao.find_owner_relation(organization_id, user_id)
        if relation is None:
            raise ValidationError(
                message="User has no ownership record in this organization",
                user_id=str(user_id),
            )
        if relation.is_active:
            raise ValidationError(
                message="User is already an active owner",
                user_id=str(user_id),
            )

        await self.owner_dao.reactivate_owner(organization_id, user_id)
        logger.info(f"Reactivated owner {user_id} of organization {organization_id}")
        return await self.owner_dao.find_owner_relation(organization_id, user_id)

    # ========================================================================
    # Validation
    # ========================================================================

    async def validate_owners(self, user_ids: List[uuid.UUID]) -> List[User]:
        """
        Check that every id names an existing, active user.

        Missing ids are collected and reported together; the first inactive
        user fails immediately.

        Args:
            user_ids: Candidate owner ids

        Returns:
            The resolved users, in input order

        Raises:
            InactiveUserError: On the first inactive user
            InvalidOwnersError: Listing every id that doesn't exist
        """
        users: List[User] = []
        missing: List[uuid.UUID] = []

        for user_id in user_ids:
            user = await self.user_dao.get_by_id(user_id)
            if user is None:
                missing.append(user_id)
            elif not user.is_active:
                raise InactiveUserError(
                    message=f"User {user_id} is not active",
                    user_id=str(user_id),
                )
            else:
                users.append(user)

        if missing:
            raise InvalidOwnersError(
                message="The following users do not exist: " + ", ".join(_ids_to_str(missing)),
                user_ids=_ids_to_str(missing),
            )

        return users

    # ========================================================================
    # Queries
    # ========================================================================

    async def get_owners(self, organization_id: uuid.UUID) -> List[OrganizationOwner]:
        """All ownership rows of an organization, active or not."""
        await self._verify_organization_exists(organization_id)
        return await self.owner_dao.find_owners(organization_id)

    async def get_active_owners(self, organization_id: uuid.UUID) -> List[OrganizationOwner]:
        """Active ownership rows of an organization with user info, oldest first."""
        await self._verify_organization_exists(organization_id)
        return await self.owner_dao.find_owners_with_user_info(organization_id)

    async def get_owners_by_role(
        self, organization_id: uuid.UUID, role: str
    ) -> List[OrganizationOwner]:
        """Active ownership rows of an organization holding ``role``."""
        await self._verify_organization_exists(organization_id)
        return await self.owner_dao.find_owners_by_role(organization_id, role)

    async def get_owner_relation(
        self, organization_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[OrganizationOwner]:
        return await self.owner_dao.find_owner_relation(organization_id, user_id)

    async def is_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.owner_dao.is_owner(organization_id, user_id)

    async def is_active_owner(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.owner_dao.is_active_owner(organization_id, user_id)

    async def get_organizations_by_owner(self, user_id: uuid.UUID) -> List[Organization]:
        """
        Organizations in which the user holds an ownership row, active or not.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        await self._verify_user_exists(user_id)
        relations = await self.owner_dao.find_organizations_by_owner(user_id)
        return self._distinct_organizations(relations)

    async def get_active_organizations_by_owner(self, user_id: uuid.UUID) -> List[Organization]:
        """
        Active organizations in which the user is an active owner.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        await self._verify_user_exists(user_id)
        relations = await self.owner_dao.find_active_organizations_by_owner(user_id)
        return [
            organization
            for organization in self._distinct_organizations(relations)
            if organization.is_active
        ]

    # ========================================================================
    # Helpers
    # ========================================================================

    @staticmethod
    def _distinct_organizations(relations: List[OrganizationOwner]) -> List[Organization]:
        seen = set()
        organizations = []
        for relation in relations:
            organization = relation.organization
            if organization is None or organization.id in seen:
                continue
            seen.add(organization.id)
            organizations.append(organization)
        return organizations

    async def _verify_organization_exists(self, organization_id: uuid.UUID) -> Organization:
        organization = await self.organization_dao.get_by_id(organization_id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id=str(organization_id))
        return organization

    async def _verify_user_exists(self, user_id: uuid.UUID) -> User:
        user = await self.user_dao.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id=str(user_id))
        return user

    async def _lock_organization(self, organization_id: uuid.UUID) -> Organization:
        organization = await self.organization_dao.lock_for_update(organization_id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id=str(organization_id))
        return organization

    async def _ensure_active_owner_remains(self, organization_id: uuid.UUID) -> None:
        # Post-mutation check in the same transaction; raising rolls it back
        if await self.owner_dao.count_active_owners(organization_id) < 1:
            logger.warning(
                f"Mutation would leave organization {organization_id} without active owners"
            )
            raise LastOwnerError(organization_id=str(organization_id))

    async def _organization_with_owners(self, organization_id: uuid.UUID) -> Organization:
        organization = await self.organization_dao.get_with_owners(organization_id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id=str(organization_id))
        return organization
