"""
User Service.

WHAT: Account management: create, look up, update and delete users.

WHY: Deleting a user touches the ownership subsystem. A user who is the
last active owner of an organization cannot be deleted, otherwise that
organization would be left without an owner.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.auth import hash_password
from backoffice.core.exceptions import (
    DatabaseError,
    LastOwnerError,
    ResourceAlreadyExistsError,
    UserNotFoundError,
)
from backoffice.core.pagination import PaginatedResult, normalize_pagination
from backoffice.dao.organization import OrganizationDAO
from backoffice.dao.organization_owner import OrganizationOwnerDAO
from backoffice.dao.user import UserDAO
from backoffice.models.user import User, UserRole

logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user account operations.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserService.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_dao = UserDAO(session)
        self.organization_dao = OrganizationDAO(session)
        self.owner_dao = OrganizationOwnerDAO(session)

    async def create(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create a user with a hashed password.

        Raises:
            ResourceAlreadyExistsError: If the email is already registered
        """
        user = await self.user_dao.create_user(
            email=email,
            hashed_password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        logger.info(f"Created user {user.id}")
        return user

    async def find_one(self, id: uuid.UUID) -> User:
        user = await self.user_dao.get_by_id(id)
        if user is None:
            raise UserNotFoundError(user_id=str(id))
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self.user_dao.get_by_email(email)

    async def find_all_paginated(self, page: int = 1, limit: int = 10) -> PaginatedResult[User]:
        page, limit = normalize_pagination(page, limit)
        result = PaginatedResult(page=page, limit=limit)
        result.total = await self.user_dao.count()
        result.data = await self.user_dao.get_page(result.skip, limit)
        return result

    async def find_active_users(self) -> List[User]:
        return await self.user_dao.get_active_users()

    async def find_by_role(self, role: UserRole) -> List[User]:
        return await self.user_dao.get_by_role(role)

    async def update(
        self,
        id: uuid.UUID,
        email: Optional[str] = None,
        password: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
    ) -> User:
        """
        Update a user's profile fields.

        Raises:
            UserNotFoundError: If the user doesn't exist
            ResourceAlreadyExistsError: If the new email belongs to another user
        """
        user = await self.find_one(id)

        changes = {}
        if email is not None and email.lower() != user.email.lower():
            if await self.user_dao.email_exists(email, exclude_id=id):
                raise ResourceAlreadyExistsError(
                    message="User with this email already exists",
                    resource_type="User",
                    email=email,
                )
            changes["email"] = email
        if password is not None:
            changes["hashed_password"] = hash_password(password)
        if first_name is not None:
            changes["first_name"] = first_name
        if last_name is not None:
            changes["last_name"] = last_name
        if role is not None:
            changes["role"] = role
        if is_active is not None:
            changes["is_active"] = is_active

        if changes:
            user = await self.user_dao.update(id, **changes)
            logger.info(f"Updated user {id}: {sorted(changes)}")

        return user

    async def remove(self, id: uuid.UUID) -> None:
        """
        Delete a user and every ownership row they hold.

        Every organization the user actively owns is locked first (in id
        order), so the sole-owner check and the deletes that follow are
        serialized against the ownership mutations on those organizations.
        The active owner counts are re-checked after the rows are gone.

        Raises:
            UserNotFoundError: If the user doesn't exist
            LastOwnerError: If the user is the only active owner of any organization
        """
        await self.find_one(id)

        owned = await self.owner_dao.find_active_organization_ids(id)
        for organization_id in owned:
            await self.organization_dao.lock_for_update(organization_id)

        sole_owned = await self.owner_dao.find_sole_owned_organization_ids(id)
        if sole_owned:
            logger.warning(
                f"Refused to delete user {id}: last active owner of "
                f"{len(sole_owned)} organization(s)"
            )
            raise LastOwnerError(
                message="User is the last active owner of one or more organizations",
                organization_ids=[str(org_id) for org_id in sole_owned],
            )

        removed = await self.owner_dao.remove_user_from_all_organizations(id)

        # Raising here rolls the request transaction back
        for organization_id in owned:
            if await self.owner_dao.count_active_owners(organization_id) < 1:
                logger.warning(
                    f"Deleting user {id} would leave organization {organization_id} "
                    f"without active owners"
                )
                raise LastOwnerError(
                    message="User is the last active owner of one or more organizations",
                    organization_ids=[str(organization_id)],
                )

        if not await self.user_dao.delete(id):
            raise DatabaseError(message="Failed to delete user", user_id=str(id))
        logger.info(f"Deleted user {id} and {removed} ownership record(s)")
