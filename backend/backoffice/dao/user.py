"""
User Data Access Object.

WHY: UserDAO provides database operations for the User model. The ownership
subsystem only reads users through it (existence and activity checks).
"""

import uuid
from typing import List, Optional, Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.dao.base import BaseDAO
from backoffice.models.user import User, UserRole
from backoffice.core.exceptions import ResourceAlreadyExistsError


class UserDAO(BaseDAO[User]):
    """
    Data Access Object for User model.

    WHY: All user queries go through this DAO, ensuring consistent
    case-insensitive email handling.
    """

    def __init__(self, session: AsyncSession):
        """Initialize UserDAO with session."""
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by email address.

        WHY: Email is the unique identifier for authentication.
        Case-insensitive comparison prevents duplicate accounts with
        different casing (user@example.com vs USER@EXAMPLE.COM).

        Args:
            email: User's email address

        Returns:
            User instance if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        """
        Check if email already exists in database.

        Args:
            email: Email address to check
            exclude_id: User id to ignore (used when a user keeps their own email)

        Returns:
            True if email exists, False otherwise
        """
        query = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def get_by_ids(self, user_ids: Sequence[uuid.UUID]) -> List[User]:
        """Retrieve all users whose id is in ``user_ids`` (missing ids are skipped)."""
        if not user_ids:
            return []
        result = await self.session.execute(select(User).where(User.id.in_(list(user_ids))))
        return list(result.scalars().all())

    async def create_user(
        self,
        email: str,
        hashed_password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create a new user.

        Args:
            email: User's email address
            hashed_password: Already hashed password (use hash_password())
            first_name: User's first name
            last_name: User's last name
            role: System role (ADMIN or USER)

        Returns:
            Created User instance

        Raises:
            ResourceAlreadyExistsError: If email already exists
        """
        # Check before insert so the caller gets a 409 instead of an IntegrityError
        if await self.email_exists(email):
            raise ResourceAlreadyExistsError(
                message="User with this email already exists",
                resource_type="User",
                email=email,
            )

        return await self.create(
            email=email,
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=True,
        )

    async def get_active_users(self) -> List[User]:
        """Retrieve all active users ordered by creation time."""
        result = await self.session.execute(
            select(User).where(User.is_active.is_(True)).order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def get_by_role(self, role: UserRole) -> List[User]:
        """Retrieve all users holding a system role."""
        result = await self.session.execute(
            select(User).where(User.role == role).order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def get_page(self, skip: int, limit: int) -> List[User]:
        """Retrieve a page of users ordered by creation time."""
        result = await self.session.execute(
            select(User).order_by(User.created_at, User.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
