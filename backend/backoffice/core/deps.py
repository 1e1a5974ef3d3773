"""
FastAPI dependencies for authentication and authorization.

WHY: Dependencies provide reusable authentication and authorization logic
that can be injected into route handlers, ensuring consistent security
across the API.
"""

import uuid
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.auth import verify_token, is_token_blacklisted
from backoffice.core.exceptions import (
    AuthenticationError,
    InsufficientPermissionsError,
    TokenExpiredError,
    TokenInvalidError,
)
from backoffice.db.session import get_db
from backoffice.models.user import User, UserRole
from backoffice.dao.user import UserDAO


# HTTP Bearer token security scheme
# WHY: auto_error=False so a missing header is reported as our own
# AuthenticationError (401) instead of FastAPI's default response
security = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> User:
    payload = verify_token(token)

    # Even valid tokens are rejected once the user logged out
    if await is_token_blacklisted(token):
        raise AuthenticationError(
            message="Token has been revoked",
            reason="logged_out",
        )

    subject = payload.get("sub")
    try:
        user_id = uuid.UUID(str(subject))
    except ValueError:
        raise TokenInvalidError(message="Invalid token: missing subject")

    # User data in token might be stale; always fetch current data
    user = await UserDAO(db).get_by_id(user_id)

    if not user:
        raise AuthenticationError(
            message="User not found",
            user_id=str(user_id),
        )

    if not user.is_active:
        raise AuthenticationError(
            message="User account is inactive",
            user_id=str(user_id),
        )

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from JWT token.

    WHY: This dependency:
    1. Extracts token from Authorization header
    2. Verifies token signature and expiration
    3. Checks if token is blacklisted (logged out)
    4. Fetches user from database
    5. Ensures user still exists and is active

    Args:
        credentials: JWT token from Authorization header
        db: Database session

    Returns:
        Authenticated User instance

    Raises:
        AuthenticationError: If token is missing, invalid, expired, or user not found
    """
    if credentials is None:
        raise AuthenticationError(message="Not authenticated")

    return await _resolve_user(credentials.credentials, db)


def require_role(required_role: str):
    """
    Factory function to create a system role requirement dependency.

    Usage:
        @router.post("/users")
        async def create_user(admin: User = Depends(require_role("ADMIN"))):
            ...

    Args:
        required_role: Role name ("ADMIN" or "USER")

    Returns:
        Dependency function that checks for the required role
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.value != required_role:
            raise InsufficientPermissionsError(
                message=f"{required_role} access required",
                user_id=str(current_user.id),
                user_role=current_user.role.value,
                required_role=required_role,
            )
        return current_user

    return role_checker


require_admin = require_role(UserRole.ADMIN.value)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Get current user if authenticated, None otherwise.

    WHY: Organization guards decide themselves how to report a missing
    caller, so they need the user without an automatic 401.

    Args:
        credentials: Optional JWT token from Authorization header
        db: Database session

    Returns:
        User instance if authenticated, None otherwise
    """
    if not credentials:
        return None

    try:
        return await _resolve_user(credentials.credentials, db)
    except (TokenExpiredError, TokenInvalidError, AuthenticationError):
        return None
