"""
JWT authentication and password hashing utilities.

WHY: This module provides the authentication primitives used by the auth
routes and the request dependencies:
1. Password hashing with bcrypt
2. JWT access token generation and verification
3. Token blacklist (Redis) for logout
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from jose import jwt, JWTError
from passlib.context import CryptContext
import redis.asyncio as aioredis

from backoffice.core.config import settings
from backoffice.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
)


# Password hashing context
# WHY: bcrypt with default cost factor (12 rounds) provides strong protection
# against brute-force attacks while maintaining acceptable performance.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# Redis connection for token blacklist
_redis_client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    """
    Get Redis client for token blacklist.

    WHY: Lazy initialization ensures Redis is only connected when needed,
    and connection is reused across requests.

    Returns:
        Redis client instance
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


# ============================================================================
# Password Hashing
# ============================================================================


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password (60 characters, includes salt and cost factor)
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    WHY: Constant-time comparison (built into passlib) prevents timing
    attacks that could leak information about the password.

    Args:
        plain_password: Password provided by user
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


# ============================================================================
# JWT Token Management
# ============================================================================


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token for a user.

    Token includes:
    - sub: User id (string UUID)
    - email, role: Informational claims (the user is always reloaded)
    - exp: Expiration time (default: JWT_EXPIRATION_MINUTES)
    - iat: Issued at time
    - nbf: Not before time

    Args:
        user_id: User id
        email: User email
        role: System role (ADMIN or USER)
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string
    """
    now = datetime.utcnow()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": expire,
        "iat": now,
        "nbf": now,
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )

    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")

    except JWTError as e:
        raise TokenInvalidError(
            message="Invalid token",
            error=str(e),
        )


# ============================================================================
# Token Blacklist (Logout)
# ============================================================================


async def blacklist_token(
    token: str,
    user_id: uuid.UUID,
    ttl_seconds: Optional[int] = None,
) -> None:
    """
    Add a token to the blacklist (for logout).

    WHY: JWT tokens are stateless and can't be "deleted". Blacklisting
    prevents a token from being used even if it hasn't expired yet.

    Args:
        token: JWT token to blacklist
        user_id: Owner of the token, stored as the value
        ttl_seconds: Optional TTL (defaults to the token's remaining lifetime)
    """
    redis = await get_redis()

    # No need to keep blacklist entries longer than token lifetime
    if ttl_seconds is None:
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
                options={"verify_signature": False, "verify_exp": False},
            )
            exp_timestamp = payload.get("exp")
            if exp_timestamp:
                ttl_seconds = max(
                    int(exp_timestamp - datetime.now(timezone.utc).timestamp()),
                    1,
                )
            else:
                ttl_seconds = settings.JWT_EXPIRATION_MINUTES * 60
        except JWTError:
            ttl_seconds = settings.JWT_EXPIRATION_MINUTES * 60

    await redis.setex(
        f"blacklist:token:{token}",
        ttl_seconds,
        str(user_id),
    )


async def is_token_blacklisted(token: str) -> bool:
    """
    Check if a token is blacklisted.

    Args:
        token: JWT token to check

    Returns:
        True if token is blacklisted, False otherwise
    """
    redis = await get_redis()
    exists = await redis.exists(f"blacklist:token:{token}")
    return exists > 0


async def close_redis() -> None:
    """Close the shared Redis client, if one was opened."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
