"""
Authentication API endpoints.

WHY: These endpoints provide the authentication flow:
1. Register - Create an account and return a JWT token
2. Login - Authenticate user and return JWT token
3. Profile - Get current user information
4. Logout - Blacklist token to prevent further use

Security:
- Passwords are compared using constant-time comparison (bcrypt)
- Generic error messages prevent user enumeration attacks
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.auth import (
    verify_password,
    create_access_token,
    blacklist_token,
)
from backoffice.core.config import settings
from backoffice.core.deps import get_current_user, security
from backoffice.core.exceptions import AuthenticationError
from backoffice.db.session import get_db
from backoffice.dao.user import UserDAO
from backoffice.models.user import User
from backoffice.schemas.auth import (
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from backoffice.schemas.user import UserResponse
from backoffice.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _token_for(user: User) -> str:
    return create_access_token(user.id, user.email, user.role.value)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description="Create a regular USER account and return a JWT token",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """
    Register a new account.

    Raises:
        ResourceAlreadyExistsError (409): If the email is already registered
    """
    user = await UserService(db).create(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )

    return RegisterResponse(
        access_token=_token_for(user),
        token_type="bearer",
        expires_in=settings.JWT_EXPIRATION_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Login user",
    description="Authenticate user with email and password, returns JWT token",
)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Authenticate user and return JWT access token.

    WHY: This endpoint:
    1. Validates user credentials (email + password)
    2. Checks user exists and is active
    3. Generates JWT token with user data

    Raises:
        AuthenticationError (401): If credentials are invalid or the account is inactive
    """
    user = await UserDAO(db).get_by_email(credentials.email)

    # WHY: Use generic error message to prevent user enumeration
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login attempt")
        raise AuthenticationError(message="Invalid email or password")

    if not user.is_active:
        raise AuthenticationError(
            message="Account is inactive",
            user_id=str(user.id),
        )

    logger.info(f"User {user.id} logged in")
    return TokenResponse(
        access_token=_token_for(user),
        token_type="bearer",
        expires_in=settings.JWT_EXPIRATION_MINUTES * 60,
    )


@router.get(
    "/profile",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get information about the currently authenticated user",
)
async def profile(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """
    Get current user information without sensitive data (no password hash).
    """
    return UserResponse.model_validate(current_user)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    status_code=status.HTTP_200_OK,
    summary="Logout user",
    description="Blacklist current token to prevent further use",
)
async def logout(
    current_user: User = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> LogoutResponse:
    """
    Logout user by blacklisting their token.

    WHY: JWT tokens are stateless and can't be "deleted". Blacklisting
    ensures the token can't be used even if it hasn't expired yet.
    """
    await blacklist_token(credentials.credentials, current_user.id)
    logger.info(f"User {current_user.id} logged out")
    return LogoutResponse(message="Successfully logged out")
