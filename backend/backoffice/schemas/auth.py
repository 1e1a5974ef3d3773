"""
Pydantic schemas for authentication endpoints.

WHY: Schemas define request/response contracts, providing:
1. Automatic validation of request data
2. API documentation (OpenAPI/Swagger)
3. Clear separation between API and database models
"""

from pydantic import BaseModel, EmailStr, Field

from backoffice.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """
    Login request schema.
    """

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=100,
        description="User's password",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@example.com",
                "password": "SecurePassword123!",
            }
        }


class RegisterRequest(BaseModel):
    """
    Self-registration request schema.

    WHY: Registration always creates a regular USER account; admins are
    created through the users API.
    """

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=100, description="Password")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane@example.com",
                "password": "SecurePassword123!",
                "first_name": "Jane",
                "last_name": "Doe",
            }
        }


class TokenResponse(BaseModel):
    """
    JWT token response schema.

    WHY: Returns access token with additional metadata for client-side
    token management (expiration time, token type).
    """

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(
        default="bearer",
        description="Token type (always 'bearer' for JWT)",
    )
    expires_in: int = Field(..., description="Token expiration time in seconds")

    class Config:
        json_schema_extra = {
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.eyJzdWIiOiIxIn0...",
                "token_type": "bearer",
                "expires_in": 86400,
            }
        }


class LogoutResponse(BaseModel):
    """Logout response schema."""

    message: str = Field(
        default="Successfully logged out",
        description="Logout confirmation message",
    )


class RegisterResponse(TokenResponse):
    """
    Registration response schema.

    WHY: Registration logs the new user in immediately, so the token is
    returned together with the created account.
    """

    user: UserResponse = Field(..., description="The created account")
