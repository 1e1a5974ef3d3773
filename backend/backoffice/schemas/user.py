"""
Pydantic schemas for user endpoints.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from backoffice.models.user import UserRole
from backoffice.schemas.common import PageMeta


class UserCreate(BaseModel):
    """
    User creation request schema (admin only).
    """

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=100, description="Password")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    role: UserRole = Field(default=UserRole.USER, description="System role")


class UserUpdate(BaseModel):
    """
    User update request schema.

    WHY: All fields optional for partial updates.
    """

    email: Optional[EmailStr] = Field(default=None, description="New email address")
    password: Optional[str] = Field(default=None, min_length=8, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[UserRole] = Field(default=None, description="System role (admin only)")
    is_active: Optional[bool] = Field(default=None, description="Account status (admin only)")


class UserResponse(BaseModel):
    """
    User response schema.

    WHY: Returns user data without sensitive information (no password hash).
    """

    id: uuid.UUID = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    role: UserRole = Field(..., description="System role (ADMIN or USER)")
    is_active: bool = Field(..., description="Whether user account is active")
    created_at: datetime = Field(..., description="Account creation timestamp")

    class Config:
        from_attributes = True  # Enable ORM mode for SQLAlchemy models
        json_schema_extra = {
            "example": {
                "id": "6f1c2a4e-8f55-4c57-9d0e-2a5b7f3d9c11",
                "email": "admin@example.com",
                "first_name": "Admin",
                "last_name": "User",
                "role": "ADMIN",
                "is_active": True,
                "created_at": "2025-10-12T10:30:00",
            }
        }


class UserListResponse(PageMeta):
    """One page of users."""

    data: List[UserResponse]
