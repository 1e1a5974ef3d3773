"""
Pydantic schemas for organization owner endpoints.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from backoffice.core.roles import DEFAULT_OWNER_ROLE

# Roles a caller may assign through the API
AssignableRole = Literal["OWNER", "ADMIN", "MEMBER"]


class OwnerUserInfo(BaseModel):
    """Public user fields embedded in ownership responses."""

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    is_active: bool

    class Config:
        from_attributes = True


class OwnerInfo(BaseModel):
    """
    Ownership record response schema.
    """

    organization_id: uuid.UUID = Field(..., description="Organization ID")
    user_id: uuid.UUID = Field(..., description="Owner's user ID")
    role: str = Field(..., description="Role inside the organization")
    is_active: bool = Field(..., description="Whether the ownership is active")
    assigned_at: datetime = Field(..., description="When the ownership was granted")
    assigned_by: Optional[uuid.UUID] = Field(None, description="User who granted it")
    user: Optional[OwnerUserInfo] = Field(None, description="Owner's user record")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "organization_id": "0b7e3c55-1d2f-4a8b-9c6d-5e4f3a2b1c0d",
                "user_id": "6f1c2a4e-8f55-4c57-9d0e-2a5b7f3d9c11",
                "role": "OWNER",
                "is_active": True,
                "assigned_at": "2025-10-12T10:30:00",
                "assigned_by": None,
            }
        }


class AddOwnersRequest(BaseModel):
    """
    Add-owners request schema.

    WHY: Bounded batch size keeps the validate-all-then-insert pass short
    while the organization row is locked.
    """

    user_ids: List[uuid.UUID] = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Users to add (1 to 10)",
    )
    role: AssignableRole = Field(
        default=DEFAULT_OWNER_ROLE,
        description="Role for every added user",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_ids": ["6f1c2a4e-8f55-4c57-9d0e-2a5b7f3d9c11"],
                "role": "ADMIN",
            }
        }


class RemoveOwnersRequest(BaseModel):
    """Remove-owners request schema."""

    user_ids: List[uuid.UUID] = Field(
        ...,
        min_length=1,
        description="Owners to remove",
    )


class UpdateOwnerRoleRequest(BaseModel):
    """Change-role request schema."""

    user_id: uuid.UUID = Field(..., description="Owner whose role changes")
    new_role: AssignableRole = Field(..., description="New role")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "6f1c2a4e-8f55-4c57-9d0e-2a5b7f3d9c11",
                "new_role": "ADMIN",
            }
        }
