"""
Pydantic schemas for organization endpoints.

WHY: Schemas define request/response contracts for organization management,
providing validation, documentation, and type safety.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from backoffice.schemas.common import PageMeta
from backoffice.schemas.organization_owner import OwnerInfo


class OrganizationCreate(BaseModel):
    """
    Organization creation request schema.

    WHY: An organization is never created without owners; every listed
    user becomes an OWNER.
    """

    name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Organization name (globally unique)",
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Organization description",
    )
    owner_ids: List[uuid.UUID] = Field(
        ...,
        min_length=1,
        description="Users that become the initial OWNERs",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Corporation",
                "description": "Leading provider of automation services",
                "owner_ids": ["6f1c2a4e-8f55-4c57-9d0e-2a5b7f3d9c11"],
            }
        }


class OrganizationUpdate(BaseModel):
    """
    Organization update request schema.

    WHY: Allows partial updates with optional fields.
    """

    name: Optional[str] = Field(
        default=None,
        min_length=2,
        max_length=100,
        description="Organization name",
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Organization description",
    )
    is_active: Optional[bool] = Field(default=None, description="Whether organization is active")


class OrganizationResponse(BaseModel):
    """
    Organization response schema.
    """

    id: uuid.UUID = Field(..., description="Organization ID")
    name: str = Field(..., description="Organization name")
    description: Optional[str] = Field(None, description="Organization description")
    is_active: bool = Field(..., description="Whether organization is active")
    created_at: datetime = Field(..., description="Organization creation timestamp")
    updated_at: datetime = Field(..., description="Organization last update timestamp")

    class Config:
        from_attributes = True  # Enable ORM mode for SQLAlchemy models
        json_schema_extra = {
            "example": {
                "id": "0b7e3c55-1d2f-4a8b-9c6d-5e4f3a2b1c0d",
                "name": "Acme Corporation",
                "description": "Leading provider of automation services",
                "is_active": True,
                "created_at": "2025-10-12T10:30:00",
                "updated_at": "2025-10-12T15:45:00",
            }
        }


class OrganizationWithOwnersResponse(OrganizationResponse):
    """Organization plus its ownership records, oldest assignment first."""

    owners: List[OwnerInfo] = Field(default_factory=list, description="Ownership records")


class OrganizationListResponse(PageMeta):
    """One page of organizations."""

    data: List[OrganizationResponse]


class OrganizationWithOwnersListResponse(PageMeta):
    """One page of organizations with their owners."""

    data: List[OrganizationWithOwnersResponse]


class OrganizationContextResponse(BaseModel):
    """
    The caller's relation to an organization.
    """

    organization: OrganizationResponse
    is_owner: bool = Field(..., description="Whether the caller has any ownership record")
    user_role: Optional[str] = Field(None, description="Caller's active role, if any")
