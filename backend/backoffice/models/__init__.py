"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from backoffice.models.base import Base, TimestampMixin, PrimaryKeyMixin
from backoffice.models.user import User, UserRole
from backoffice.models.organization import Organization
from backoffice.models.organization_owner import OrganizationOwner

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "User",
    "UserRole",
    "Organization",
    "OrganizationOwner",
]
