"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from backoffice.dao.base import BaseDAO
from backoffice.dao.user import UserDAO
from backoffice.dao.organization import OrganizationDAO
from backoffice.dao.organization_owner import OrganizationOwnerDAO

__all__ = [
    "BaseDAO",
    "UserDAO",
    "OrganizationDAO",
    "OrganizationOwnerDAO",
]
