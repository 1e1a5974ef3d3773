"""
Business logic services package.

Services own the ownership rules (last owner, state transitions, batched
validation) and sit between the API routers and the DAOs.
"""

from backoffice.services.organization_owner_service import OrganizationOwnerService
from backoffice.services.organization_service import OrganizationService
from backoffice.services.user_service import UserService

__all__ = ["OrganizationOwnerService", "OrganizationService", "UserService"]
