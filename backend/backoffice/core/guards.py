"""
Organization authorization guards.

WHY: Routes under /organizations/{organization_id} are protected by the
caller's ownership of that organization. Guards are plain values configured
once and used as FastAPI dependencies, so several guards can be composed on
one route and are evaluated in the order they are declared.

Evaluation order for every guard:
1. Caller identity present, else AuthenticationError (401)
2. organization_id path parameter present and a valid UUID, else ValidationError (400)
3. Ownership queries through OrganizationOwnerService
4. Failure raises OrganizationAccessDenied (403)

Usage:
    @router.patch(
        "/{organization_id}",
        dependencies=[Depends(OrganizationOwnershipGuard(OwnershipConfig(
            OwnershipValidationType.ADMIN_OR_OWNER
        )))],
    )
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.deps import get_optional_user
from backoffice.core.exceptions import (
    AuthenticationError,
    InputError,
    OrganizationAccessDenied,
    OrganizationNotFoundError,
    ValidationError,
)
from backoffice.core.roles import OrganizationRole, has_privilege
from backoffice.db.session import get_db
from backoffice.models.organization import Organization
from backoffice.models.organization_owner import OrganizationOwner
from backoffice.models.user import User
from backoffice.services.organization_owner_service import OrganizationOwnerService

logger = logging.getLogger(__name__)

ORGANIZATION_ID_PARAM = "organization_id"


class OwnershipValidationType(str, enum.Enum):
    """
    Kinds of ownership check a guard can perform.
    """

    OWNER = "OWNER"  # Any ownership record, active or not
    ACTIVE_OWNER = "ACTIVE_OWNER"  # An active ownership record
    ADMIN_OR_OWNER = "ADMIN_OR_OWNER"
    OWNER_ONLY = "OWNER_ONLY"
    MEMBER_OR_ABOVE = "MEMBER_OR_ABOVE"
    CUSTOM = "CUSTOM"  # Roles listed in allowed_roles


# Least privileged role accepted by the hierarchy-based validation types
_MINIMUM_ROLE = {
    OwnershipValidationType.ADMIN_OR_OWNER: OrganizationRole.ADMIN.value,
    OwnershipValidationType.OWNER_ONLY: OrganizationRole.OWNER.value,
}

# MEMBER_OR_ABOVE is an explicit set: MODERATOR and EDITOR don't qualify
_MEMBER_OR_ABOVE_ROLES = (
    OrganizationRole.MEMBER.value,
    OrganizationRole.ADMIN.value,
    OrganizationRole.OWNER.value,
)

_DEFAULT_MESSAGES = {
    OwnershipValidationType.OWNER: "You must be an owner of this organization",
    OwnershipValidationType.ACTIVE_OWNER: "You must be an active owner of this organization",
    OwnershipValidationType.ADMIN_OR_OWNER: "You must have the ADMIN or OWNER role in this organization",
    OwnershipValidationType.OWNER_ONLY: "Only OWNER members can perform this action",
    OwnershipValidationType.MEMBER_OR_ABOVE: "You must be a member of this organization",
    OwnershipValidationType.CUSTOM: "You don't have the required permissions in this organization",
}


@dataclass(frozen=True)
class OwnershipConfig:
    """
    Configuration of an OrganizationOwnershipGuard.

    Attributes:
        type: Validation to perform
        allowed_roles: Roles accepted by CUSTOM (required and non-empty for CUSTOM)
        require_active: Whether CUSTOM only considers active records (other
            role-based types always do)
        message: Error message overriding the type's default
    """

    type: OwnershipValidationType
    allowed_roles: Optional[Tuple[str, ...]] = None
    require_active: bool = True
    message: Optional[str] = None

    def __post_init__(self):
        if self.allowed_roles is not None:
            object.__setattr__(self, "allowed_roles", tuple(self.allowed_roles))
        if self.type == OwnershipValidationType.CUSTOM and not self.allowed_roles:
            raise ValueError("CUSTOM ownership validation requires allowed_roles")

    @property
    def error_message(self) -> str:
        return self.message or _DEFAULT_MESSAGES[self.type]


def parse_organization_id(request: Request) -> uuid.UUID:
    """
    Read the organization id from the route's path parameters.

    Raises:
        ValidationError: If the route has no organization_id parameter
        InputError: If the value is not a valid UUID
    """
    raw = request.path_params.get(ORGANIZATION_ID_PARAM)
    if not raw:
        raise ValidationError(message="Organization id is required in the route")
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise InputError(message="Invalid organization id", organization_id=str(raw))


def _require_user(user: Optional[User]) -> User:
    if user is None:
        raise AuthenticationError(message="Not authenticated")
    return user


async def _has_role(
    service: OrganizationOwnerService,
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    allowed_roles: Sequence[str],
    require_active: bool = True,
) -> bool:
    relation = await service.get_owner_relation(organization_id, user_id)
    if relation is None:
        return False
    if require_active and not relation.is_active:
        return False
    return relation.role in allowed_roles


class OrganizationOwnershipGuard:
    """
    Guard evaluating an OwnershipConfig against the caller.

    Example:
        Depends(OrganizationOwnershipGuard(OwnershipConfig(OwnershipValidationType.OWNER_ONLY)))
    """

    def __init__(self, config: OwnershipConfig):
        self.config = config

    async def validate(
        self,
        service: OrganizationOwnerService,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> bool:
        """Return True if ``user_id`` satisfies this guard's configuration."""
        config = self.config

        if config.type == OwnershipValidationType.OWNER:
            return await service.is_owner(organization_id, user_id)

        if config.type == OwnershipValidationType.ACTIVE_OWNER:
            return await service.is_active_owner(organization_id, user_id)

        if config.type == OwnershipValidationType.CUSTOM:
            return await _has_role(
                service, organization_id, user_id, config.allowed_roles, config.require_active
            )

        # Every other role-based type needs an active record
        relation = await service.get_owner_relation(organization_id, user_id)
        if relation is None or not relation.is_active:
            return False
        if config.type == OwnershipValidationType.MEMBER_OR_ABOVE:
            return relation.role in _MEMBER_OR_ABOVE_ROLES
        return has_privilege(relation.role, _MINIMUM_ROLE[config.type])

    async def __call__(
        self,
        request: Request,
        user: Optional[User] = Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        user = _require_user(user)
        organization_id = parse_organization_id(request)

        service = OrganizationOwnerService(db)
        if not await self.validate(service, organization_id, user.id):
            logger.info(
                f"Ownership check {self.config.type.value} failed for user {user.id} "
                f"on organization {organization_id}"
            )
            raise OrganizationAccessDenied(
                message=self.config.error_message,
                organization_id=str(organization_id),
            )

        return user


class OrganizationRoleGuard:
    """
    Guard requiring an active ownership record with one of ``roles``.

    On success the ownership row is stored on ``request.state.user_ownership``.
    """

    def __init__(self, roles: Sequence[str]):
        if not roles:
            raise ValueError("OrganizationRoleGuard requires at least one role")
        self.roles = tuple(roles)

    async def __call__(
        self,
        request: Request,
        user: Optional[User] = Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
    ) -> OrganizationOwner:
        user = _require_user(user)
        organization_id = parse_organization_id(request)

        service = OrganizationOwnerService(db)
        ownership = await service.get_owner_relation(organization_id, user.id)
        if ownership is None or not ownership.is_active:
            raise OrganizationAccessDenied(
                message="You are not an owner of this organization",
                organization_id=str(organization_id),
            )

        if ownership.role not in self.roles:
            raise OrganizationAccessDenied(
                message=(
                    f"Insufficient role. One of {', '.join(self.roles)} is required; "
                    f"your role is {ownership.role}"
                ),
                organization_id=str(organization_id),
            )

        request.state.user_ownership = ownership
        return ownership


class OrganizationOwnerGuard(OrganizationOwnershipGuard):
    """Guard requiring the caller to be an active owner, whatever the role."""

    def __init__(self):
        super().__init__(
            OwnershipConfig(
                OwnershipValidationType.ACTIVE_OWNER,
                message="You must be an active owner of this organization",
            )
        )


# Prebuilt guards for the common cases
require_admin_or_owner = OrganizationOwnershipGuard(
    OwnershipConfig(OwnershipValidationType.ADMIN_OR_OWNER)
)
require_owner_only = OrganizationOwnershipGuard(
    OwnershipConfig(OwnershipValidationType.OWNER_ONLY)
)


# ============================================================================
# Organization context
# ============================================================================


@dataclass
class OrganizationContext:
    """
    The organization addressed by the route and the caller's relation to it.
    """

    organization: Organization
    is_owner: bool = False
    user_ownership: Optional[OrganizationOwner] = None
    user_role: Optional[str] = None

    def has_role(self, role: str) -> bool:
        return self.user_role == role

    def has_any_role(self, roles: Sequence[str]) -> bool:
        return self.user_role is not None and self.user_role in roles


async def get_organization_context(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> OrganizationContext:
    """
    Resolve the route's organization and the caller's ownership of it.

    Anonymous callers get a context with is_owner False.

    Raises:
        InputError: If organization_id is not a valid UUID
        OrganizationNotFoundError: If the organization doesn't exist
        ValidationError: If the organization is inactive
    """
    organization_id = parse_organization_id(request)
    service = OrganizationOwnerService(db)

    organization = await service.organization_dao.get_by_id(organization_id)
    if organization is None:
        raise OrganizationNotFoundError(organization_id=str(organization_id))
    if not organization.is_active:
        raise ValidationError(
            message="Organization is not active",
            organization_id=str(organization_id),
        )

    context = OrganizationContext(organization=organization)
    if user is not None:
        ownership = await service.get_owner_relation(organization_id, user.id)
        context.is_owner = ownership is not None
        if ownership is not None and ownership.is_active:
            context.user_ownership = ownership
            context.user_role = ownership.role

    request.state.organization_context = context
    return context
