"""
Organization roles and the role hierarchy.

WHY: Ownership records carry a role string. "X or above" checks need a
single, immutable ranking of those roles so every guard and service agrees
on which role outranks which.
"""

import enum
from typing import Tuple


class OrganizationRole(str, enum.Enum):
    """
    Roles a user can hold inside an organization.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    EDITOR = "EDITOR"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"


# Most privileged first; a lower index means more privilege
ROLE_HIERARCHY: Tuple[str, ...] = (
    OrganizationRole.OWNER.value,
    OrganizationRole.ADMIN.value,
    OrganizationRole.MODERATOR.value,
    OrganizationRole.EDITOR.value,
    OrganizationRole.MEMBER.value,
    OrganizationRole.VIEWER.value,
)

# Role given to new ownership records when the caller doesn't pick one
DEFAULT_OWNER_ROLE: str = OrganizationRole.OWNER.value

# Roles accepted by the add-owners and change-role request bodies
ASSIGNABLE_ROLES: Tuple[str, ...] = (
    OrganizationRole.OWNER.value,
    OrganizationRole.ADMIN.value,
    OrganizationRole.MEMBER.value,
)


def is_known_role(role: str) -> bool:
    """Return True if ``role`` is part of the role hierarchy."""
    return role in ROLE_HIERARCHY


def has_privilege(role: str, required_role: str) -> bool:
    """
    Check whether ``role`` is at least as privileged as ``required_role``.

    Unknown roles (on either side) never have privilege.

    Args:
        role: Role held by the user
        required_role: Minimum role needed

    Returns:
        True if role ranks at or above required_role

    Example:
        >>> has_privilege("OWNER", "ADMIN")
        True
        >>> has_privilege("MEMBER", "ADMIN")
        False
        >>> has_privilege("SUPERUSER", "VIEWER")
        False
    """
    if role not in ROLE_HIERARCHY or required_role not in ROLE_HIERARCHY:
        return False
    return ROLE_HIERARCHY.index(role) <= ROLE_HIERARCHY.index(required_role)
