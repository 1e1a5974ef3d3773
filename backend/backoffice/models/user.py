"""
User model.

WHY: Users are the accounts that authenticate against the backoffice and
that can hold ownership records in organizations. The system role (ADMIN or
USER) is independent of any per-organization ownership role.
"""

import enum
from sqlalchemy import Column, String, Enum, Boolean
from sqlalchemy.orm import relationship

from backoffice.models.base import Base, TimestampMixin, PrimaryKeyMixin


class UserRole(str, enum.Enum):
    """
    System-wide user role enumeration.
    """

    ADMIN = "ADMIN"  # Backoffice administrator
    USER = "USER"  # Regular account


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """
    User model representing an account in the backoffice.
    """

    __tablename__ = "users"

    # User identification
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    # Authentication
    hashed_password = Column(String(255), nullable=False)

    # Authorization
    role = Column(Enum(UserRole, name="userrole"), nullable=False, default=UserRole.USER)

    # Account status
    # WHY: inactive users can neither authenticate nor be assigned as owners
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    ownerships = relationship(
        "OrganizationOwner",
        back_populates="user",
        foreign_keys="OrganizationOwner.user_id",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
