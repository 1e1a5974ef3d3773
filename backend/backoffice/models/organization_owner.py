"""
Organization ownership model.

WHY: OrganizationOwner is the pivot between users and organizations. Each row
grants a user a role in one organization. Rows are soft-deactivated through
is_active so that assigned_at/assigned_by survive as audit history; they are
only hard-deleted when owners are removed or the organization is deleted.

Invariants:
- (organization_id, user_id) is the primary key
- at most one active row per pair (partial unique index)
- every organization keeps at least one active row (enforced by
  OrganizationOwnerService)
"""

from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship

from backoffice.models.base import Base


class OrganizationOwner(Base):
    """
    Ownership record linking a user to an organization with a role.
    """

    __tablename__ = "organization_owners"

    organization_id = Column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    # Role inside the organization (OWNER, ADMIN, MEMBER, ...)
    # WHY: stored as a plain string so new roles don't need a schema change
    role = Column(String(50), nullable=False, default="OWNER")

    # Audit
    assigned_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    # WHY: weak reference; deleting the assigning user nulls it out
    assigned_by = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Soft-delete flag
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    organization = relationship("Organization", back_populates="owners", lazy="selectin")
    user = relationship(
        "User",
        back_populates="ownerships",
        foreign_keys=[user_id],
        lazy="selectin",
    )

    __table_args__ = (
        Index(
            "uq_organization_owners_active",
            "organization_id",
            "user_id",
            unique=True,
            postgresql_where=text("is_active = true"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("ix_organization_owners_org_role_active", "organization_id", "role", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<OrganizationOwner(organization_id={self.organization_id}, "
            f"user_id={self.user_id}, role={self.role}, is_active={self.is_active})>"
        )
