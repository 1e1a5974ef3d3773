"""
Organization model.

WHY: Organizations are the tenants of the backoffice. Who may act on an
organization is decided exclusively by its ownership records
(see OrganizationOwner); an organization must always keep at least one
active ownership record.
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from backoffice.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Organization(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Organization model representing a tenant in the multi-tenant system.
    """

    __tablename__ = "organizations"

    # Organization identification
    # WHY: names are globally unique; lookups by name are used for
    # uniqueness checks on create and rename
    name = Column(String(100), nullable=False, unique=True, index=True)

    # Organization details
    description = Column(String(500), nullable=True)

    # Organization status
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    # WHY: no ORM-level cascade; ownership rows are removed explicitly by
    # OrganizationService.remove before the organization row is deleted
    owners = relationship(
        "OrganizationOwner",
        back_populates="organization",
        order_by="OrganizationOwner.assigned_at",
        lazy="selectin",
        passive_deletes=True,
    )

    @property
    def active_owners(self) -> list:
        return [owner for owner in self.owners if owner.is_active]

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"
