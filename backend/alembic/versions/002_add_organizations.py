"""Add organizations and organization_owners tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

WHY: Organizations are the tenants; organization_owners records who may act
on each of them and with which role.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create organizations and organization_owners.

    organization_owners:
    1. Composite primary key (organization_id, user_id)
    2. Partial unique index: at most one active row per pair
    3. assigned_by nulls out when the assigning user is deleted
    4. Rows cascade with their organization or user
    """
    op.create_table(
        'organizations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index('ix_organizations_id', 'organizations', ['id'])
    op.create_index('ix_organizations_name', 'organizations', ['name'], unique=True)
    op.create_index('ix_organizations_is_active', 'organizations', ['is_active'])

    op.create_table(
        'organization_owners',
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='OWNER'),
        sa.Column('assigned_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('assigned_by', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('organization_id', 'user_id'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_organization_owners_organization_id',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_organization_owners_user_id',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['assigned_by'], ['users.id'],
            name='fk_organization_owners_assigned_by',
            ondelete='SET NULL',
        ),
    )

    op.create_index('ix_organization_owners_user_id', 'organization_owners', ['user_id'])
    op.create_index(
        'ix_organization_owners_org_role_active',
        'organization_owners',
        ['organization_id', 'role', 'is_active'],
    )
    op.create_index(
        'uq_organization_owners_active',
        'organization_owners',
        ['organization_id', 'user_id'],
        unique=True,
        postgresql_where=sa.text('is_active = true'),
    )


def downgrade() -> None:
    """
    Drop organization_owners then organizations.
    """
    op.drop_index('uq_organization_owners_active', table_name='organization_owners')
    op.drop_index('ix_organization_owners_org_role_active', table_name='organization_owners')
    op.drop_index('ix_organization_owners_user_id', table_name='organization_owners')
    op.drop_table('organization_owners')
    op.drop_index('ix_organizations_is_active', table_name='organizations')
    op.drop_index('ix_organizations_name', table_name='organizations')
    op.drop_index('ix_organizations_id', table_name='organizations')
    op.drop_table('organizations')
