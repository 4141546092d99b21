"""Create property access tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Creates properties, property_units and the property_users grant store,
including the partial unique indexes that allow at most one live grant
per (user, property) and one pending e-mail invitation per (email, property).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

GRANT_ROLES = ('OWNER', 'PROPERTY_MANAGER', 'LEASING_AGENT', 'MAINTENANCE_COORDINATOR', 'VIEWER')
GRANT_STATUSES = ('PENDING', 'ACTIVE', 'REVOKED', 'EXPIRED')

LIVE_FILTER = "status IN ('PENDING', 'ACTIVE') AND user_id IS NOT NULL"
PENDING_FILTER = "status = 'PENDING' AND invitee_email IS NOT NULL"


def upgrade() -> None:
    """Create the properties, property_units and property_users tables."""
    op.create_table(
        'properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_name', sa.String(length=255), nullable=False),
        sa.Column('landlord_id', sa.Uuid(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('street', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('units', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('disabled_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_properties'),
    )
    op.create_index('ix_properties_landlord_id', 'properties', ['landlord_id'])
    op.create_index('ix_properties_disabled_at', 'properties', ['disabled_at'])

    op.create_table(
        'property_units',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('unit_type', sa.String(length=100), nullable=True),
        sa.Column('unit_number', sa.String(length=50), nullable=False),
        sa.Column('rent_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('floor', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='vacant'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_property_units'),
        sa.ForeignKeyConstraint(
            ['property_id'],
            ['properties.id'],
            name='fk_property_units_property_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_property_units_property_id', 'property_units', ['property_id'])

    op.create_table(
        'property_users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('invitee_email', sa.String(length=255), nullable=True),
        sa.Column(
            'role',
            sa.Enum(*GRANT_ROLES, name='grant_role', create_constraint=True),
            nullable=False
        ),
        sa.Column(
            'status',
            sa.Enum(*GRANT_STATUSES, name='grant_status', create_constraint=True),
            nullable=False,
            server_default='PENDING'
        ),
        sa.Column('invited_by', sa.Uuid(), nullable=True),
        sa.Column('invited_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_by', sa.Uuid(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_property_users'),
        sa.ForeignKeyConstraint(
            ['property_id'],
            ['properties.id'],
            name='fk_property_users_property_id',
            ondelete='CASCADE'
        ),
    )

    # Create indexes for common queries
    op.create_index('ix_property_users_property_id', 'property_users', ['property_id'])
    op.create_index('ix_property_users_user_id', 'property_users', ['user_id'])
    op.create_index('ix_property_users_invitee_email', 'property_users', ['invitee_email'])
    op.create_index('ix_property_users_status', 'property_users', ['status'])

    # Uniqueness scoped to non-terminal statuses only
    op.create_index(
        'uq_property_users_live_user',
        'property_users',
        ['user_id', 'property_id'],
        unique=True,
        postgresql_where=sa.text(LIVE_FILTER),
        sqlite_where=sa.text(LIVE_FILTER),
        mssql_where=sa.text(LIVE_FILTER),
    )
    op.create_index(
        'uq_property_users_pending_email',
        'property_users',
        ['invitee_email', 'property_id'],
        unique=True,
        postgresql_where=sa.text(PENDING_FILTER),
        sqlite_where=sa.text(PENDING_FILTER),
        mssql_where=sa.text(PENDING_FILTER),
    )


def downgrade() -> None:
    """Drop the property access tables."""
    op.drop_index('uq_property_users_pending_email', table_name='property_users')
    op.drop_index('uq_property_users_live_user', table_name='property_users')
    op.drop_index('ix_property_users_status', table_name='property_users')
    op.drop_index('ix_property_users_invitee_email', table_name='property_users')
    op.drop_index('ix_property_users_user_id', table_name='property_users')
    op.drop_index('ix_property_users_property_id', table_name='property_users')
    op.drop_table('property_users')

    op.drop_index('ix_property_units_property_id', table_name='property_units')
    op.drop_table('property_units')

    op.drop_index('ix_properties_disabled_at', table_name='properties')
    op.drop_index('ix_properties_landlord_id', table_name='properties')
    op.drop_table('properties')

    # Drop the enum types (PostgreSQL keeps them after the table is gone)
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS grant_status")
        op.execute("DROP TYPE IF EXISTS grant_role")
