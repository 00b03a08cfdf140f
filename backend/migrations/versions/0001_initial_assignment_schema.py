"""initial assignment schema

Revision ID: 0001_assignment_schema
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the directory (zones, stores, employees, profiles) and the
assignment records (employee_delegations, employee_transfers) plus the
append-only assignment_events trail.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_assignment_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # zones / stores: organizational hierarchy
    # ============================================================================
    op.create_table(
        'zones',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_zones_code', 'zones', ['code'], unique=True)

    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('zone_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('zone_id', 'name', name='uq_stores_zone_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_zone_id', 'stores', ['zone_id'])
    op.create_index('ix_stores_code', 'stores', ['code'])

    # ============================================================================
    # employees: store of record
    # ============================================================================
    # zone_id is a denormalized copy of stores.zone_id. version_id is the
    # optimistic lock every assignment writer bumps.
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('employee_code', sa.String(length=64), nullable=True),
        sa.Column('position', sa.String(length=120), nullable=True),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('zone_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_employees_employee_code', 'employees', ['employee_code'], unique=True)
    op.create_index('ix_employees_store_id', 'employees', ['store_id'])
    op.create_index('ix_employees_store_active', 'employees', ['store_id', 'is_active'])
    op.create_index('ix_employees_zone_id', 'employees', ['zone_id'])

    # ============================================================================
    # profiles: callers acting on assignments
    # ============================================================================
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.Enum('HR', 'ASM', 'STORE_MANAGER', name='profile_role',
                                  native_enum=False, length=32), nullable=True),
        sa.Column('zone_id', sa.Integer(), nullable=True),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_profiles_zone_id', 'profiles', ['zone_id'])
    op.create_index('ix_profiles_store_id', 'profiles', ['store_id'])

    # ============================================================================
    # employee_delegations: temporary loans
    # ============================================================================
    op.create_table(
        'employee_delegations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('from_store_id', sa.Integer(), nullable=False),
        sa.Column('from_zone_id', sa.Integer(), nullable=False),
        sa.Column('to_store_id', sa.Integer(), nullable=False),
        sa.Column('to_zone_id', sa.Integer(), nullable=False),
        sa.Column('delegated_by', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.Date(), nullable=False),
        sa.Column('valid_until', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('auto_return', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('extension_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_by', sa.Integer(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('valid_until > valid_from', name='ck_delegations_valid_range'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.ForeignKeyConstraint(['from_store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['from_zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['to_store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['to_zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['delegated_by'], ['profiles.id'], ),
        sa.ForeignKeyConstraint(['revoked_by'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_employee_delegations_employee_id', 'employee_delegations', ['employee_id'])
    op.create_index('ix_employee_delegations_from_store_id', 'employee_delegations', ['from_store_id'])
    op.create_index('ix_employee_delegations_to_store_id', 'employee_delegations', ['to_store_id'])
    op.create_index('ix_employee_delegations_status', 'employee_delegations', ['status'])
    op.create_index('ix_delegations_employee_status', 'employee_delegations', ['employee_id', 'status'])
    op.create_index('ix_delegations_employee_range', 'employee_delegations',
                    ['employee_id', 'valid_from', 'valid_until'])

    # ============================================================================
    # employee_transfers: permanent reassignment with approval
    # ============================================================================
    op.create_table(
        'employee_transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('from_store_id', sa.Integer(), nullable=False),
        sa.Column('from_zone_id', sa.Integer(), nullable=False),
        sa.Column('to_store_id', sa.Integer(), nullable=False),
        sa.Column('to_zone_id', sa.Integer(), nullable=False),
        sa.Column('initiated_by', sa.Integer(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('transfer_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.ForeignKeyConstraint(['from_store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['from_zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['to_store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['to_zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['initiated_by'], ['profiles.id'], ),
        sa.ForeignKeyConstraint(['approved_by'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_employee_transfers_employee_id', 'employee_transfers', ['employee_id'])
    op.create_index('ix_employee_transfers_from_store_id', 'employee_transfers', ['from_store_id'])
    op.create_index('ix_employee_transfers_to_store_id', 'employee_transfers', ['to_store_id'])
    op.create_index('ix_employee_transfers_status', 'employee_transfers', ['status'])
    op.create_index('ix_transfers_employee_status', 'employee_transfers', ['employee_id', 'status'])
    op.create_index('ix_transfers_status_date', 'employee_transfers', ['status', 'transfer_date'])

    # ============================================================================
    # assignment_events: append-only trail
    # ============================================================================
    op.create_table(
        'assignment_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('entity_type', sa.String(length=32), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('actor_profile_id', sa.Integer(), nullable=True),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.ForeignKeyConstraint(['actor_profile_id'], ['profiles.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_assignment_events_event_type', 'assignment_events', ['event_type'])
    op.create_index('ix_assignment_events_entity', 'assignment_events', ['entity_type', 'entity_id'])
    op.create_index('ix_assignment_events_employee', 'assignment_events', ['employee_id', 'occurred_at'])


def downgrade():
    op.drop_table('assignment_events')
    op.drop_table('employee_transfers')
    op.drop_table('employee_delegations')
    op.drop_table('profiles')
    op.drop_table('employees')
    op.drop_table('stores')
    op.drop_table('zones')
