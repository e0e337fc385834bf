"""Create rental and reconciliation tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Landlords, properties, units, tenants, leases, payments (with Paystack
reference and checkout URL), maintenance requests, expenses and shared
expense allocations.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UNIT_STATUS = ('VACANT', 'OCCUPIED', 'UNDER_MAINTENANCE')
LEASE_STATUS = ('PENDING', 'ACTIVE', 'EXPIRED', 'TERMINATED')
PAYMENT_STATUS = ('PENDING', 'PAID', 'OVERDUE', 'PARTIAL', 'CANCELLED')
PAYMENT_TYPE = (
    'RENT', 'ELECTRICITY', 'WATER', 'GAS', 'INTERNET',
    'MAINTENANCE', 'SECURITY_DEPOSIT', 'LATE_FEE', 'OTHER',
)
EXPENSE_CATEGORY = (
    'MAINTENANCE', 'REPAIRS', 'UTILITIES', 'INSURANCE', 'TAXES', 'MANAGEMENT_FEES',
    'CLEANING', 'LANDSCAPING', 'LEGAL', 'ADVERTISING', 'OTHER',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('currency', sa.String(3), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_properties_user_id', ondelete='CASCADE'),
    )
    op.create_index('ix_properties_user_id', 'properties', ['user_id'])

    op.create_table(
        'units',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('rent_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column(
            'status',
            sa.Enum(*UNIT_STATUS, name='unit_status', create_constraint=True),
            nullable=False,
            server_default='VACANT',
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_units_property_id', ondelete='CASCADE'),
    )
    op.create_index('ix_units_property_id', 'units', ['property_id'])
    op.create_index('ix_units_status', 'units', ['status'])

    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('auth_user_id', sa.Integer(), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('auth_user_id', name='uq_tenants_auth_user_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_tenants_user_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['auth_user_id'], ['users.id'], name='fk_tenants_auth_user_id'),
    )
    op.create_index('ix_tenants_user_id', 'tenants', ['user_id'])

    op.create_table(
        'leases',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.Enum(*LEASE_STATUS, name='lease_status', create_constraint=True),
            nullable=False,
            server_default='ACTIVE',
        ),
        sa.Column('monthly_rent', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('deposit', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('terms', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_leases_unit_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_leases_tenant_id'),
    )
    op.create_index('ix_leases_unit_id', 'leases', ['unit_id'])
    op.create_index('ix_leases_tenant_id', 'leases', ['tenant_id'])
    op.create_index('ix_leases_status', 'leases', ['status'])
    op.create_index('ix_leases_end_date', 'leases', ['end_date'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lease_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('late_fee', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('paid_date', sa.DateTime(), nullable=True),
        sa.Column(
            'status',
            sa.Enum(*PAYMENT_STATUS, name='payment_status', create_constraint=True),
            nullable=False,
            server_default='PENDING',
        ),
        sa.Column(
            'payment_type',
            sa.Enum(*PAYMENT_TYPE, name='payment_type', create_constraint=True),
            nullable=False,
            server_default='RENT',
        ),
        sa.Column('payment_method', sa.String(100), nullable=True),
        sa.Column('reference', sa.String(255), nullable=True),
        sa.Column('checkout_url', sa.String(1000), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_payments_lease_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_payments_user_id'),
    )
    op.create_index('ix_payments_lease_id', 'payments', ['lease_id'])
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_due_date', 'payments', ['due_date'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_reference', 'payments', ['reference'], unique=True)

    op.create_table(
        'maintenance_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='OPEN'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_maintenance_requests_unit_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_maintenance_requests_tenant_id'),
    )
    op.create_index('ix_maintenance_requests_unit_id', 'maintenance_requests', ['unit_id'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=True),
        sa.Column('maintenance_request_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'category',
            sa.Enum(*EXPENSE_CATEGORY, name='expense_category', create_constraint=True),
            nullable=False,
        ),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('vendor', sa.String(255), nullable=True),
        sa.Column('receipt_url', sa.String(1000), nullable=True),
        sa.Column('is_shared', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_expenses_user_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_expenses_property_id'),
        sa.ForeignKeyConstraint(
            ['maintenance_request_id'],
            ['maintenance_requests.id'],
            name='fk_expenses_maintenance_request_id',
        ),
    )
    op.create_index('ix_expenses_user_id', 'expenses', ['user_id'])
    op.create_index('ix_expenses_property_id', 'expenses', ['property_id'])
    op.create_index('ix_expenses_category', 'expenses', ['category'])
    op.create_index('ix_expenses_date', 'expenses', ['date'])

    op.create_table(
        'expense_allocations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('expense_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['expense_id'], ['expenses.id'], name='fk_expense_allocations_expense_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_expense_allocations_unit_id'),
    )
    op.create_index('ix_expense_allocations_expense_id', 'expense_allocations', ['expense_id'])
    op.create_index('ix_expense_allocations_unit_id', 'expense_allocations', ['unit_id'])


def downgrade() -> None:
    op.drop_table('expense_allocations')
    op.drop_table('expenses')
    op.drop_table('maintenance_requests')
    op.drop_table('payments')
    op.drop_table('leases')
    op.drop_table('tenants')
    op.drop_table('units')
    op.drop_table('properties')
    op.drop_table('users')
