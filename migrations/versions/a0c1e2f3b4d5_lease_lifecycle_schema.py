"""Lease lifecycle schema

Revision ID: a0c1e2f3b4d5
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a0c1e2f3b4d5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


company_role = sa.Enum('COMPANY_ADMIN', 'MANAGER', 'LANDLORD', 'STAFF', 'TENANT', name='companyrole')
unit_status = sa.Enum('AVAILABLE', 'OCCUPIED', 'MAINTENANCE', 'UNAVAILABLE', name='unitstatus')
tenant_status = sa.Enum('PENDING', 'ACTIVE', 'FORMER', name='tenantstatus')
lease_status = sa.Enum('DRAFT', 'ACTIVE', 'EXPIRED', 'TERMINATED', 'RENEWED', name='leasestatus')
lease_type = sa.Enum('FIXED_TERM', 'MONTH_TO_MONTH', 'SHORT_TERM', 'COMMERCIAL', name='leasetype')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Companies & users
    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_companies_slug', 'companies', ['slug'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'company_memberships',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('role', company_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'company_id', name='uq_company_memberships_user_company'),
    )
    op.create_index('ix_company_memberships_user_id', 'company_memberships', ['user_id'])
    op.create_index('ix_company_memberships_company_id', 'company_memberships', ['company_id'])
    op.create_index('idx_company_memberships_company_role', 'company_memberships', ['company_id', 'role'])

    # Properties & units
    op.create_table(
        'properties',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        sa.Column('property_type', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_properties_company_id', 'properties', ['company_id'])

    op.create_table(
        'units',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('unit_number', sa.String(50), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Float(), nullable=True),
        sa.Column('square_feet', sa.Integer(), nullable=True),
        sa.Column('monthly_rent', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', unit_status, nullable=False, server_default='AVAILABLE'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('property_id', 'unit_number', name='uq_units_property_number'),
    )
    op.create_index('idx_units_company_status', 'units', ['company_id', 'status'])

    # Tenant profiles
    op.create_table(
        'tenant_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('id_number', sa.String(50), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('emergency_contact_name', sa.String(255), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(20), nullable=True),
        sa.Column('status', tenant_status, nullable=False, server_default='PENDING'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('email_notifications', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('sms_notifications', sa.Boolean(), nullable=True, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'company_id', name='uq_tenant_profiles_user_company'),
    )
    op.create_index('ix_tenant_profiles_user_id', 'tenant_profiles', ['user_id'])
    op.create_index('ix_tenant_profiles_company_id', 'tenant_profiles', ['company_id'])
    op.create_index('ix_tenant_profiles_status', 'tenant_profiles', ['status'])
    op.create_index('idx_tenant_profiles_company_status', 'tenant_profiles', ['company_id', 'status'])

    # Leases
    op.create_table(
        'leases',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('unit_id', sa.Uuid(), sa.ForeignKey('units.id'), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('landlord_user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('lease_number', sa.String(50), nullable=True),
        sa.Column('status', lease_status, nullable=False, server_default='DRAFT'),
        sa.Column('lease_type', lease_type, nullable=False, server_default='FIXED_TERM'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('move_in_date', sa.Date(), nullable=True),
        sa.Column('move_out_date', sa.Date(), nullable=True),
        sa.Column('signed_date', sa.Date(), nullable=True),
        sa.Column('renewal_date', sa.Date(), nullable=True),
        sa.Column('notice_to_vacate_date', sa.Date(), nullable=True),
        sa.Column('billing_start_date', sa.Date(), nullable=True),
        sa.Column('prorated_first_month', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('grace_period_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('monthly_rent', sa.Numeric(10, 2), nullable=False),
        sa.Column('security_deposit', sa.Numeric(10, 2), nullable=True),
        sa.Column('pet_deposit', sa.Numeric(10, 2), nullable=True),
        sa.Column('pet_rent', sa.Numeric(10, 2), nullable=True),
        sa.Column('late_fee_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('utilities_included', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('utility_costs', sa.Numeric(10, 2), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='KES'),
        sa.Column('termination_reason', sa.String(255), nullable=True),
        sa.Column('terminated_by', sa.Uuid(), nullable=True),
        sa.Column('termination_notes', sa.Text(), nullable=True),
        sa.Column('actual_termination_date', sa.Date(), nullable=True),
        sa.Column('renewed_from_lease_id', sa.Uuid(), sa.ForeignKey('leases.id', ondelete='SET NULL'), nullable=True),
        sa.Column('renewed_to_lease_id', sa.Uuid(), sa.ForeignKey('leases.id', ondelete='SET NULL'), nullable=True),
        sa.Column('lease_term', sa.Integer(), nullable=True),
        sa.Column('renewal_options', sa.Text(), nullable=True),
        sa.Column('notice_period', sa.Integer(), nullable=True),
        sa.Column('pet_policy', sa.Text(), nullable=True),
        sa.Column('smoking_policy', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('co_tenants', sa.JSON(), nullable=True),
        sa.Column('guarantor_info', sa.JSON(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('idx_leases_unit_status', 'leases', ['unit_id', 'status'])
    op.create_index('idx_leases_tenant_company_status', 'leases', ['tenant_id', 'company_id', 'status'])
    op.create_index('idx_leases_status_end_date', 'leases', ['status', 'end_date'])
    op.create_index('idx_leases_company', 'leases', ['company_id'])
    # At most one ACTIVE lease per unit
    op.create_index(
        'uq_leases_one_active_per_unit',
        'leases',
        ['unit_id'],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
        sqlite_where=sa.text("status = 'ACTIVE'"),
    )


def downgrade() -> None:
    op.drop_index('uq_leases_one_active_per_unit', table_name='leases')
    op.drop_index('idx_leases_company', table_name='leases')
    op.drop_index('idx_leases_status_end_date', table_name='leases')
    op.drop_index('idx_leases_tenant_company_status', table_name='leases')
    op.drop_index('idx_leases_unit_status', table_name='leases')
    op.drop_table('leases')
    op.drop_table('tenant_profiles')
    op.drop_table('units')
    op.drop_table('properties')
    op.drop_table('company_memberships')
    op.drop_table('users')
    op.drop_table('companies')

    bind = op.get_bind()
    for enum_type in (lease_type, lease_status, tenant_status, unit_status, company_role):
        enum_type.drop(bind, checkfirst=True)
