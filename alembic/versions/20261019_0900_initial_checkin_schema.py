"""initial check-in schema

Revision ID: 20261019_0900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_0900'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


STAFF_ROLES = ('owner', 'admin', 'treasurer', 'secretary', 'volunteer', 'viewer')
MEMBER_STATUSES = ('pending_invite', 'pending_registration', 'active', 'inactive')
RELATIONSHIP_TYPES = ('self', 'spouse', 'child', 'parent', 'in_law', 'sibling', 'other')
PAYMENT_METHODS = ('cash', 'check', 'card', 'other')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
    ]


def upgrade() -> None:
    # Tenants
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('org_code', sa.String(length=20), nullable=False),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('primary_color', sa.String(length=7), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('settings', postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index('ix_organizations_id', 'organizations', ['id'])
    op.create_index('ix_organizations_org_code', 'organizations', ['org_code'], unique=True)
    op.execute('CREATE UNIQUE INDEX uq_organizations_org_code_upper ON organizations (UPPER(org_code))')

    # Identity accounts and staff
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_until', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.Enum(*STAFF_ROLES, name='staff_role'), nullable=False, server_default='viewer'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_staff_id', 'staff', ['id'])
    op.create_index('ix_staff_organization_id', 'staff', ['organization_id'])
    op.create_index('ix_staff_user_id', 'staff', ['user_id'])

    op.create_table(
        'phone_otps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('code_hash', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('consumed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_phone_otps_id', 'phone_otps', ['id'])
    op.create_index('ix_phone_otps_phone', 'phone_otps', ['phone'])

    # Households and members
    op.create_table(
        'family_groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('prime_member_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_family_groups_id', 'family_groups', ['id'])
    op.create_index('ix_family_groups_organization_id', 'family_groups', ['organization_id'])

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('family_group_id', sa.Integer(), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('photo_url', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum(*MEMBER_STATUSES, name='member_status'), nullable=False, server_default='pending_invite'),
        sa.Column('is_prime_member', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_independent', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('relationship_to_prime', sa.Enum(*RELATIONSHIP_TYPES, name='relationship_type'), nullable=False, server_default='self'),
        sa.Column('membership_date', sa.Date(), nullable=True),
        sa.Column('qr_token', sa.String(length=64), nullable=True),
        sa.Column('push_token', sa.String(length=255), nullable=True),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['family_group_id'], ['family_groups.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_members_id', 'members', ['id'])
    op.create_index('ix_members_organization_id', 'members', ['organization_id'])
    op.create_index('ix_members_family_group_id', 'members', ['family_group_id'])
    op.create_index('ix_members_qr_token', 'members', ['qr_token'], unique=True)
    op.create_index('ix_members_org_phone', 'members', ['organization_id', 'phone'])
    # At most one prime member per family group
    op.create_index(
        'uq_members_family_prime',
        'members',
        ['family_group_id'],
        unique=True,
        postgresql_where=sa.text('is_prime_member'),
    )

    # Circular reference: family group -> prime member
    op.create_foreign_key(
        'fk_family_groups_prime_member',
        'family_groups', 'members',
        ['prime_member_id'], ['id'],
        ondelete='SET NULL',
    )

    # Activity logs
    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('checked_in_by', sa.Integer(), nullable=True),
        sa.Column('checked_in_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['checked_in_by'], ['staff.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_check_ins_id', 'check_ins', ['id'])
    op.create_index('ix_check_ins_organization_id', 'check_ins', ['organization_id'])
    op.create_index('ix_check_ins_member_id', 'check_ins', ['member_id'])
    op.create_index('ix_check_ins_checked_in_at', 'check_ins', ['checked_in_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('family_group_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.Enum(*PAYMENT_METHODS, name='payment_method'), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('recorded_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['family_group_id'], ['family_groups.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recorded_by'], ['staff.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_id', 'payments', ['id'])
    op.create_index('ix_payments_organization_id', 'payments', ['organization_id'])
    op.create_index('ix_payments_member_id', 'payments', ['member_id'])

    op.create_table(
        'announcements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['staff.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_announcements_id', 'announcements', ['id'])
    op.create_index('ix_announcements_organization_id', 'announcements', ['organization_id'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('announcements')
    op.drop_table('payments')
    op.drop_table('check_ins')

    op.drop_constraint('fk_family_groups_prime_member', 'family_groups', type_='foreignkey')
    op.drop_table('members')
    op.drop_table('family_groups')

    op.drop_table('phone_otps')
    op.drop_table('staff')
    op.drop_table('users')
    op.drop_table('organizations')

    for enum_name in ('payment_method', 'relationship_type', 'member_status', 'staff_role'):
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
