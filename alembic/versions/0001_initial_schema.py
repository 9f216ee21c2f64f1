"""Initial schema for the user administration service

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Tables Created:
- roles, permissions, role_permissions: role-based permissions
- users: user accounts (status-based soft delete)
- messages: user-authored messages (block hard delete of their sender)
- audit_logs: append-only audit trail

Seed data:
- Roles super_admin, admin, moderator and user (the default role)
- Permissions users.view, users.create, users.edit, admin.users, audit.view
"""
import uuid
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ROLES = [
    ('super_admin', 'System administrator with full access', False),
    ('admin', 'Administrator with extended privileges', False),
    ('moderator', 'User moderator with read access', False),
    ('user', 'Standard user role', True),
]

PERMISSIONS = [
    ('users.view', 'View user details and search users', 'user'),
    ('users.create', 'Create new users', 'user'),
    ('users.edit', 'Update users, including role and status', 'user'),
    ('admin.users', 'Full user administration', 'admin'),
    ('audit.view', 'Read audit logs', 'audit'),
]

ROLE_PERMISSIONS = {
    'super_admin': ['users.view', 'users.create', 'users.edit', 'admin.users', 'audit.view'],
    'admin': ['users.view', 'users.create', 'users.edit', 'admin.users', 'audit.view'],
    'moderator': ['users.view', 'audit.view'],
    'user': [],
}


def upgrade() -> None:
    """Create tables and seed roles and permissions."""
    # =========================================================================
    # STEP 1: Roles and permissions
    # =========================================================================
    roles = op.create_table(
        'roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('FALSE')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_roles')),
        sa.UniqueConstraint('name', name=op.f('uq_roles_name')),
    )

    permissions = op.create_table(
        'permissions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_permissions')),
        sa.UniqueConstraint('name', name=op.f('uq_permissions_name')),
    )

    role_permissions = op.create_table(
        'role_permissions',
        sa.Column('role_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('permission_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['role_id'], ['roles.id'],
            name=op.f('fk_role_permissions_role_id_roles'), ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['permission_id'], ['permissions.id'],
            name=op.f('fk_role_permissions_permission_id_permissions'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('role_id', 'permission_id', name=op.f('pk_role_permissions')),
    )

    # =========================================================================
    # STEP 2: Users
    # =========================================================================
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('salt', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('role_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lockout_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('password_last_changed', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'notification_preferences',
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'deleted')",
            name=op.f('ck_users_status_valid'),
        ),
        sa.ForeignKeyConstraint(
            ['role_id'], ['roles.id'],
            name=op.f('fk_users_role_id_roles'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role_id'), 'users', ['role_id'], unique=False)
    op.create_index(op.f('ix_users_status'), 'users', ['status'], unique=False)
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'], unique=False)

    # =========================================================================
    # STEP 3: Messages (sender blocks hard delete)
    # =========================================================================
    op.create_table(
        'messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('channel_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['sender_id'], ['users.id'],
            name=op.f('fk_messages_sender_id_users'), ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_messages')),
    )
    op.create_index(op.f('ix_messages_sender_id'), 'messages', ['sender_id'], unique=False)
    op.create_index(op.f('ix_messages_channel_id'), 'messages', ['channel_id'], unique=False)

    # =========================================================================
    # STEP 4: Audit logs (no foreign keys: entries outlive deleted users)
    # =========================================================================
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('target_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            'details',
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('request_id', sa.String(length=64), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_logs')),
    )
    op.create_index(op.f('ix_audit_logs_user_id'), 'audit_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index(op.f('ix_audit_logs_request_id'), 'audit_logs', ['request_id'], unique=False)
    op.create_index('ix_audit_logs_target_timestamp', 'audit_logs', ['target_user_id', 'timestamp'], unique=False)
    op.create_index('ix_audit_logs_action_timestamp', 'audit_logs', ['action', 'timestamp'], unique=False)

    # =========================================================================
    # STEP 5: Seed roles and permissions
    # =========================================================================
    role_ids = {name: uuid.uuid4() for name, _, _ in ROLES}
    permission_ids = {name: uuid.uuid4() for name, _, _ in PERMISSIONS}

    op.bulk_insert(
        roles,
        [
            {'id': role_ids[name], 'name': name, 'description': description, 'is_default': is_default}
            for name, description, is_default in ROLES
        ],
    )
    op.bulk_insert(
        permissions,
        [
            {'id': permission_ids[name], 'name': name, 'description': description, 'category': category}
            for name, description, category in PERMISSIONS
        ],
    )
    op.bulk_insert(
        role_permissions,
        [
            {'role_id': role_ids[role], 'permission_id': permission_ids[permission]}
            for role, granted in ROLE_PERMISSIONS.items()
            for permission in granted
        ],
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('audit_logs')
    op.drop_table('messages')
    op.drop_table('users')
    op.drop_table('role_permissions')
    op.drop_table('permissions')
    op.drop_table('roles')
