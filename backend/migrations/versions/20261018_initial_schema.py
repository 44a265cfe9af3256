"""Initial back-office schema: record blobs, admin sessions, login attempts, audit log

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration adds:
1. kv_blobs (products / sales / quotations / invoice counters as JSON)
2. admin_sessions (single admin session with sliding expiry)
3. login_attempts (per-IP lockout counting)
4. audit_logs (append-only admin audit trail)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. RECORD BLOBS
    # ==========================================================================
    op.create_table('kv_blobs',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )

    # ==========================================================================
    # 2. ADMIN SESSIONS
    # ==========================================================================
    op.create_table('admin_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_token', sa.String(length=64), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('admin_sessions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_admin_sessions_session_token'), ['session_token'], unique=True)
        batch_op.create_index(batch_op.f('ix_admin_sessions_is_active'), ['is_active'], unique=False)
        batch_op.create_index('ix_admin_sessions_active_expires', ['is_active', 'expires_at'], unique=False)

    # ==========================================================================
    # 3. LOGIN ATTEMPTS
    # ==========================================================================
    op.create_table('login_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=False),
        sa.Column('was_successful', sa.Boolean(), nullable=False),
        sa.Column('username_attempted', sa.String(length=128), nullable=True),
        sa.Column('attempted_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('login_attempts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_login_attempts_was_successful'), ['was_successful'], unique=False)
        batch_op.create_index('ix_login_attempts_ip_attempted', ['ip_address', 'attempted_at'], unique=False)

    # ==========================================================================
    # 4. AUDIT LOG
    # ==========================================================================
    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index('ix_audit_logs_created', ['created_at'], unique=False)


def downgrade():
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.drop_index('ix_audit_logs_created')
        batch_op.drop_index(batch_op.f('ix_audit_logs_action'))
    op.drop_table('audit_logs')

    with op.batch_alter_table('login_attempts', schema=None) as batch_op:
        batch_op.drop_index('ix_login_attempts_ip_attempted')
        batch_op.drop_index(batch_op.f('ix_login_attempts_was_successful'))
    op.drop_table('login_attempts')

    with op.batch_alter_table('admin_sessions', schema=None) as batch_op:
        batch_op.drop_index('ix_admin_sessions_active_expires')
        batch_op.drop_index(batch_op.f('ix_admin_sessions_is_active'))
        batch_op.drop_index(batch_op.f('ix_admin_sessions_session_token'))
    op.drop_table('admin_sessions')

    op.drop_table('kv_blobs')
