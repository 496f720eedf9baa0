"""initial schema: users, admins, checklist, protected actions

Revision ID: 20261019_0900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261019_0900'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_type = sa.Enum('FOUNDER', 'VISITOR', name='usertype')
admin_role = sa.Enum('SUPER_ADMIN', 'ADMIN', name='adminrole')
admin_status = sa.Enum('ACTIVE', 'INACTIVE', name='adminstatus')
action_type = sa.Enum('EDIT', 'DELETE', name='actiontype')
confirmation_state = sa.Enum(
    'IDLE', 'SECRET_ISSUED', 'FIRST_VERIFIED', 'AWAITING_SECOND_CODE', 'COMPLETED', 'CANCELLED',
    name='confirmationstate',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    # Portal users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('user_type', user_type, nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('founded_year', sa.Integer(), nullable=True),
        sa.Column('linkedin_url', sa.String(length=500), nullable=True),
        sa.Column('industry', sa.String(length=255), nullable=True),
        sa.Column('company_description', sa.Text(), nullable=True),
        sa.Column('current_stage', sa.String(length=100), nullable=True),
        sa.Column('company_working_at', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_until', sa.DateTime(), nullable=True),
        sa.Column('password_reset_token', sa.String(length=255), nullable=True),
        sa.Column('password_reset_expires', sa.DateTime(), nullable=True),
        sa.Column('email_verification_token', sa.String(length=255), nullable=True),
        sa.Column('email_verification_expires', sa.DateTime(), nullable=True),
        sa.Column('two_factor_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('two_factor_secret', sa.String(length=64), nullable=True),
        sa.Column('notification_preferences', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Admin dashboard accounts
    op.create_table(
        'admin_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', admin_role, nullable=False),
        sa.Column('status', admin_status, nullable=False),
        sa.Column('added_by', sa.String(length=255), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_users_id', 'admin_users', ['id'])
    op.create_index('ix_admin_users_email', 'admin_users', ['email'], unique=True)

    # Checklist
    op.create_table(
        'checklist_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_checklist_templates_id', 'checklist_templates', ['id'])

    op.create_table(
        'user_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('done', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['template_id'], ['checklist_templates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'template_id', name='uq_user_progress_user_template'),
    )
    op.create_index('ix_user_progress_id', 'user_progress', ['id'])
    op.create_index('ix_user_progress_user_id', 'user_progress', ['user_id'])

    # Two-step confirmations and their audit trail
    op.create_table(
        'protected_actions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('action_type', action_type, nullable=False),
        sa.Column('target_email', sa.String(length=255), nullable=False),
        sa.Column('target_snapshot', sa.JSON(), nullable=True),
        sa.Column('state', confirmation_state, nullable=False),
        sa.Column('secret', sa.String(length=64), nullable=True),
        sa.Column('first_step', sa.Integer(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['admin_id'], ['admin_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_protected_actions_id', 'protected_actions', ['id'])
    op.create_index('ix_protected_actions_admin_id', 'protected_actions', ['admin_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_ref', sa.String(length=255), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['admin_id'], ['admin_users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_index('ix_audit_logs_id', table_name='audit_logs')
    op.drop_table('audit_logs')

    op.drop_index('ix_protected_actions_admin_id', table_name='protected_actions')
    op.drop_index('ix_protected_actions_id', table_name='protected_actions')
    op.drop_table('protected_actions')

    op.drop_index('ix_user_progress_user_id', table_name='user_progress')
    op.drop_index('ix_user_progress_id', table_name='user_progress')
    op.drop_table('user_progress')

    op.drop_index('ix_checklist_templates_id', table_name='checklist_templates')
    op.drop_table('checklist_templates')

    op.drop_index('ix_admin_users_email', table_name='admin_users')
    op.drop_index('ix_admin_users_id', table_name='admin_users')
    op.drop_table('admin_users')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (confirmation_state, action_type, admin_status, admin_role, user_type):
        enum_type.drop(bind, checkfirst=True)
