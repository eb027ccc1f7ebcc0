"""create initial school cms tables

Revision ID: 3b7e9c1d2a40
Revises:
Create Date: 2026-10-19 09:12:31

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e9c1d2a40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ROLE = sa.Enum('EDITOR', 'ADMIN', 'SUPERADMIN', name='role')
REGISTRATION_STATUS = sa.Enum(
    'PENDING', 'REVIEWING', 'ACCEPTED', 'REJECTED', 'ENROLLED', 'WITHDRAWN',
    name='registrationstatus',
)
GENDER = sa.Enum('MALE', 'FEMALE', name='gender')
ADMIN_ACTION = sa.Enum(
    'CREATE_PERIOD', 'UPDATE_PERIOD', 'DELETE_PERIOD', 'ACTIVATE_PERIOD', 'DEACTIVATE_PERIOD',
    'SET_REGISTRATION_STATUS', 'CREATE_USER', 'UPDATE_USER', 'TOGGLE_USER', 'DELETE_USER',
    name='admin_action',
)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', ROLE, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'ppdb_periods',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('academic_year', sa.String(length=9), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('quota', sa.Integer(), nullable=True),
        sa.Column('requirements', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # 활성 기간은 최대 1개 (is_active = true 인 행만 unique)
    op.create_index(
        'uq_ppdb_periods_single_active',
        'ppdb_periods',
        ['is_active'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )

    op.create_table(
        'ppdb_registrations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('registration_no', sa.String(length=32), nullable=False),
        sa.Column('period_id', sa.Uuid(), nullable=False),
        sa.Column('student_name', sa.String(length=100), nullable=False),
        sa.Column('nisn', sa.String(length=20), nullable=True),
        sa.Column('gender', GENDER, nullable=False),
        sa.Column('birth_place', sa.String(length=100), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=False),
        sa.Column('religion', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('previous_school', sa.String(length=200), nullable=True),
        sa.Column('father_name', sa.String(length=100), nullable=True),
        sa.Column('father_job', sa.String(length=100), nullable=True),
        sa.Column('father_phone', sa.String(length=20), nullable=True),
        sa.Column('mother_name', sa.String(length=100), nullable=True),
        sa.Column('mother_job', sa.String(length=100), nullable=True),
        sa.Column('mother_phone', sa.String(length=20), nullable=True),
        sa.Column('guardian_name', sa.String(length=100), nullable=True),
        sa.Column('guardian_phone', sa.String(length=20), nullable=True),
        sa.Column('guardian_email', sa.String(length=255), nullable=True),
        sa.Column('status', REGISTRATION_STATUS, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['period_id'], ['ppdb_periods.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('registration_no', name='uq_ppdb_registrations_registration_no'),
    )
    op.create_index('ix_ppdb_registrations_period_id', 'ppdb_registrations', ['period_id'])
    op.create_index('ix_ppdb_registrations_status', 'ppdb_registrations', ['status'])

    op.create_table(
        'contact_messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('subject', sa.String(length=200), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contact_messages_is_read', 'contact_messages', ['is_read'])

    op.create_table(
        'admin_action_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('action', ADMIN_ACTION, nullable=False),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_id', sa.String(length=36), nullable=False),
        sa.Column('before_value', sa.String(length=50), nullable=True),
        sa.Column('after_value', sa.String(length=50), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_action_logs_target', 'admin_action_logs', ['target_type', 'target_id'])


def downgrade() -> None:
    op.drop_index('ix_admin_action_logs_target', table_name='admin_action_logs')
    op.drop_table('admin_action_logs')
    op.drop_index('ix_contact_messages_is_read', table_name='contact_messages')
    op.drop_table('contact_messages')
    op.drop_index('ix_ppdb_registrations_status', table_name='ppdb_registrations')
    op.drop_index('ix_ppdb_registrations_period_id', table_name='ppdb_registrations')
    op.drop_table('ppdb_registrations')
    op.drop_index('uq_ppdb_periods_single_active', table_name='ppdb_periods')
    op.drop_table('ppdb_periods')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (ADMIN_ACTION, REGISTRATION_STATUS, GENDER, ROLE):
        enum.drop(bind, checkfirst=True)
