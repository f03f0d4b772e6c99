"""Create initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def _has_table(bind, name: str) -> bool:
    try:
        insp = inspect(bind)
        return insp.has_table(name)
    except Exception:
        return False

def upgrade() -> None:
    bind = op.get_bind()

    bookingstatus_enum = sa.Enum('PENDING', 'CONFIRMED', 'CANCELLED', 'VOID', name='bookingstatus')

    # Create users table
    if not _has_table(bind, 'users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('hashed_password', sa.String(length=255), nullable=False),
            sa.Column('full_name', sa.String(length=255), nullable=False),
            sa.Column('role', sa.String(length=20), server_default='user', nullable=False),
            sa.Column('department', sa.String(length=100), nullable=True),
            sa.Column('phone', sa.String(length=20), nullable=True),
            sa.Column('avatar', sa.Text(), nullable=True),
            sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column('last_login', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    # Create activity_logs table
    if not _has_table(bind, 'activity_logs'):
        op.create_table('activity_logs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=True),
            sa.Column('user_name', sa.String(length=255), nullable=False),
            sa.Column('action', sa.String(length=100), nullable=False),
            sa.Column('details', sa.Text(), nullable=True),
            sa.Column('ip_address', sa.String(length=45), nullable=True),
            sa.Column('user_agent', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_activity_logs_id'), 'activity_logs', ['id'], unique=False)
        op.create_index(op.f('ix_activity_logs_user_id'), 'activity_logs', ['user_id'], unique=False)
        op.create_index(op.f('ix_activity_logs_action'), 'activity_logs', ['action'], unique=False)
        op.create_index(op.f('ix_activity_logs_created_at'), 'activity_logs', ['created_at'], unique=False)

    # Create room_types table
    if not _has_table(bind, 'room_types'):
        op.create_table('room_types',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('name_en', sa.String(length=100), nullable=False),
            sa.Column('total_rooms', sa.Integer(), nullable=False),
            sa.CheckConstraint('total_rooms >= 0', name='ck_room_types_total_rooms'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('name_en')
        )
        op.create_index(op.f('ix_room_types_name'), 'room_types', ['name'], unique=True)

    # Create blackout_dates table
    if not _has_table(bind, 'blackout_dates'):
        op.create_table('blackout_dates',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('reason', sa.String(length=255), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_blackout_dates_date'), 'blackout_dates', ['date'], unique=True)

    # Create minimum_stay_rules table
    if not _has_table(bind, 'minimum_stay_rules'):
        op.create_table('minimum_stay_rules',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('min_nights', sa.Integer(), nullable=False),
            sa.CheckConstraint('end_date >= start_date', name='ck_minimum_stay_rules_range'),
            sa.CheckConstraint('min_nights >= 1', name='ck_minimum_stay_rules_min_nights'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_minimum_stay_rules_start_date'), 'minimum_stay_rules', ['start_date'], unique=False)
        op.create_index(op.f('ix_minimum_stay_rules_end_date'), 'minimum_stay_rules', ['end_date'], unique=False)

    # Create bookings table
    if not _has_table(bind, 'bookings'):
        op.create_table('bookings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('booking_code', sa.String(length=32), nullable=False),
            sa.Column('customer_name', sa.String(length=255), nullable=False),
            sa.Column('company', sa.String(length=255), nullable=True),
            sa.Column('sale_owner', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('check_in', sa.Date(), nullable=False),
            sa.Column('check_out', sa.Date(), nullable=False),
            sa.Column('room_type', sa.String(length=100), nullable=False),
            sa.Column('number_of_rooms', sa.Integer(), nullable=False),
            sa.Column('rate', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('payment_method', sa.String(length=100), nullable=True),
            sa.Column('status', bookingstatus_enum, server_default='PENDING', nullable=False),
            sa.Column('hold_expiry', sa.DateTime(), nullable=True),
            sa.Column('documents', sa.JSON(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('cancel_reason', sa.Text(), nullable=True),
            sa.Column('cancel_documents', sa.JSON(), nullable=True),
            sa.Column('cancelled_at', sa.DateTime(), nullable=True),
            sa.Column('cancelled_by', sa.String(length=255), nullable=True),
            sa.Column('amendment_logs', sa.JSON(), nullable=True),
            sa.Column('last_amended_at', sa.DateTime(), nullable=True),
            sa.Column('last_amended_by', sa.String(length=255), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint('check_out > check_in', name='ck_bookings_stay_range'),
            sa.CheckConstraint('number_of_rooms >= 1', name='ck_bookings_number_of_rooms'),
            sa.CheckConstraint('rate >= 0', name='ck_bookings_rate'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_bookings_id'), 'bookings', ['id'], unique=False)
        op.create_index(op.f('ix_bookings_booking_code'), 'bookings', ['booking_code'], unique=True)
        op.create_index(op.f('ix_bookings_check_in'), 'bookings', ['check_in'], unique=False)
        op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
        op.create_index(op.f('ix_bookings_created_at'), 'bookings', ['created_at'], unique=False)
        # composite index helps overlap searches
        op.create_index('ix_bookings_room_type_stay', 'bookings', ['room_type', 'check_in', 'check_out'], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    dialect_name = bind.dialect.name
    op.drop_table('bookings')
    op.drop_table('minimum_stay_rules')
    op.drop_table('blackout_dates')
    op.drop_table('room_types')
    op.drop_table('activity_logs')
    op.drop_table('users')

    # Drop ENUM types for PostgreSQL
    if dialect_name == 'postgresql':
        sa.Enum(name='bookingstatus').drop(bind, checkfirst=True)
