"""create users, clients, otp_records and notifications

Revision ID: 3b9e1c7d2a41
Revises:
Create Date: 2026-10-19 10:12:31.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b9e1c7d2a41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('public_id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('first_name', sa.String(length=64), nullable=False),
        sa.Column('last_name', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('email', name='users_email_key'),
    )
    op.create_index('ix_users_public_id', 'users', ['public_id'], unique=True)

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('public_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('company', sa.String(length=128), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=320), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_clients_public_id', 'clients', ['public_id'], unique=True)

    op.create_table(
        'otp_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('public_id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code_hash', sa.String(length=64), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('used_reason', sa.String(length=32), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_otp_records_public_id', 'otp_records', ['public_id'], unique=True)
    op.create_index('ix_otp_records_client_id_created_at', 'otp_records', ['client_id', 'created_at'])
    # at most one unused code per client
    op.create_index('uq_otp_records_active_client', 'otp_records', ['client_id'], unique=True,
                    postgresql_where=sa.text('is_used = false'))

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('public_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('salesman_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_name', sa.String(length=128), nullable=False),
        sa.Column('client_phone', sa.String(length=20), nullable=False),
        sa.Column('salesman_name', sa.String(length=130), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('otp_id', sa.Integer(), sa.ForeignKey('otp_records.id', ondelete='SET NULL'), nullable=True),
        sa.Column('delivery_method', sa.String(length=64), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_notifications_public_id', 'notifications', ['public_id'], unique=True)
    op.create_index('ix_notifications_salesman_id_created_at', 'notifications', ['salesman_id', 'created_at'])
    op.create_index('ix_notifications_client_id_created_at', 'notifications', ['client_id', 'created_at'])
    op.create_index('ix_notifications_type_created_at', 'notifications', ['type', 'created_at'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('notifications')
    op.drop_index('uq_otp_records_active_client', table_name='otp_records')
    op.drop_table('otp_records')
    op.drop_table('clients')
    op.drop_table('users')
