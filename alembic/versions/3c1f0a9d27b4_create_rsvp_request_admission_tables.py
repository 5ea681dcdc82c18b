"""Create RSVP request admission tables

Revision ID: 3c1f0a9d27b4
Revises: 
Create Date: 2026-10-18 10:04:12.118530

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d27b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    participant_role_enum = postgresql.ENUM('Host', 'CoHost', 'Sponsor', 'Speaker', 'Staff', name='eventparticipantrole')
    participant_role_enum.create(op.get_bind())

    rsvp_request_status_enum = postgresql.ENUM('Pending', 'Approved', 'Rejected', name='rsvprequeststatus')
    rsvp_request_status_enum.create(op.get_bind())

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('username', sa.String(100), nullable=True, unique=True),
        sa.Column('mobile', sa.String(32), nullable=True),
        sa.Column('image_url', sa.String(512), nullable=True),
        sa.Column('thumbnail_url', sa.String(512), nullable=True),
        sa.Column('total_gamification_points', sa.Integer, nullable=False, server_default='0'),
        sa.Column('total_gamification_points_weekly', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('idx_event_created_by', 'events', ['created_by'])

    op.create_table(
        'event_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('is_rsvp_approval_required', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('idx_event_setting_event', 'event_settings', ['event_id'])

    op.create_table(
        'event_participants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', postgresql.ENUM(name='eventparticipantrole', create_type=False), nullable=False),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('idx_event_participant_event_user', 'event_participants', ['event_id', 'user_id'])

    op.create_table(
        'rsvp_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', postgresql.ENUM(name='rsvprequeststatus', create_type=False), nullable=False, server_default='Pending'),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('responded_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "(status = 'Pending' AND responded_at IS NULL AND responded_by IS NULL)"
            " OR (status <> 'Pending' AND responded_at IS NOT NULL AND responded_by IS NOT NULL)",
            name='ck_rsvp_request_response_fields',
        ),
    )
    op.create_index('idx_rsvp_request_event_status', 'rsvp_requests', ['event_id', 'status'])
    op.create_index('idx_rsvp_request_user', 'rsvp_requests', ['user_id'])
    # Partial unique index: at most one live (pending or approved) request per user and event
    op.create_index(
        'uq_rsvp_request_active',
        'rsvp_requests',
        ['event_id', 'user_id'],
        unique=True,
        postgresql_where=sa.text("status IN ('Pending', 'Approved') AND NOT is_deleted"),
    )


def downgrade() -> None:
    op.drop_table('rsvp_requests')
    op.drop_table('event_participants')
    op.drop_table('event_settings')
    op.drop_table('events')
    op.drop_table('users')

    sa.Enum(name='rsvprequeststatus').drop(op.get_bind())
    sa.Enum(name='eventparticipantrole').drop(op.get_bind())
