"""create team calendar tables

Revision ID: 20261001_000000
Revises:
Create Date: 2026-10-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = '20261001_000000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'teams',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('age_group', sa.String(50), nullable=True),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('organization_name', sa.String(255), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_teams_organization_id', 'teams', ['organization_id'])

    op.create_table(
        'team_memberships',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('access_type', sa.String(20), nullable=False),
        sa.Column('staff_role', sa.String(50), nullable=True),
        sa.Column('player_id', sa.Uuid(), nullable=True),
        sa.Column('player_name', sa.String(255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('team_id', 'user_id', 'player_id', name='uq_team_member_player'),
    )
    op.create_index('ix_team_memberships_team_id', 'team_memberships', ['team_id'])
    op.create_index('ix_team_memberships_user_id', 'team_memberships', ['user_id'])
    op.create_index('idx_membership_user_team', 'team_memberships', ['user_id', 'team_id'])

    op.create_table(
        'cal_events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_type', sa.String(20), nullable=False, server_default='practice'),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('arrival_time', sa.Time(), nullable=True),
        sa.Column('is_all_day', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('location_name', sa.String(255), nullable=True),
        sa.Column('location_address', sa.String(500), nullable=True),
        sa.Column('opponent', sa.String(255), nullable=True),
        sa.Column('home_away', sa.String(10), nullable=True),
        sa.Column('uniform', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_cancelled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('cancelled_reason', sa.Text(), nullable=True),
        sa.Column('recurrence_group_id', sa.Uuid(), nullable=True),
        sa.Column('recurrence_pattern', sa.String(50), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_cal_events_team_id', 'cal_events', ['team_id'])
    op.create_index('ix_cal_events_organization_id', 'cal_events', ['organization_id'])
    op.create_index('ix_cal_events_event_date', 'cal_events', ['event_date'])
    op.create_index('ix_cal_events_recurrence_group_id', 'cal_events', ['recurrence_group_id'])
    op.create_index('idx_cal_events_team_date', 'cal_events', ['team_id', 'event_date'])
    op.create_index('idx_cal_events_group_date', 'cal_events', ['recurrence_group_id', 'event_date'])

    op.create_table(
        'cal_event_rsvps',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('cal_events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('player_id', sa.Uuid(), nullable=True),
        sa.Column('status', sa.String(10), nullable=False, server_default='pending'),
        sa.Column('decline_reason', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_rsvp_event_user'),
    )
    op.create_index('ix_cal_event_rsvps_event_id', 'cal_event_rsvps', ['event_id'])
    op.create_index('ix_cal_event_rsvps_user_id', 'cal_event_rsvps', ['user_id'])
    op.create_index('idx_rsvp_event_status', 'cal_event_rsvps', ['event_id', 'status'])

    op.create_table(
        'calendar_sync_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_calendar_sync_tokens_user_id', 'calendar_sync_tokens', ['user_id'])
    op.create_index('ix_calendar_sync_tokens_token', 'calendar_sync_tokens', ['token'], unique=True)
    op.create_index('idx_sync_token_user_active', 'calendar_sync_tokens', ['user_id', 'is_active'])


def downgrade() -> None:
    op.drop_table('calendar_sync_tokens')
    op.drop_table('cal_event_rsvps')
    op.drop_table('cal_events')
    op.drop_table('team_memberships')
    op.drop_table('teams')
