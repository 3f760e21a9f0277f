"""Create portal schema

Revision ID: 001_portal
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_portal'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade():
    """Create catalog, analytics and notification tables"""

    # ====================
    # USERS TABLE
    # ====================
    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), server_default='agent', nullable=False),
        sa.Column('referral_code', sa.String(20), unique=True, nullable=True),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True),
        _created_at(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # ====================
    # GAMES TABLES
    # ====================
    op.create_table(
        'games',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('player_link', sa.String(500), nullable=True),
        sa.Column('agent_link', sa.String(500), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=True),
        _created_at(),
    )
    op.create_index('ix_games_title', 'games', ['title'])

    op.create_table(
        'game_settings',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id', ondelete='CASCADE'), nullable=False),
        sa.Column('setting_key', sa.String(100), nullable=False),
        sa.Column('setting_value', sa.Text, nullable=False),
        sa.Column('setting_type', sa.String(20), server_default='string', nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        _created_at(),
    )
    op.create_index('ix_game_settings_game_id', 'game_settings', ['game_id'])

    # ====================
    # CREDENTIALS & ASSIGNMENTS
    # ====================
    op.create_table(
        'game_credentials',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('game_id', sa.String(64), nullable=False),
        sa.Column('username', sa.String(200), nullable=False),
        sa.Column('password', sa.String(200), nullable=False),
        sa.Column('assigned_to', sa.String(64), nullable=True),
        _created_at(),
    )
    op.create_index('ix_game_credentials_game_id', 'game_credentials', ['game_id'])
    op.create_index('ix_game_credentials_assigned_to', 'game_credentials', ['assigned_to'])

    op.create_table(
        'agent_games',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('agent_id', sa.String(64), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_agent_games_agent_game', 'agent_games', ['agent_id', 'game_id'], unique=True)

    # ====================
    # COMMISSION RULES
    # ====================
    op.create_table(
        'commission_settings',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('agent_id', sa.String(64), nullable=False),
        sa.Column('game_id', sa.String(64), nullable=True,
                  comment='NULL means the rule applies to all games of the agent'),
        sa.Column('commission_rate', sa.Numeric(12, 4), server_default='0', nullable=False),
        sa.Column('commission_type', sa.String(20), server_default='percentage', nullable=False),
        _created_at(),
    )
    op.create_index('ix_commission_settings_agent_id', 'commission_settings', ['agent_id'])
    op.create_index('ix_commission_settings_agent_game', 'commission_settings', ['agent_id', 'game_id'])

    # ====================
    # METRICS
    # ====================
    op.create_table(
        'game_analytics',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('game_id', sa.String(64), nullable=False),
        sa.Column('agent_id', sa.String(64), nullable=True),
        sa.Column('metric_type', sa.String(50), nullable=False),
        sa.Column('metric_value', sa.Float, server_default='0', nullable=False),
        sa.Column('date_recorded', sa.Date, nullable=False),
    )
    op.create_index('ix_game_analytics_agent_id', 'game_analytics', ['agent_id'])
    op.create_index('ix_game_analytics_game_date', 'game_analytics', ['game_id', 'date_recorded'])
    op.create_index('ix_game_analytics_date', 'game_analytics', ['date_recorded'])

    op.create_table(
        'agent_performance',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('agent_id', sa.String(64), nullable=False),
        sa.Column('metric_type', sa.String(50), nullable=False),
        sa.Column('metric_value', sa.Float, server_default='0', nullable=False),
        sa.Column('date_recorded', sa.Date, nullable=True),
    )
    op.create_index('ix_agent_performance_agent_id', 'agent_performance', ['agent_id'])

    # ====================
    # NOTIFICATIONS
    # ====================
    op.create_table(
        'notifications',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('recipient_id', sa.String(64), nullable=False),
        sa.Column('sender_id', sa.String(64), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('type', sa.String(50), server_default='general', nullable=False),
        sa.Column('priority', sa.String(20), server_default='normal', nullable=False),
        sa.Column('action_url', sa.String(500), nullable=True),
        sa.Column('read_status', sa.Integer, server_default='0', nullable=False),
        _created_at(),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_recipient_created', 'notifications', ['recipient_id', 'created_at'])

    op.create_table(
        'notification_reads',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('notification_id', sa.String(64), nullable=False),
        sa.Column('agent_id', sa.String(64), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_notification_reads_unique', 'notification_reads', ['notification_id', 'agent_id'], unique=True)

    op.create_table(
        'notification_types',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(100), unique=True, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('default_enabled', sa.Boolean, server_default=sa.true(), nullable=False),
    )


def downgrade():
    """Drop portal tables"""
    op.drop_table('notification_types')
    op.drop_table('notification_reads')
    op.drop_table('notifications')
    op.drop_table('agent_performance')
    op.drop_table('game_analytics')
    op.drop_table('commission_settings')
    op.drop_table('agent_games')
    op.drop_table('game_credentials')
    op.drop_table('game_settings')
    op.drop_table('games')
    op.drop_table('users')
