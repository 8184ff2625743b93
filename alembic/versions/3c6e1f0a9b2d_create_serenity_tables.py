"""Create serenity tables

Revision ID: 3c6e1f0a9b2d
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3c6e1f0a9b2d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ### Source data ###
    op.create_table(
        'users',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    op.create_table(
        'moods',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),  # 0-100
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_moods_user_id', 'moods', ['user_id'])
    op.create_index('ix_moods_timestamp', 'moods', ['timestamp'])

    op.create_table(
        'journal_entries',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False, server_default=''),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('mood', sa.Integer(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('emotional_state', sa.String(50), nullable=True),
        sa.Column('key_themes', sa.JSON(), nullable=True),
        sa.Column('insights', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_journal_entries_user_id', 'journal_entries', ['user_id'])
    op.create_index('ix_journal_entries_created_at', 'journal_entries', ['created_at'])

    op.create_table(
        'chat_sessions',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('session_id', sa.String(64), unique=True),
        sa.Column('start_time', sa.DateTime(), default=sa.func.now()),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
    )
    op.create_index('ix_chat_sessions_user_id', 'chat_sessions', ['user_id'])
    op.create_index('ix_chat_sessions_start_time', 'chat_sessions', ['start_time'])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('session_id', sa.CHAR(36), sa.ForeignKey('chat_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), default=sa.func.now()),
    )

    op.create_table(
        'long_term_memories',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('memory_type', sa.String(50), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('importance', sa.Integer(), default=5),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_long_term_memories_user_id', 'long_term_memories', ['user_id'])
    op.create_index('ix_long_term_memories_timestamp', 'long_term_memories', ['timestamp'])

    # ### Engine output ###
    op.create_table(
        'notifications',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('actor_id', sa.CHAR(36), nullable=True),
        sa.Column('type', sa.String(30), nullable=False, server_default='system'),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('metadata', sa.JSON(), nullable=True),  # keyed by prompt_type
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'intervention_progress',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('intervention_id', sa.String(100), nullable=False),
        sa.Column('intervention_type', sa.String(30), nullable=False),
        sa.Column('intervention_name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('started_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('last_active_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('current_step', sa.Integer(), default=1),
        sa.Column('total_steps', sa.Integer(), default=0),
        sa.Column('completed_steps', sa.JSON(), nullable=True),
        sa.Column('effectiveness_rating', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('attempts', sa.Integer(), default=1),
        sa.Column('completions', sa.Integer(), default=0),
        sa.Column('average_effectiveness', sa.Float(), default=0.0),
        sa.Column('days_since_start', sa.Integer(), default=0),
        sa.Column('expected_duration', sa.String(50), nullable=True),
        sa.Column('context', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_intervention_progress_user_id', 'intervention_progress', ['user_id'])
    op.create_index('ix_intervention_progress_intervention_id', 'intervention_progress', ['intervention_id'])
    op.create_index('ix_intervention_progress_lookup', 'intervention_progress', ['user_id', 'intervention_id', 'status'])

    op.create_table(
        'personalizations',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('intent', sa.JSON(), nullable=True),
        sa.Column('communication', sa.JSON(), nullable=True),
        sa.Column('behavioral_tendencies', sa.JSON(), nullable=True),
        sa.Column('time_patterns', sa.JSON(), nullable=True),
        sa.Column('engagement', sa.JSON(), nullable=True),
        sa.Column('adaptation_rules', sa.JSON(), nullable=True),
        sa.Column('user_overrides', sa.JSON(), nullable=True),
        sa.Column('explainability', sa.JSON(), nullable=True),
        sa.Column('last_analysis', sa.DateTime(), nullable=True),
        sa.Column('data_quality', sa.Float(), default=0.3),
        sa.Column('decay_rate', sa.Float(), default=0.05),
        sa.Column('personalization_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),  # optimistic lock
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    op.create_table(
        'conversation_summaries',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=True),
        sa.Column('summary_type', sa.String(20), nullable=False),
        sa.Column('period_start', sa.DateTime(), nullable=False),
        sa.Column('period_end', sa.DateTime(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('key_topics', sa.JSON(), nullable=True),
        sa.Column('emotional_themes', sa.JSON(), nullable=True),
        sa.Column('insights', sa.JSON(), nullable=True),
        sa.Column('action_items', sa.JSON(), nullable=True),
        sa.Column('message_count', sa.Integer(), default=0),
        sa.Column('token_count', sa.Integer(), default=0),
        sa.Column('summary_tokens', sa.Integer(), default=0),
        sa.Column('compression_ratio', sa.Float(), default=0.0),
        sa.Column('extracted_patterns', sa.JSON(), nullable=True),
        sa.Column('confidence', sa.Float(), default=0.7),
        sa.Column('completeness', sa.Float(), default=0.7),
        sa.Column('version', sa.Integer(), default=1),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_conversation_summaries_user_id', 'conversation_summaries', ['user_id'])
    op.create_index('ix_conversation_summaries_period', 'conversation_summaries', ['user_id', 'summary_type', 'period_start'])

    op.create_table(
        'weekly_reports',
        sa.Column('id', sa.CHAR(36), primary_key=True),
        sa.Column('user_id', sa.CHAR(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),  # week_start, week_end, generated_at
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_weekly_reports_user_id', 'weekly_reports', ['user_id'])


def downgrade() -> None:
    op.drop_table('weekly_reports')
    op.drop_table('conversation_summaries')
    op.drop_table('personalizations')
    op.drop_table('intervention_progress')
    op.drop_table('notifications')
    op.drop_table('long_term_memories')
    op.drop_table('chat_messages')
    op.drop_table('chat_sessions')
    op.drop_table('journal_entries')
    op.drop_table('moods')
    op.drop_table('users')
