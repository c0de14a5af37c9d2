"""Initial therapy continuity schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MODALITIES = "('cbt','dbt','trauma_informed','emdr','general')"
TIERS = "('starter','professional','practice','enterprise')"
SUB_STATUSES = "('active','trialing','past_due','canceled','none')"


def _timestamps(with_updated: bool = True):
    cols = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True)]
    if with_updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True))
    return cols


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('role', sa.String(16), nullable=False, server_default='user'),
        *_timestamps(),
        sa.Column('last_signed_in', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role in ('user','admin','therapist','client')", name='ck_users_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'therapist_profiles',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('license_number', sa.String(64), nullable=True),
        sa.Column('license_state', sa.String(32), nullable=True),
        sa.Column('specialties', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('practice_name', sa.String(255), nullable=True),
        sa.Column('subscription_tier', sa.String(32), nullable=False, server_default='starter'),
        sa.Column('subscription_status', sa.String(32), nullable=False, server_default='none'),
        sa.Column('max_clients', sa.Integer(), nullable=False, server_default='5'),
        *_timestamps(),
        sa.CheckConstraint(f"subscription_tier in {TIERS}", name='ck_therapist_tier'),
        sa.CheckConstraint(f"subscription_status in {SUB_STATUSES}", name='ck_therapist_sub_status'),
    )
    op.create_index('ix_therapist_profiles_user_id', 'therapist_profiles', ['user_id'], unique=True)

    op.create_table(
        'client_profiles',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('therapist_id', sa.BigInteger(), sa.ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('primary_modality', sa.String(32), nullable=False, server_default='general'),
        sa.Column('treatment_goals_summary', sa.Text(), nullable=True),
        sa.Column('session_frequency', sa.String(64), nullable=True),
        sa.Column('onboarding_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('invite_token', sa.String(128), nullable=True),
        sa.Column('invite_token_expiry', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(f"primary_modality in {MODALITIES}", name='ck_client_modality'),
    )
    op.create_index('ix_client_profiles_user_id', 'client_profiles', ['user_id'], unique=True)
    op.create_index('ix_client_profiles_invite_token', 'client_profiles', ['invite_token'])
    op.create_index('idx_client_therapist', 'client_profiles', ['therapist_id'])

    op.create_table(
        'mood_entries',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('client_id', sa.BigInteger(), sa.ForeignKey('client_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('mood_score', sa.Integer(), nullable=False),
        sa.Column('energy_level', sa.Integer(), nullable=True),
        sa.Column('anxiety_level', sa.Integer(), nullable=True),
        sa.Column('sleep_hours', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(with_updated=False),
        sa.CheckConstraint('mood_score between 1 and 10', name='ck_mood_score'),
    )
    op.create_index('idx_mood_client_time', 'mood_entries', ['client_id', 'recorded_at'])

    op.create_table(
        'emotional_events',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('client_id', sa.BigInteger(), sa.ForeignKey('client_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_type', sa.String(32), nullable=False, server_default='other'),
        sa.Column('intensity', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('triggers', sa.Text(), nullable=True),
        sa.Column('coping_strategies_used', sa.Text(), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('shared_with_therapist', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(with_updated=False),
        sa.CheckConstraint(
            "event_type in ('anxiety','depression','anger','grief','joy','fear','shame','other')",
            name='ck_event_type',
        ),
        sa.CheckConstraint('intensity between 1 and 10', name='ck_event_intensity'),
    )
    op.create_index('idx_event_client_time', 'emotional_events', ['client_id', 'occurred_at'])

    op.create_table(
        'check_ins',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('client_id', sa.BigInteger(), sa.ForeignKey('client_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in_type', sa.String(32), nullable=False, server_default='daily'),
        sa.Column('responses', postgresql.JSONB(), nullable=True),
        sa.Column('ai_prompt_used', sa.Text(), nullable=True),
        sa.Column('ai_reflection_generated', sa.Text(), nullable=True),
        sa.Column('mood_at_check_in', sa.Integer(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(with_updated=False),
        sa.CheckConstraint(
            "check_in_type in ('daily','pre_session','post_session','crisis_check')",
            name='ck_checkin_type',
        ),
    )
    op.create_index('idx_checkin_client_time', 'check_ins', ['client_id', 'completed_at'])

    op.create_table(
        'therapy_goals',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('client_id', sa.BigInteger(), sa.ForeignKey('client_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('therapist_id', sa.BigInteger(), sa.ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('goal_text', sa.Text(), nullable=False),
        sa.Column('modality', sa.String(32), nullable=False, server_default='general'),
        sa.Column('status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('progress_notes', sa.Text(), nullable=True),
        sa.Column('target_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('achieved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint("status in ('active','achieved','paused','archived')", name='ck_goal_status'),
        sa.CheckConstraint(f"modality in {MODALITIES}", name='ck_goal_modality'),
    )
    op.create_index('idx_goal_client', 'therapy_goals', ['client_id'])
    op.create_index('idx_goal_therapist', 'therapy_goals', ['therapist_id'])

    op.create_table(
        'homework_assignments',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('client_id', sa.BigInteger(), sa.ForeignKey('client_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('therapist_id', sa.BigInteger(), sa.ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('modality', sa.String(32), nullable=False, server_default='general'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='assigned'),
        sa.Column('completion_notes', sa.Text(), nullable=True),
        sa.Column('therapist_review_notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint("status in ('assigned','in_progress','completed','skipped')", name='ck_homework_status'),
        sa.CheckConstraint(f"modality in {MODALITIES}", name='ck_homework_modality'),
    )
    op.create_index('idx_homework_client', 'homework_assignments', ['client_id'])
    op.create_index('idx_homework_therapist', 'homework_assignments', ['therapist_id'])

    op.create_table(
        'ai_summaries',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('client_id', sa.BigInteger(), sa.ForeignKey('client_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('therapist_id', sa.BigInteger(), sa.ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('summary_type', sa.String(32), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('modality', sa.String(32), nullable=False, server_default='general'),
        sa.Column('data_window_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data_window_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tokens_used', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "summary_type in ('session_prep','post_session','weekly_overview','reflection_prompt')",
            name='ck_summary_type',
        ),
        sa.CheckConstraint(f"modality in {MODALITIES}", name='ck_summary_modality'),
    )
    op.create_index('idx_summary_client_type', 'ai_summaries', ['client_id', 'summary_type'])
    op.create_index('idx_summary_therapist', 'ai_summaries', ['therapist_id'])

    op.create_table(
        'subscription_records',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('therapist_id', sa.BigInteger(), sa.ForeignKey('therapist_profiles.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('tier', sa.String(32), nullable=False, server_default='starter'),
        sa.Column('status', sa.String(32), nullable=False, server_default='none'),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint(f"tier in {TIERS}", name='ck_subscription_tier'),
        sa.CheckConstraint(f"status in {SUB_STATUSES}", name='ck_subscription_status'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('user_role', sa.String(32), nullable=True),
        sa.Column('action', sa.String(128), nullable=False),
        sa.Column('resource_type', sa.String(64), nullable=True),
        sa.Column('resource_id', sa.BigInteger(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_audit_user_time', 'audit_logs', ['user_id', 'created_at'])
    op.create_index('idx_audit_action', 'audit_logs', ['action'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('subscription_records')
    op.drop_table('ai_summaries')
    op.drop_table('homework_assignments')
    op.drop_table('therapy_goals')
    op.drop_table('check_ins')
    op.drop_table('emotional_events')
    op.drop_table('mood_entries')
    op.drop_table('client_profiles')
    op.drop_table('therapist_profiles')
    op.drop_table('users')
