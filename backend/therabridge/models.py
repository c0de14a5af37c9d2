from __future__ import annotations
from typing import Optional
from datetime import datetime, timezone

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    BigInteger, String, Text, Integer, Float, DateTime, CheckConstraint,
    ForeignKey, Index, Boolean, JSON
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from therabridge.db import Base

# SQLite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")
JSONType = JSON().with_variant(JSONB(), "postgresql")

ROLES = ("user", "admin", "therapist", "client")
MODALITIES = ("cbt", "dbt", "trauma_informed", "emdr", "general")
SUBSCRIPTION_TIERS = ("starter", "professional", "practice", "enterprise")
SUBSCRIPTION_STATUSES = ("active", "trialing", "past_due", "canceled", "none")
EVENT_TYPES = ("anxiety", "depression", "anger", "grief", "joy", "fear", "shame", "other")
CHECK_IN_TYPES = ("daily", "pre_session", "post_session", "crisis_check")
GOAL_STATUSES = ("active", "achieved", "paused", "archived")
HOMEWORK_STATUSES = ("assigned", "in_progress", "completed", "skipped")
SUMMARY_TYPES = ("session_prep", "post_session", "weekly_overview", "reflection_prompt")
DEMO_REQUEST_STATUSES = ("pending", "contacted", "demo_scheduled", "converted", "declined")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in(column: str, values: tuple[str, ...]) -> str:
    return f"{column} in ({','.join(repr(v) for v in values)})"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(_in("role", ROLES), name="ck_users_role"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), unique=True, index=True, nullable=True)
    # invite placeholders have no password until the client registers
    password_hash: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String(16), default="user", nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_signed_in: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TherapistProfile(Base):
    __tablename__ = "therapist_profiles"
    __table_args__ = (
        CheckConstraint(_in("subscription_tier", SUBSCRIPTION_TIERS), name="ck_therapist_tier"),
        CheckConstraint(_in("subscription_status", SUBSCRIPTION_STATUSES), name="ck_therapist_sub_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    license_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    license_state: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    specialties: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # comma-separated
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    practice_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    subscription_tier: Mapped[str] = mapped_column(String(32), default="starter", nullable=False)
    subscription_status: Mapped[str] = mapped_column(String(32), default="none", nullable=False)
    max_clients: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ClientProfile(Base):
    __tablename__ = "client_profiles"
    __table_args__ = (
        CheckConstraint(_in("primary_modality", MODALITIES), name="ck_client_modality"),
        Index("idx_client_therapist", "therapist_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    # owning therapist; every client-scoped row resolves to it through here
    therapist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("therapist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    primary_modality: Mapped[str] = mapped_column(String(32), default="general", nullable=False)
    treatment_goals_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_frequency: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)  # "weekly", "biweekly"
    onboarding_complete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    invite_token: Mapped[Optional[str]] = mapped_column(String(128), index=True, nullable=True)
    invite_token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class MoodEntry(Base):
    __tablename__ = "mood_entries"
    __table_args__ = (
        CheckConstraint("mood_score between 1 and 10", name="ck_mood_score"),
        Index("idx_mood_client_time", "client_id", "recorded_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False
    )
    mood_score: Mapped[int] = mapped_column(Integer, nullable=False)
    energy_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    anxiety_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sleep_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class EmotionalEvent(Base):
    __tablename__ = "emotional_events"
    __table_args__ = (
        CheckConstraint(_in("event_type", EVENT_TYPES), name="ck_event_type"),
        CheckConstraint("intensity between 1 and 10", name="ck_event_intensity"),
        Index("idx_event_client_time", "client_id", "occurred_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String(32), default="other", nullable=False)
    intensity: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    triggers: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    coping_strategies_used: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shared_with_therapist: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class CheckIn(Base):
    __tablename__ = "check_ins"
    __table_args__ = (
        CheckConstraint(_in("check_in_type", CHECK_IN_TYPES), name="ck_checkin_type"),
        Index("idx_checkin_client_time", "client_id", "completed_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False
    )
    check_in_type: Mapped[str] = mapped_column(String(32), default="daily", nullable=False)
    responses: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    ai_prompt_used: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_reflection_generated: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mood_at_check_in: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TherapyGoal(Base):
    __tablename__ = "therapy_goals"
    __table_args__ = (
        CheckConstraint(_in("status", GOAL_STATUSES), name="ck_goal_status"),
        CheckConstraint(_in("modality", MODALITIES), name="ck_goal_modality"),
        Index("idx_goal_client", "client_id"),
        Index("idx_goal_therapist", "therapist_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False
    )
    therapist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("therapist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    goal_text: Mapped[str] = mapped_column(Text, nullable=False)
    modality: Mapped[str] = mapped_column(String(32), default="general", nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)
    progress_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    achieved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class HomeworkAssignment(Base):
    __tablename__ = "homework_assignments"
    __table_args__ = (
        CheckConstraint(_in("status", HOMEWORK_STATUSES), name="ck_homework_status"),
        CheckConstraint(_in("modality", MODALITIES), name="ck_homework_modality"),
        Index("idx_homework_client", "client_id"),
        Index("idx_homework_therapist", "therapist_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False
    )
    therapist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("therapist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    modality: Mapped[str] = mapped_column(String(32), default="general", nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="assigned", nullable=False)
    completion_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    therapist_review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class AiSummary(Base):
    """Generated text. Written once, never updated."""
    __tablename__ = "ai_summaries"
    __table_args__ = (
        CheckConstraint(_in("summary_type", SUMMARY_TYPES), name="ck_summary_type"),
        CheckConstraint(_in("modality", MODALITIES), name="ck_summary_modality"),
        Index("idx_summary_client_type", "client_id", "summary_type"),
        Index("idx_summary_therapist", "therapist_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False
    )
    therapist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("therapist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    summary_type: Mapped[str] = mapped_column(String(32), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    modality: Mapped[str] = mapped_column(String(32), default="general", nullable=False)
    data_window_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    data_window_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    tokens_used: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class SubscriptionRecord(Base):
    __tablename__ = "subscription_records"
    __table_args__ = (
        CheckConstraint(_in("tier", SUBSCRIPTION_TIERS), name="ck_subscription_tier"),
        CheckConstraint(_in("status", SUBSCRIPTION_STATUSES), name="ck_subscription_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    therapist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("therapist_profiles.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    tier: Mapped[str] = mapped_column(String(32), default="starter", nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="none", nullable=False)
    current_period_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    current_period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class AuditLog(Base):
    """Compliance trail. Insert only."""
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("idx_audit_user_time", "user_id", "created_at"),
        Index("idx_audit_action", "action"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    resource_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resource_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON string
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class DemoRequest(Base):
    """Marketing-site demo request. Submitted anonymously, read by admins."""
    __tablename__ = "demo_requests"
    __table_args__ = (
        CheckConstraint(_in("status", DEMO_REQUEST_STATUSES), name="ck_demo_request_status"),
        Index("idx_demo_email", "email"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    practice_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    practice_size: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
