from __future__ import annotations
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field, EmailStr
from datetime import datetime
from enum import Enum


class Modality(str, Enum):
    CBT = "cbt"
    DBT = "dbt"
    TRAUMA_INFORMED = "trauma_informed"
    EMDR = "emdr"
    GENERAL = "general"


class SubscriptionTier(str, Enum):
    STARTER = "starter"
    PROFESSIONAL = "professional"
    PRACTICE = "practice"
    ENTERPRISE = "enterprise"


EventType = Literal["anxiety", "depression", "anger", "grief", "joy", "fear", "shame", "other"]
CheckInType = Literal["daily", "pre_session", "post_session", "crisis_check"]
GoalStatus = Literal["active", "achieved", "paused", "archived"]
SummaryType = Literal["session_prep", "post_session", "weekly_overview", "reflection_prompt"]


class SuccessResp(BaseModel):
    success: bool = True


# --- auth ---
class UserCreate(BaseModel):
    """
    /auth/register request. Registering with the email of a pending invite
    takes over the invite's placeholder account, and only with that invite's token.
    """
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str
    role: str = Field("user", pattern="^(user|therapist|client)$")
    invite_token: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- profiles ---
class TherapistProfileUpdate(BaseModel):
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    specialties: Optional[str] = None
    bio: Optional[str] = None
    practice_name: Optional[str] = None


class TherapistProfilePublic(BaseModel):
    id: int
    user_id: int
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    specialties: Optional[str] = None
    bio: Optional[str] = None
    practice_name: Optional[str] = None
    subscription_tier: str
    subscription_status: str
    max_clients: int

    class Config:
        from_attributes = True


class ClientProfilePublic(BaseModel):
    id: int
    user_id: int
    therapist_id: int
    primary_modality: Modality
    treatment_goals_summary: Optional[str] = None
    session_frequency: Optional[str] = None
    onboarding_complete: bool
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientListItem(ClientProfilePublic):
    name: Optional[str] = None
    email: Optional[str] = None


class OnboardingStatus(BaseModel):
    role: str
    has_profile: bool
    profile: Optional[Dict[str, Any]] = None


class ClaimInviteReq(BaseModel):
    token: str = Field(..., min_length=1)


class InviteClientReq(BaseModel):
    client_email: EmailStr
    primary_modality: Modality = Modality.GENERAL
    treatment_goals_summary: Optional[str] = None
    session_frequency: Optional[str] = None


class InviteClientResp(BaseModel):
    success: bool = True
    invite_token: str


class UpdateClientModalityReq(BaseModel):
    modality: Modality
    treatment_goals_summary: Optional[str] = None
    session_frequency: Optional[str] = None
    is_active: Optional[bool] = None


# --- client records ---
class MoodCreate(BaseModel):
    mood_score: int = Field(..., ge=1, le=10)
    energy_level: Optional[int] = Field(None, ge=1, le=10)
    anxiety_level: Optional[int] = Field(None, ge=1, le=10)
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    notes: Optional[str] = None


class MoodPublic(BaseModel):
    id: int
    mood_score: int
    energy_level: Optional[int] = None
    anxiety_level: Optional[int] = None
    sleep_hours: Optional[float] = None
    notes: Optional[str] = None
    recorded_at: datetime

    class Config:
        from_attributes = True


class EmotionalEventCreate(BaseModel):
    event_type: EventType
    intensity: int = Field(..., ge=1, le=10)
    description: Optional[str] = None
    triggers: Optional[str] = None
    coping_strategies_used: Optional[str] = None
    location: Optional[str] = None
    shared_with_therapist: bool = True


class EmotionalEventPublic(BaseModel):
    id: int
    event_type: str
    intensity: int
    description: Optional[str] = None
    triggers: Optional[str] = None
    coping_strategies_used: Optional[str] = None
    location: Optional[str] = None
    shared_with_therapist: bool
    occurred_at: datetime

    class Config:
        from_attributes = True


class EmotionalEventResp(BaseModel):
    success: bool = True
    crisis_detected: bool
    crisis_response: Optional[str] = None


class CheckInCreate(BaseModel):
    check_in_type: CheckInType = "daily"
    responses: Dict[str, str]
    mood_at_check_in: Optional[int] = Field(None, ge=1, le=10)


class CheckInPublic(BaseModel):
    id: int
    check_in_type: str
    responses: Optional[Dict[str, Any]] = None
    ai_reflection_generated: Optional[str] = None
    mood_at_check_in: Optional[int] = None
    completed_at: datetime

    class Config:
        from_attributes = True


class CheckInResp(BaseModel):
    success: bool = True
    crisis_detected: bool
    crisis_response: Optional[str] = None
    ai_reflection: Optional[str] = None


# --- goals & homework ---
class GoalCreate(BaseModel):
    client_id: int
    goal_text: str = Field(..., min_length=1)
    modality: Modality = Modality.GENERAL
    target_date: Optional[datetime] = None


class GoalUpdate(BaseModel):
    status: Optional[GoalStatus] = None
    progress_notes: Optional[str] = None
    goal_text: Optional[str] = Field(None, min_length=1)


class GoalPublic(BaseModel):
    id: int
    client_id: int
    goal_text: str
    modality: Modality
    status: str
    progress_notes: Optional[str] = None
    target_date: Optional[datetime] = None
    achieved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HomeworkCreate(BaseModel):
    client_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    modality: Modality = Modality.GENERAL
    due_date: Optional[datetime] = None


class HomeworkReviewReq(BaseModel):
    review_notes: Optional[str] = None


class HomeworkStatusUpdate(BaseModel):
    status: Literal["in_progress", "completed", "skipped"]
    completion_notes: Optional[str] = None


class HomeworkPublic(BaseModel):
    id: int
    client_id: int
    title: str
    description: str
    modality: Modality
    status: str
    due_date: Optional[datetime] = None
    completion_notes: Optional[str] = None
    therapist_review_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- AI summaries ---
class SummaryResp(BaseModel):
    summary: str


class PostSessionReq(BaseModel):
    session_notes: str = Field(..., min_length=1)
    next_session_date: Optional[str] = None


class AiSummaryPublic(BaseModel):
    id: int
    client_id: int
    summary_type: str
    content: str
    modality: Modality
    data_window_start: Optional[datetime] = None
    data_window_end: Optional[datetime] = None
    tokens_used: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# --- dashboards ---
class ClientDetail(BaseModel):
    client: ClientProfilePublic
    user: Optional[UserPublic] = None
    goals: List[GoalPublic]
    recent_mood: List[MoodPublic]
    recent_events: List[EmotionalEventPublic]
    homework: List[HomeworkPublic]
    check_ins: List[CheckInPublic]


class ClientDashboard(BaseModel):
    profile: ClientProfilePublic
    goals: List[GoalPublic]
    recent_mood: List[MoodPublic]
    homework: List[HomeworkPublic]
    recent_events: List[EmotionalEventPublic]
    recent_check_ins: List[CheckInPublic]


# --- subscription & audit ---
class UpgradeReq(BaseModel):
    tier: SubscriptionTier


class SubscriptionPublic(BaseModel):
    therapist_id: int
    tier: str
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool

    class Config:
        from_attributes = True


class AuditLogPublic(BaseModel):
    id: int
    user_id: int
    user_role: Optional[str] = None
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    details: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DemoRequestCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    practice_name: Optional[str] = Field(None, max_length=255)
    practice_size: Optional[str] = Field(None, max_length=64)
    message: Optional[str] = None


class DemoRequestPublic(BaseModel):
    id: int
    name: str
    email: str
    practice_name: Optional[str] = None
    practice_size: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
