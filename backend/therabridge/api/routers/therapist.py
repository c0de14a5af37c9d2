from __future__ import annotations
import secrets
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger

from therabridge.api.deps import get_current_therapist, get_llm, get_owned_client
from therabridge.config import INVITE_TOKEN_TTL_DAYS
from therabridge.models import User, TherapistProfile, utcnow
from therabridge.repository import Repository, get_repository
from therabridge.schemas import (
    TherapistProfileUpdate, TherapistProfilePublic, ClientListItem,
    ClientProfilePublic, InviteClientReq, InviteClientResp, ClientDetail, UserPublic,
    UpdateClientModalityReq, SummaryResp, PostSessionReq, AiSummaryPublic, SummaryType,
    GoalCreate, GoalUpdate, GoalPublic, HomeworkCreate, HomeworkReviewReq, HomeworkPublic,
    MoodPublic, EmotionalEventPublic, CheckInPublic,
)
from therabridge.services.ai_summaries import (
    days_since_last_session, generate_post_session_summary, generate_session_prep_summary,
    save_summary,
)
from therabridge.services.audit import record_audit
from therabridge.services.llm_client import LLMClient
from therabridge.services.permissions import require_therapist
from therabridge.services.workflow import InvalidTransition, check_goal_transition

router = APIRouter(prefix="/therapist", tags=["therapist"])

SESSION_PREP_WINDOW = timedelta(days=14)
SESSION_PREP_EVENT_LIMIT = 10
OPEN_HOMEWORK = ("assigned", "in_progress")


def seat_limit_message(therapist: TherapistProfile) -> str:
    return (
        f"Your {therapist.subscription_tier} plan allows a maximum of "
        f"{therapist.max_clients} clients. Please upgrade to add more."
    )


async def ensure_seat_available(therapist: TherapistProfile, repo: Repository) -> None:
    active = await repo.count_active_clients(therapist.id)
    if active >= therapist.max_clients:
        logger.info(f"Seat limit reached: therapist_id={therapist.id} active={active} max={therapist.max_clients}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=seat_limit_message(therapist))


# --- profile ---
@router.get("/profile", response_model=TherapistProfilePublic)
async def get_profile(therapist: TherapistProfile = Depends(get_current_therapist)):
    return therapist


@router.put("/profile", response_model=TherapistProfilePublic)
async def update_profile(
    req: TherapistProfileUpdate,
    request: Request,
    current_user: User = Depends(require_therapist),
    repo: Repository = Depends(get_repository),
):
    profile = await repo.upsert_therapist_profile(current_user.id, **req.model_dump(exclude_unset=True))
    await repo.commit()
    out = TherapistProfilePublic.model_validate(profile)

    await record_audit(repo, current_user, "UPDATE_PROFILE", "therapist_profile", out.id, request=request)
    return out


# --- clients ---
@router.get("/clients", response_model=List[ClientListItem])
async def list_clients(
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    rows = await repo.list_clients_for_therapist(therapist.id)
    return [
        ClientListItem(
            **ClientProfilePublic.model_validate(profile).model_dump(),
            name=user.name,
            email=user.email,
        )
        for profile, user in rows
    ]


@router.post("/clients/invite", response_model=InviteClientResp, status_code=status.HTTP_201_CREATED)
async def invite_client(
    req: InviteClientReq,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    await ensure_seat_available(therapist, repo)

    if await repo.get_user_by_email(req.client_email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A user with this email already exists.")

    token = secrets.token_urlsafe(24)
    placeholder = await repo.create_user(
        email=req.client_email,
        role="client",
        name=req.client_email.split("@")[0],
    )
    profile = await repo.create_client_profile(
        user_id=placeholder.id,
        therapist_id=therapist.id,
        primary_modality=req.primary_modality.value,
        treatment_goals_summary=req.treatment_goals_summary,
        session_frequency=req.session_frequency,
        invite_token=token,
        invite_token_expiry=utcnow() + timedelta(days=INVITE_TOKEN_TTL_DAYS),
    )
    profile_id = profile.id
    await repo.commit()
    logger.info(f"Client invited: therapist_id={therapist.id} client_id={profile_id}")

    await record_audit(
        repo, current_user, "INVITE_CLIENT", "client_profile", profile_id,
        details={"email": req.client_email}, request=request,
    )
    return InviteClientResp(invite_token=token)


@router.get("/clients/{client_id}", response_model=ClientDetail)
async def get_client_detail(
    client_id: int,
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    client = await get_owned_client(client_id, therapist, repo)
    user = await repo.get_user(client.user_id)
    return ClientDetail(
        client=ClientProfilePublic.model_validate(client),
        user=UserPublic.model_validate(user) if user else None,
        goals=[GoalPublic.model_validate(g) for g in await repo.list_goals(client.id)],
        recent_mood=[MoodPublic.model_validate(m) for m in await repo.list_mood_entries(client.id, limit=7)],
        recent_events=[EmotionalEventPublic.model_validate(e) for e in await repo.list_emotional_events(client.id, limit=5)],
        homework=[HomeworkPublic.model_validate(h) for h in await repo.list_homework(client.id)],
        check_ins=[CheckInPublic.model_validate(c) for c in await repo.list_check_ins(client.id, limit=5)],
    )


@router.patch("/clients/{client_id}/modality", response_model=ClientProfilePublic)
async def update_client_modality(
    client_id: int,
    req: UpdateClientModalityReq,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    client = await get_owned_client(client_id, therapist, repo)

    if req.is_active and not client.is_active:
        await ensure_seat_available(therapist, repo)

    prior_modality = client.primary_modality
    client.primary_modality = req.modality.value
    if req.treatment_goals_summary is not None:
        client.treatment_goals_summary = req.treatment_goals_summary
    if req.session_frequency is not None:
        client.session_frequency = req.session_frequency
    if req.is_active is not None:
        client.is_active = req.is_active
    await repo.commit()
    out = ClientProfilePublic.model_validate(client)

    await record_audit(
        repo, current_user, "UPDATE_CLIENT_MODALITY", "client_profile", client_id,
        details={"from": prior_modality, "to": req.modality.value}, request=request,
    )
    return out


# --- AI summaries ---
@router.post("/clients/{client_id}/session-prep", response_model=SummaryResp)
async def generate_session_prep(
    client_id: int,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
    llm: LLMClient = Depends(get_llm),
):
    # ownership first: nothing is read or generated for a foreign client
    client = await get_owned_client(client_id, therapist, repo)
    client_user = await repo.get_user(client.user_id)

    window_end = utcnow()
    window_start = window_end - SESSION_PREP_WINDOW
    moods = await repo.list_mood_entries_between(client.id, window_start, window_end)
    events = await repo.list_emotional_events(client.id, limit=SESSION_PREP_EVENT_LIMIT)
    homework = await repo.list_homework(client.id)
    goals = await repo.list_goals(client.id)
    latest = await repo.latest_mood_entry(client.id)

    generated = await generate_session_prep_summary(
        llm,
        client.primary_modality,
        client_name=(client_user.name if client_user and client_user.name else "Client"),
        recent_mood_data=[
            {"score": m.mood_score, "date": m.recorded_at.date().isoformat(), "notes": m.notes}
            for m in moods
        ],
        recent_events=[
            {"type": e.event_type, "intensity": e.intensity, "description": e.description,
             "date": e.occurred_at.date().isoformat()}
            for e in events
        ],
        homework_status=[
            {"title": h.title, "status": h.status, "completion_notes": h.completion_notes}
            for h in homework
        ],
        active_goals=[g.goal_text for g in goals if g.status == "active"],
        days_since_last_session=days_since_last_session(latest.recorded_at if latest else None, window_end),
    )

    summary = await save_summary(repo, client, "session_prep", generated, window_start, window_end)
    summary_id = summary.id
    await repo.commit()

    await record_audit(
        repo, current_user, "GENERATE_SESSION_PREP", "ai_summary", summary_id,
        details={"client_id": client_id}, request=request,
    )
    return SummaryResp(summary=generated.text)


@router.post("/clients/{client_id}/post-session", response_model=SummaryResp)
async def generate_post_session(
    client_id: int,
    req: PostSessionReq,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
    llm: LLMClient = Depends(get_llm),
):
    client = await get_owned_client(client_id, therapist, repo)
    homework = await repo.list_homework(client.id)
    goals = await repo.list_goals(client.id)

    generated = await generate_post_session_summary(
        llm,
        client.primary_modality,
        session_notes=req.session_notes,
        homework_assigned=[h.title for h in homework if h.status in OPEN_HOMEWORK],
        goals_worked_on=[g.goal_text for g in goals if g.status == "active"],
        next_session_date=req.next_session_date,
    )

    summary = await save_summary(repo, client, "post_session", generated)
    summary_id = summary.id
    await repo.commit()

    await record_audit(
        repo, current_user, "GENERATE_POST_SESSION", "ai_summary", summary_id,
        details={"client_id": client_id}, request=request,
    )
    return SummaryResp(summary=generated.text)


@router.get("/clients/{client_id}/summaries", response_model=List[AiSummaryPublic])
async def list_summaries(
    client_id: int,
    summary_type: Optional[SummaryType] = None,
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    client = await get_owned_client(client_id, therapist, repo)
    return await repo.list_ai_summaries(client.id, summary_type=summary_type, limit=10)


# --- goals ---
@router.post("/goals", response_model=GoalPublic, status_code=status.HTTP_201_CREATED)
async def create_goal(
    req: GoalCreate,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    client = await get_owned_client(req.client_id, therapist, repo)
    goal = await repo.add_goal(
        client_id=client.id,
        therapist_id=therapist.id,
        goal_text=req.goal_text,
        modality=req.modality.value,
        target_date=req.target_date,
    )
    await repo.commit()
    out = GoalPublic.model_validate(goal)

    await record_audit(
        repo, current_user, "CREATE_GOAL", "therapy_goal", out.id,
        details={"client_id": client.id}, request=request,
    )
    return out


@router.patch("/goals/{goal_id}", response_model=GoalPublic)
async def update_goal(
    goal_id: int,
    req: GoalUpdate,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    goal = await repo.get_goal_for_therapist(goal_id, therapist.id)
    if goal is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")

    if req.status is not None:
        try:
            check_goal_transition(goal.status, req.status)
        except InvalidTransition as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        if req.status == "achieved" and goal.status != "achieved":
            goal.achieved_at = utcnow()
        goal.status = req.status
    if req.progress_notes is not None:
        goal.progress_notes = req.progress_notes
    if req.goal_text is not None:
        goal.goal_text = req.goal_text
    await repo.commit()
    out = GoalPublic.model_validate(goal)

    await record_audit(
        repo, current_user, "UPDATE_GOAL", "therapy_goal", goal_id,
        details=req.model_dump(exclude_none=True, include={"status"}) or None, request=request,
    )
    return out


# --- homework ---
@router.post("/homework", response_model=HomeworkPublic, status_code=status.HTTP_201_CREATED)
async def create_homework(
    req: HomeworkCreate,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    client = await get_owned_client(req.client_id, therapist, repo)
    homework = await repo.add_homework(
        client_id=client.id,
        therapist_id=therapist.id,
        title=req.title,
        description=req.description,
        modality=req.modality.value,
        due_date=req.due_date,
    )
    await repo.commit()
    out = HomeworkPublic.model_validate(homework)

    await record_audit(
        repo, current_user, "CREATE_HOMEWORK", "homework", out.id,
        details={"client_id": client.id}, request=request,
    )
    return out


@router.post("/homework/{homework_id}/review", response_model=HomeworkPublic)
async def review_homework(
    homework_id: int,
    req: HomeworkReviewReq,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    homework = await repo.get_homework_for_therapist(homework_id, therapist.id)
    if homework is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")

    # review never moves the status
    homework.therapist_review_notes = req.review_notes
    homework.reviewed_at = utcnow()
    await repo.commit()
    out = HomeworkPublic.model_validate(homework)

    await record_audit(repo, current_user, "REVIEW_HOMEWORK", "homework", homework_id, request=request)
    return out
