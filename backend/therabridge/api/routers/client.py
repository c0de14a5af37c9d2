from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger

from therabridge.api.deps import get_current_client, get_llm
from therabridge.models import User, ClientProfile, utcnow
from therabridge.repository import Repository, get_repository
from therabridge.schemas import (
    ClientProfilePublic, ClientDashboard, MoodCreate, MoodPublic,
    EmotionalEventCreate, EmotionalEventPublic, EmotionalEventResp,
    CheckInCreate, CheckInResp, HomeworkPublic, HomeworkStatusUpdate,
    GoalPublic, AiSummaryPublic, CheckInPublic,
)
from therabridge.services.ai_summaries import generate_reflection_prompt, save_summary
from therabridge.services.audit import record_audit
from therabridge.services.crisis import CRISIS_RESPONSE, detect_crisis_language, join_monitored_text
from therabridge.services.llm_client import LLMClient
from therabridge.services.permissions import require_client
from therabridge.services.workflow import InvalidTransition, check_homework_transition

router = APIRouter(prefix="/client", tags=["client"])


def _crisis_logged(client: ClientProfile, source: str) -> None:
    # the submitted text is never logged
    logger.warning(f"crisis.detected client_id={client.id} source={source}; submission not stored")


@router.get("/profile", response_model=ClientProfilePublic)
async def get_profile(profile: ClientProfile = Depends(get_current_client)):
    return profile


@router.get("/dashboard", response_model=ClientDashboard)
async def get_dashboard(
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    return ClientDashboard(
        profile=ClientProfilePublic.model_validate(profile),
        goals=[GoalPublic.model_validate(g) for g in await repo.list_goals(profile.id)],
        recent_mood=[MoodPublic.model_validate(m) for m in await repo.list_mood_entries(profile.id, limit=14)],
        homework=[HomeworkPublic.model_validate(h) for h in await repo.list_homework(profile.id)],
        recent_events=[EmotionalEventPublic.model_validate(e) for e in await repo.list_emotional_events(profile.id, limit=5)],
        recent_check_ins=[CheckInPublic.model_validate(c) for c in await repo.list_check_ins(profile.id, limit=3)],
    )


# --- mood ---
@router.post("/mood", response_model=MoodPublic, status_code=status.HTTP_201_CREATED)
async def log_mood(
    req: MoodCreate,
    request: Request,
    current_user: User = Depends(require_client),
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    entry = await repo.add_mood_entry(profile.id, **req.model_dump())
    await repo.commit()
    out = MoodPublic.model_validate(entry)

    await record_audit(repo, current_user, "LOG_MOOD", "mood_entry", out.id, request=request)
    return out


@router.get("/mood", response_model=List[MoodPublic])
async def get_mood_timeline(
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    return await repo.list_mood_entries(profile.id, limit=30)


# --- emotional events ---
@router.post("/events", response_model=EmotionalEventResp)
async def log_emotional_event(
    req: EmotionalEventCreate,
    request: Request,
    current_user: User = Depends(require_client),
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    text = join_monitored_text([req.description, req.triggers, req.coping_strategies_used])
    if detect_crisis_language(text):
        _crisis_logged(profile, "emotional_event")
        return EmotionalEventResp(crisis_detected=True, crisis_response=CRISIS_RESPONSE)

    event = await repo.add_emotional_event(profile.id, **req.model_dump())
    event_id = event.id
    await repo.commit()

    await record_audit(repo, current_user, "LOG_EMOTIONAL_EVENT", "emotional_event", event_id, request=request)
    return EmotionalEventResp(crisis_detected=False)


@router.get("/events", response_model=List[EmotionalEventPublic])
async def get_emotional_events(
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    return await repo.list_emotional_events(profile.id, limit=20)


# --- check-ins ---
@router.post("/check-ins", response_model=CheckInResp)
async def complete_check_in(
    req: CheckInCreate,
    request: Request,
    current_user: User = Depends(require_client),
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
    llm: LLMClient = Depends(get_llm),
):
    # every answer counts, empty ones included
    if detect_crisis_language(" ".join(req.responses.values())):
        _crisis_logged(profile, "check_in")
        return CheckInResp(crisis_detected=True, crisis_response=CRISIS_RESPONSE, ai_reflection=None)

    recent_mood = await repo.list_mood_entries(profile.id, limit=7)
    recent_events = await repo.list_emotional_events(profile.id, limit=5)
    goals = await repo.list_goals(profile.id)

    generated = await generate_reflection_prompt(
        llm,
        profile.primary_modality,
        recent_mood_scores=[m.mood_score for m in recent_mood],
        recent_events=[f"{e.event_type}: {e.description or ''}" for e in recent_events],
        client_goals=[g.goal_text for g in goals if g.status == "active"],
    )

    check_in = await repo.add_check_in(
        profile.id,
        check_in_type=req.check_in_type,
        responses=req.responses,
        mood_at_check_in=req.mood_at_check_in,
        ai_prompt_used=generated.user_prompt,
        ai_reflection_generated=generated.text,
        completed_at=utcnow(),
    )
    await save_summary(repo, profile, "reflection_prompt", generated)
    check_in_id = check_in.id
    await repo.commit()

    await record_audit(
        repo, current_user, "COMPLETE_CHECKIN", "check_in", check_in_id,
        details={"check_in_type": req.check_in_type}, request=request,
    )
    return CheckInResp(crisis_detected=False, ai_reflection=generated.text)


# --- homework ---
@router.get("/homework", response_model=List[HomeworkPublic])
async def get_homework(
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    return await repo.list_homework(profile.id)


@router.patch("/homework/{homework_id}", response_model=HomeworkPublic)
async def update_homework_status(
    homework_id: int,
    req: HomeworkStatusUpdate,
    request: Request,
    current_user: User = Depends(require_client),
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    homework = await repo.get_homework_for_client(homework_id, profile.id)
    if homework is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Homework not found.")

    try:
        check_homework_transition(homework.status, req.status)
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if req.status == "completed" and homework.status != "completed":
        homework.completed_at = utcnow()
    homework.status = req.status
    if req.completion_notes is not None:
        homework.completion_notes = req.completion_notes
    await repo.commit()
    out = HomeworkPublic.model_validate(homework)

    await record_audit(
        repo, current_user, "UPDATE_HOMEWORK", "homework", homework_id,
        details={"status": req.status}, request=request,
    )
    return out


# --- goals & reflections ---
@router.get("/goals", response_model=List[GoalPublic])
async def get_goals(
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    return await repo.list_goals(profile.id)


@router.get("/reflections", response_model=List[AiSummaryPublic])
async def get_reflection_prompts(
    profile: ClientProfile = Depends(get_current_client),
    repo: Repository = Depends(get_repository),
):
    return await repo.list_ai_summaries(profile.id, summary_type="reflection_prompt")
