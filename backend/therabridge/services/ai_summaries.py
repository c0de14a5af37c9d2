from __future__ import annotations
from datetime import datetime, timezone
from typing import NamedTuple, Optional, Sequence

from loguru import logger

from therabridge.models import AiSummary, ClientProfile
from therabridge.repository import Repository
from therabridge.schemas import Modality
from therabridge.services.llm_client import LLMClient
from therabridge.services.prompts import (
    EventPoint, HomeworkPoint, MoodPoint,
    build_post_session_prompt, build_reflection_prompt, build_session_prep_prompt,
    session_prep_system_prompt, system_prompt_for,
)

REFLECTION_FALLBACK = "Unable to generate reflection prompts at this time. Please try again later."
SESSION_PREP_FALLBACK = "Unable to generate session summary at this time."
POST_SESSION_FALLBACK = "Unable to generate post-session summary at this time."

DEFAULT_DAYS_SINCE_SESSION = 7


class Generated(NamedTuple):
    text: str
    tokens_used: Optional[int]
    user_prompt: str


def as_utc(dt: datetime) -> datetime:
    # SQLite hands timestamps back naive; everything is stored in UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def days_since_last_session(latest_mood_at: Optional[datetime], now: datetime) -> int:
    """Whole days since the most recent mood entry; 7 when the client has none."""
    if latest_mood_at is None:
        return DEFAULT_DAYS_SINCE_SESSION
    return int((as_utc(now) - as_utc(latest_mood_at)).total_seconds() // 86400)


async def _run(llm: LLMClient, system_prompt: str, user_prompt: str, fallback: str) -> Generated:
    result = await llm.complete(
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        fallback=fallback,
    )
    return Generated(result.text, result.tokens_used, user_prompt)


async def generate_reflection_prompt(
    llm: LLMClient,
    modality: Modality | str,
    recent_mood_scores: Sequence[int],
    recent_events: Sequence[str],
    client_goals: Sequence[str],
) -> Generated:
    user_prompt = build_reflection_prompt(modality, recent_mood_scores, recent_events, client_goals)
    return await _run(llm, system_prompt_for(modality), user_prompt, REFLECTION_FALLBACK)


async def generate_session_prep_summary(
    llm: LLMClient,
    modality: Modality | str,
    client_name: str,
    recent_mood_data: Sequence[MoodPoint],
    recent_events: Sequence[EventPoint],
    homework_status: Sequence[HomeworkPoint],
    active_goals: Sequence[str],
    days_since_last_session: int,
) -> Generated:
    user_prompt = build_session_prep_prompt(
        modality, client_name, recent_mood_data, recent_events,
        homework_status, active_goals, days_since_last_session,
    )
    return await _run(llm, session_prep_system_prompt(modality), user_prompt, SESSION_PREP_FALLBACK)


async def generate_post_session_summary(
    llm: LLMClient,
    modality: Modality | str,
    session_notes: str,
    homework_assigned: Sequence[str],
    goals_worked_on: Sequence[str],
    next_session_date: Optional[str] = None,
) -> Generated:
    user_prompt = build_post_session_prompt(
        modality, session_notes, homework_assigned, goals_worked_on, next_session_date
    )
    return await _run(llm, system_prompt_for(modality), user_prompt, POST_SESSION_FALLBACK)


async def save_summary(
    repo: Repository,
    client: ClientProfile,
    summary_type: str,
    generated: Generated,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> AiSummary:
    """Store one immutable AiSummary row for the client's owning therapist (flushed, not committed)."""
    summary = await repo.add_ai_summary(
        client_id=client.id,
        therapist_id=client.therapist_id,
        summary_type=summary_type,
        content=generated.text,
        modality=client.primary_modality,
        data_window_start=window_start,
        data_window_end=window_end,
        tokens_used=generated.tokens_used,
    )
    logger.info(
        f"AI summary stored: type={summary_type} client_id={client.id} "
        f"modality={client.primary_modality} tokens={generated.tokens_used}"
    )
    return summary
