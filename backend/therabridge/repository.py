from __future__ import annotations
from datetime import datetime
from typing import Any, Optional, Sequence

from fastapi import Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from therabridge.db import get_db
from therabridge.models import (
    User, TherapistProfile, ClientProfile, MoodEntry, EmotionalEvent, CheckIn,
    TherapyGoal, HomeworkAssignment, AiSummary, SubscriptionRecord, AuditLog, DemoRequest,
)


class Repository:
    """
    Data-access handle over one request's AsyncSession.

    Writes only add and flush; the caller decides when to commit. Therapist-side
    lookups take the caller's therapist id and filter on it in SQL, so a row
    owned by another therapist comes back as None exactly like a missing one.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _add(self, obj):
        self.session.add(obj)
        await self.session.flush()
        return obj

    # --- users ---
    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        res = await self.session.execute(select(User).where(User.email == email))
        return res.scalar_one_or_none()

    async def create_user(self, **values: Any) -> User:
        return await self._add(User(**values))

    # --- therapist profiles ---
    async def get_therapist_by_user_id(self, user_id: int) -> Optional[TherapistProfile]:
        res = await self.session.execute(
            select(TherapistProfile).where(TherapistProfile.user_id == user_id)
        )
        return res.scalar_one_or_none()

    async def upsert_therapist_profile(self, user_id: int, **values: Any) -> TherapistProfile:
        profile = await self.get_therapist_by_user_id(user_id)
        if profile is None:
            return await self._add(TherapistProfile(user_id=user_id, **values))
        for key, value in values.items():
            setattr(profile, key, value)
        await self.session.flush()
        return profile

    # --- client profiles ---
    async def get_client_by_user_id(self, user_id: int) -> Optional[ClientProfile]:
        res = await self.session.execute(
            select(ClientProfile).where(ClientProfile.user_id == user_id)
        )
        return res.scalar_one_or_none()

    async def get_client_for_therapist(self, client_id: int, therapist_id: int) -> Optional[ClientProfile]:
        res = await self.session.execute(
            select(ClientProfile).where(
                ClientProfile.id == client_id,
                ClientProfile.therapist_id == therapist_id,
            )
        )
        return res.scalar_one_or_none()

    async def get_client_by_invite_token(self, token: str) -> Optional[ClientProfile]:
        res = await self.session.execute(
            select(ClientProfile).where(ClientProfile.invite_token == token)
        )
        return res.scalar_one_or_none()

    async def list_clients_for_therapist(self, therapist_id: int) -> Sequence[tuple[ClientProfile, User]]:
        q = (
            select(ClientProfile, User)
            .join(User, ClientProfile.user_id == User.id)
            .where(ClientProfile.therapist_id == therapist_id)
            .order_by(ClientProfile.created_at.desc(), ClientProfile.id.desc())
        )
        return (await self.session.execute(q)).tuples().all()

    async def count_active_clients(self, therapist_id: int) -> int:
        q = select(func.count(ClientProfile.id)).where(
            ClientProfile.therapist_id == therapist_id,
            ClientProfile.is_active.is_(True),
        )
        return (await self.session.execute(q)).scalar_one()

    async def create_client_profile(self, **values: Any) -> ClientProfile:
        return await self._add(ClientProfile(**values))

    # --- mood ---
    async def add_mood_entry(self, client_id: int, **values: Any) -> MoodEntry:
        return await self._add(MoodEntry(client_id=client_id, **values))

    async def list_mood_entries(self, client_id: int, limit: int = 30) -> Sequence[MoodEntry]:
        q = (
            select(MoodEntry)
            .where(MoodEntry.client_id == client_id)
            .order_by(MoodEntry.recorded_at.desc(), MoodEntry.id.desc())
            .limit(limit)
        )
        return (await self.session.execute(q)).scalars().all()

    async def list_mood_entries_between(self, client_id: int, start: datetime, end: datetime) -> Sequence[MoodEntry]:
        q = (
            select(MoodEntry)
            .where(
                MoodEntry.client_id == client_id,
                MoodEntry.recorded_at >= start,
                MoodEntry.recorded_at <= end,
            )
            .order_by(MoodEntry.recorded_at.desc(), MoodEntry.id.desc())
        )
        return (await self.session.execute(q)).scalars().all()

    async def latest_mood_entry(self, client_id: int) -> Optional[MoodEntry]:
        entries = await self.list_mood_entries(client_id, limit=1)
        return entries[0] if entries else None

    # --- emotional events ---
    async def add_emotional_event(self, client_id: int, **values: Any) -> EmotionalEvent:
        return await self._add(EmotionalEvent(client_id=client_id, **values))

    async def list_emotional_events(self, client_id: int, limit: int = 20) -> Sequence[EmotionalEvent]:
        q = (
            select(EmotionalEvent)
            .where(EmotionalEvent.client_id == client_id)
            .order_by(EmotionalEvent.occurred_at.desc(), EmotionalEvent.id.desc())
            .limit(limit)
        )
        return (await self.session.execute(q)).scalars().all()

    # --- check-ins ---
    async def add_check_in(self, client_id: int, **values: Any) -> CheckIn:
        return await self._add(CheckIn(client_id=client_id, **values))

    async def list_check_ins(self, client_id: int, limit: int = 20) -> Sequence[CheckIn]:
        q = (
            select(CheckIn)
            .where(CheckIn.client_id == client_id)
            .order_by(CheckIn.completed_at.desc(), CheckIn.id.desc())
            .limit(limit)
        )
        return (await self.session.execute(q)).scalars().all()

    # --- goals ---
    async def add_goal(self, **values: Any) -> TherapyGoal:
        return await self._add(TherapyGoal(**values))

    async def list_goals(self, client_id: int) -> Sequence[TherapyGoal]:
        q = (
            select(TherapyGoal)
            .where(TherapyGoal.client_id == client_id)
            .order_by(TherapyGoal.created_at.desc(), TherapyGoal.id.desc())
        )
        return (await self.session.execute(q)).scalars().all()

    async def get_goal_for_therapist(self, goal_id: int, therapist_id: int) -> Optional[TherapyGoal]:
        q = (
            select(TherapyGoal)
            .join(ClientProfile, TherapyGoal.client_id == ClientProfile.id)
            .where(TherapyGoal.id == goal_id, ClientProfile.therapist_id == therapist_id)
        )
        return (await self.session.execute(q)).scalar_one_or_none()

    # --- homework ---
    async def add_homework(self, **values: Any) -> HomeworkAssignment:
        return await self._add(HomeworkAssignment(**values))

    async def list_homework(self, client_id: int) -> Sequence[HomeworkAssignment]:
        q = (
            select(HomeworkAssignment)
            .where(HomeworkAssignment.client_id == client_id)
            .order_by(HomeworkAssignment.created_at.desc(), HomeworkAssignment.id.desc())
        )
        return (await self.session.execute(q)).scalars().all()

    async def get_homework_for_therapist(self, homework_id: int, therapist_id: int) -> Optional[HomeworkAssignment]:
        q = (
            select(HomeworkAssignment)
            .join(ClientProfile, HomeworkAssignment.client_id == ClientProfile.id)
            .where(HomeworkAssignment.id == homework_id, ClientProfile.therapist_id == therapist_id)
        )
        return (await self.session.execute(q)).scalar_one_or_none()

    async def get_homework_for_client(self, homework_id: int, client_id: int) -> Optional[HomeworkAssignment]:
        q = select(HomeworkAssignment).where(
            HomeworkAssignment.id == homework_id,
            HomeworkAssignment.client_id == client_id,
        )
        return (await self.session.execute(q)).scalar_one_or_none()

    # --- AI summaries ---
    async def add_ai_summary(self, **values: Any) -> AiSummary:
        return await self._add(AiSummary(**values))

    async def list_ai_summaries(
        self, client_id: int, summary_type: Optional[str] = None, limit: int = 10
    ) -> Sequence[AiSummary]:
        q = select(AiSummary).where(AiSummary.client_id == client_id)
        if summary_type:
            q = q.where(AiSummary.summary_type == summary_type)
        q = q.order_by(AiSummary.created_at.desc(), AiSummary.id.desc()).limit(limit)
        return (await self.session.execute(q)).scalars().all()

    # --- subscriptions ---
    async def get_subscription(self, therapist_id: int) -> Optional[SubscriptionRecord]:
        res = await self.session.execute(
            select(SubscriptionRecord).where(SubscriptionRecord.therapist_id == therapist_id)
        )
        return res.scalar_one_or_none()

    async def upsert_subscription(self, therapist_id: int, **values: Any) -> SubscriptionRecord:
        record = await self.get_subscription(therapist_id)
        if record is None:
            return await self._add(SubscriptionRecord(therapist_id=therapist_id, **values))
        for key, value in values.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    # --- audit ---
    async def add_audit_log(self, **values: Any) -> AuditLog:
        return await self._add(AuditLog(**values))

    async def list_audit_logs(self, user_id: Optional[int] = None, limit: int = 50) -> Sequence[AuditLog]:
        q = select(AuditLog)
        if user_id is not None:
            q = q.where(AuditLog.user_id == user_id)
        q = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
        return (await self.session.execute(q)).scalars().all()

    # --- demo requests ---
    async def add_demo_request(self, **values: Any) -> DemoRequest:
        return await self._add(DemoRequest(**values))

    async def list_demo_requests(self) -> Sequence[DemoRequest]:
        q = select(DemoRequest).order_by(DemoRequest.created_at.desc(), DemoRequest.id.desc())
        return (await self.session.execute(q)).scalars().all()


async def get_repository(db: AsyncSession = Depends(get_db)) -> Repository:
    return Repository(db)
