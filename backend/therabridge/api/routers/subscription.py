from __future__ import annotations
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger

from therabridge.api.deps import get_current_therapist
from therabridge.config import PLAN_MAX_CLIENTS, SUBSCRIPTION_PERIOD_DAYS
from therabridge.models import User, TherapistProfile, utcnow
from therabridge.repository import Repository, get_repository
from therabridge.schemas import SubscriptionPublic, UpgradeReq, TherapistProfilePublic
from therabridge.services.audit import record_audit
from therabridge.services.permissions import require_therapist

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("", response_model=Optional[SubscriptionPublic])
async def get_subscription(
    current_user: User = Depends(require_therapist),
    repo: Repository = Depends(get_repository),
):
    therapist = await repo.get_therapist_by_user_id(current_user.id)
    if therapist is None:
        return None
    return await repo.get_subscription(therapist.id)


@router.post("/upgrade", response_model=TherapistProfilePublic)
async def upgrade_subscription(
    req: UpgradeReq,
    request: Request,
    current_user: User = Depends(require_therapist),
    therapist: TherapistProfile = Depends(get_current_therapist),
    repo: Repository = Depends(get_repository),
):
    tier = req.tier.value
    start = utcnow()
    await repo.upsert_subscription(
        therapist.id,
        tier=tier,
        status="active",
        current_period_start=start,
        current_period_end=start + timedelta(days=SUBSCRIPTION_PERIOD_DAYS),
    )
    therapist.subscription_tier = tier
    therapist.subscription_status = "active"
    therapist.max_clients = PLAN_MAX_CLIENTS[tier]
    await repo.commit()
    out = TherapistProfilePublic.model_validate(therapist)
    logger.info(f"Subscription changed: therapist_id={therapist.id} tier={tier} max_clients={out.max_clients}")

    await record_audit(
        repo, current_user, "UPGRADE_SUBSCRIPTION", "subscription", therapist.id,
        details={"tier": tier}, request=request,
    )
    return out
