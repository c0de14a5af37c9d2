from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Request, status

from therabridge.api.deps import get_current_client
from therabridge.models import User, ClientProfile, utcnow
from therabridge.repository import Repository, get_repository
from therabridge.schemas import (
    OnboardingStatus, TherapistProfileUpdate, ClaimInviteReq, SuccessResp,
    TherapistProfilePublic, ClientProfilePublic,
)
from therabridge.services.ai_summaries import as_utc
from therabridge.services.audit import record_audit
from therabridge.services.auth_service import get_current_user

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("/status", response_model=OnboardingStatus)
async def get_status(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    if current_user.role == "therapist":
        therapist = await repo.get_therapist_by_user_id(current_user.id)
        profile = TherapistProfilePublic.model_validate(therapist).model_dump(mode="json") if therapist else None
        return OnboardingStatus(role="therapist", has_profile=therapist is not None, profile=profile)
    if current_user.role == "client":
        client = await repo.get_client_by_user_id(current_user.id)
        profile = ClientProfilePublic.model_validate(client).model_dump(mode="json") if client else None
        return OnboardingStatus(role="client", has_profile=client is not None, profile=profile)
    return OnboardingStatus(role=current_user.role, has_profile=False, profile=None)


@router.post("/therapist", response_model=SuccessResp)
async def become_therapist(
    req: TherapistProfileUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    if current_user.role == "client":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Client accounts cannot become therapists.")

    prior_role = current_user.role
    if prior_role != "admin":
        current_user.role = "therapist"
    await repo.upsert_therapist_profile(current_user.id, **req.model_dump(exclude_none=True))
    await repo.commit()

    await record_audit(repo, current_user, "BECOME_THERAPIST", details={"prior_role": prior_role}, request=request)
    return SuccessResp()


@router.post("/claim-invite", response_model=SuccessResp)
async def claim_invite(
    req: ClaimInviteReq,
    request: Request,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    profile = await repo.get_client_by_invite_token(req.token)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid or expired invite token.")
    if profile.invite_token_expiry and as_utc(profile.invite_token_expiry) < utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invite token has expired.")
    if current_user.role in ("therapist", "admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Therapist accounts cannot claim client invites.")

    existing = await repo.get_client_by_user_id(current_user.id)
    if existing is not None and existing.id != profile.id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This account already has a client profile.")

    profile_id = profile.id
    profile.user_id = current_user.id
    profile.invite_token = None
    profile.invite_token_expiry = None
    current_user.role = "client"
    await repo.commit()

    await record_audit(repo, current_user, "CLAIM_INVITE", "client_profile", profile_id, request=request)
    return SuccessResp()


@router.post("/client/complete", response_model=SuccessResp)
async def complete_client_onboarding(
    request: Request,
    profile: ClientProfile = Depends(get_current_client),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    profile_id = profile.id
    profile.onboarding_complete = True
    await repo.commit()

    await record_audit(repo, current_user, "COMPLETE_ONBOARDING", "client_profile", profile_id, request=request)
    return SuccessResp()
