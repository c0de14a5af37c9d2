from __future__ import annotations
from fastapi import Depends, HTTPException, Request, status

from therabridge.models import User, TherapistProfile, ClientProfile
from therabridge.repository import Repository, get_repository
from therabridge.services.llm_client import LLMClient
from therabridge.services.permissions import require_therapist, require_client


def get_llm(request: Request) -> LLMClient:
    return request.app.state.llm


async def get_current_therapist(
    current_user: User = Depends(require_therapist),
    repo: Repository = Depends(get_repository),
) -> TherapistProfile:
    therapist = await repo.get_therapist_by_user_id(current_user.id)
    if therapist is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist profile not found.")
    return therapist


async def get_current_client(
    current_user: User = Depends(require_client),
    repo: Repository = Depends(get_repository),
) -> ClientProfile:
    profile = await repo.get_client_by_user_id(current_user.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client profile not found.")
    return profile


async def get_owned_client(
    client_id: int,
    therapist: TherapistProfile,
    repo: Repository,
) -> ClientProfile:
    """The client if it belongs to `therapist`, else 403. Missing and foreign clients look the same."""
    client = await repo.get_client_for_therapist(client_id, therapist.id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    return client
