from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends

from therabridge.models import User
from therabridge.repository import Repository, get_repository
from therabridge.schemas import AuditLogPublic
from therabridge.services.permissions import require_therapist

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=List[AuditLogPublic])
async def get_audit_logs(
    user_id: Optional[int] = None,
    current_user: User = Depends(require_therapist),
    repo: Repository = Depends(get_repository),
):
    # therapists only ever see their own trail; admins may look at anyone's, or everyone's
    if current_user.role == "admin":
        return await repo.list_audit_logs(user_id=user_id)
    return await repo.list_audit_logs(user_id=current_user.id)
