from __future__ import annotations
from fastapi import Depends, HTTPException, status

from therabridge.models import User
from therabridge.services.auth_service import get_current_user

ANY_ROLE = "any"


def authorize(required_role: str, actual_role: str) -> bool:
    """True when a caller with `actual_role` may use an endpoint that needs `required_role`. Admins pass every guard."""
    if actual_role == "admin":
        return True
    if required_role == ANY_ROLE:
        return True
    return required_role == actual_role


def require_role(required_role: str):
    """Build a dependency that returns the current user or raises 403."""

    async def guard(current_user: User = Depends(get_current_user)) -> User:
        if not authorize(required_role, current_user.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{required_role.capitalize()} access required.",
            )
        return current_user

    return guard


require_therapist = require_role("therapist")
require_client = require_role("client")
require_admin = require_role("admin")
