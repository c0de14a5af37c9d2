from __future__ import annotations
import json
from typing import Any, Optional

from fastapi import Request
from loguru import logger

from therabridge.models import User
from therabridge.repository import Repository


async def record_audit(
    repo: Repository,
    user: User,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> None:
    """
    Append one audit row and commit it on its own.

    Call after the primary write is committed and after the response data has
    been read off any ORM objects: a failed audit write is logged and rolled
    back (which expires the session's instances), never raised.
    """
    user_id, user_role = user.id, user.role
    try:
        await repo.add_audit_log(
            user_id=user_id,
            user_role=user_role,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=json.dumps(details) if details is not None else None,
            ip_address=request.client.host if request is not None and request.client else None,
            user_agent=request.headers.get("user-agent", "")[:512] if request is not None else None,
        )
        await repo.commit()
    except Exception as e:
        logger.warning(f"Audit write failed (action={action}, user_id={user_id}): {type(e).__name__}: {e}")
        try:
            await repo.rollback()
        except Exception as rollback_error:
            logger.warning(f"Audit rollback failed: {type(rollback_error).__name__}")
