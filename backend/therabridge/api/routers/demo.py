from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, status
from loguru import logger

from therabridge.models import User
from therabridge.repository import Repository, get_repository
from therabridge.schemas import DemoRequestCreate, DemoRequestPublic, SuccessResp
from therabridge.services.permissions import require_admin

router = APIRouter(prefix="/demo", tags=["demo"])


@router.post("", response_model=SuccessResp, status_code=status.HTTP_201_CREATED)
async def submit_demo_request(req: DemoRequestCreate, repo: Repository = Depends(get_repository)):
    # public: no account needed to ask for a demo
    demo = await repo.add_demo_request(**req.model_dump())
    demo_id = demo.id
    await repo.commit()
    logger.info(f"Demo request received: demo_request_id={demo_id}")
    return SuccessResp()


@router.get("", response_model=List[DemoRequestPublic])
async def list_demo_requests(
    current_user: User = Depends(require_admin),
    repo: Repository = Depends(get_repository),
):
    return await repo.list_demo_requests()
