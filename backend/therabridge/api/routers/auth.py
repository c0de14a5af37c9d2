import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from therabridge.models import User, utcnow
from therabridge.repository import Repository, get_repository
from therabridge.schemas import UserCreate, Token, UserPublic
from therabridge.services.ai_summaries import as_utc
from therabridge.services.audit import record_audit
from therabridge.services.auth_service import (
    create_access_token, verify_password, hash_password, get_current_user
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    user_in: UserCreate,
    request: Request,
    repo: Repository = Depends(get_repository),
):
    existing_user = await repo.get_user_by_email(user_in.email)
    if existing_user and existing_user.password_hash:
        raise HTTPException(status_code=400, detail="Email already registered.")

    claimed_profile_id = None
    if existing_user:
        # invite placeholder: only the holder of a pending invite token may take it over
        pending = await repo.get_client_by_user_id(existing_user.id)
        if pending is not None and pending.invite_token:
            if not user_in.invite_token:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="This email has a pending invite. Register with the invite token.",
                )
            if not secrets.compare_digest(user_in.invite_token.encode(), pending.invite_token.encode()):
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invite token does not match this email.")
            if pending.invite_token_expiry and as_utc(pending.invite_token_expiry) < utcnow():
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invite token has expired.")
            pending.invite_token = None
            pending.invite_token_expiry = None
            claimed_profile_id = pending.id

        existing_user.password_hash = hash_password(user_in.password)
        existing_user.name = user_in.name
        user = existing_user
    else:
        user = await repo.create_user(
            email=user_in.email,
            password_hash=hash_password(user_in.password),
            role=user_in.role,
            name=user_in.name,
        )
    user_id = user.id
    await repo.commit()
    logger.info(f"User registered: user_id={user_id}")

    if claimed_profile_id is not None:
        await record_audit(repo, user, "CLAIM_INVITE", "client_profile", claimed_profile_id, request=request)
    return {"message": "User created successfully", "user_id": user_id}


@router.post("/login", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    repo: Repository = Depends(get_repository),
):
    user = await repo.get_user_by_email(form_data.username)

    if not user or not user.password_hash or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role})
    user.last_signed_in = utcnow()
    await repo.commit()
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me", response_model=UserPublic)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user
