"""
onlytalk.api.auth — Registration, login & JWT issuance
=======================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from onlytalk.api.deps import create_access_token, get_config, get_current_user_id, get_engine
from onlytalk.api.serializers import user_dict
from onlytalk.config import OnlyTalkConfig
from onlytalk.database.models import User
from onlytalk.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterBody(BaseModel):
    username: str = Field(min_length=3, max_length=20)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginBody(BaseModel):
    username: str = Field(min_length=1, description="Username or email")
    password: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    avatar: str | None = Field(default=None, max_length=500)
    bio: str | None = None


def _token_response(user: User, cfg: OnlyTalkConfig) -> dict:
    token = create_access_token(user.id, user.username, user.role, cfg.token_ttl_hours)
    return {"token": token, "user": user_dict(user, private=True)}


@router.post("/register", status_code=201)
def register(
    body: RegisterBody,
    engine=Depends(get_engine),
    cfg: OnlyTalkConfig = Depends(get_config),
):
    user = user_service.register_user(
        engine, username=body.username, email=body.email, password=body.password,
    )
    return _token_response(user, cfg)


@router.post("/login")
def login(
    body: LoginBody,
    engine=Depends(get_engine),
    cfg: OnlyTalkConfig = Depends(get_config),
):
    user = user_service.authenticate(engine, body.username, body.password)
    logger.info("User %s logged in", user.id)
    return _token_response(user, cfg)


@router.get("/me")
def me(
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    """Return the caller's profile with a freshly derived level."""
    user = user_service.get_profile(engine, user_id)
    return {"user": user_dict(user, private=True)}


@router.patch("/me")
def update_me(
    body: ProfileUpdate,
    user_id: int = Depends(get_current_user_id),
    engine=Depends(get_engine),
):
    user = user_service.update_profile(engine, user_id, avatar=body.avatar, bio=body.bio)
    return {"user": user_dict(user, private=True)}
