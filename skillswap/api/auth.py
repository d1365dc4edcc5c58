"""
skillswap.api.auth — Email/password login + JWT issuance
==========================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from skillswap.api.deps import (
    get_config,
    get_current_user,
    get_engine,
    get_hub,
    issue_token,
)
from skillswap.config import SkillSwapConfig
from skillswap.database.models import User
from skillswap.engine.live import LiveQueryHub
from skillswap.engine.records import profile_view
from skillswap.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterBody(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str


class LoginBody(BaseModel):
    email: str
    password: str


def _session_payload(user: User, cfg: SkillSwapConfig) -> dict:
    return {
        "token": issue_token(user, ttl_hours=cfg.token_ttl_hours),
        "token_type": "bearer",
        "user": profile_view(user),
    }


@router.post("/register", status_code=201)
def register(
    body: RegisterBody,
    cfg: SkillSwapConfig = Depends(get_config),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    """Create an account and sign it in.  Errors surface as AuthError copy."""
    user = user_service.register_user(
        engine,
        name=body.name,
        email=body.email,
        password=body.password,
        trust_score=cfg.default_trust_score,
        hub=hub,
    )
    return _session_payload(user, cfg)


@router.post("/login")
def login(
    body: LoginBody,
    cfg: SkillSwapConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    user = user_service.authenticate(engine, email=body.email, password=body.password)
    logger.info("User %s signed in", user.id)
    return _session_payload(user, cfg)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    """Return the signed-in member's full profile."""
    return profile_view(user)
