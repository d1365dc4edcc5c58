"""
skillswap.api.routes.users — Member search, profiles & matching
=================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from skillswap.api.deps import get_config, get_current_user, get_engine, get_hub
from skillswap.config import SkillSwapConfig
from skillswap.database.models import User
from skillswap.engine.live import LiveQueryHub
from skillswap.engine.records import (
    Availability,
    Proficiency,
    Skill,
    feedback_view,
    profile_view,
)
from skillswap.services import badge_service, feedback_service, user_service

router = APIRouter(prefix="/users", tags=["users"])

# Contact and moderation details other members do not see
_PRIVATE_FIELDS = {
    "email": True,
    "ban_reason": True,
    "skills_offered": {"__all__": {"rejection_reason"}},
}


class ProfileUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    photo_url: str | None = None
    location: str | None = None
    skills_offered: list[Skill] | None = None
    skills_wanted: list[Skill] | None = None
    availability: Availability | None = None
    is_public: bool | None = None


def _public(user: User) -> dict:
    return profile_view(user).model_dump(mode="json", exclude=_PRIVATE_FIELDS)


@router.get("/search")
def search_users(
    q: str | None = Query(None, max_length=100),
    category: str | None = Query(None),
    location: str | None = Query(None),
    min_level: Proficiency | None = Query(None),
    limit: int | None = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    cfg: SkillSwapConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    """Public members matching the filters, highest trust score first."""
    users = user_service.search_users(
        engine,
        user.id,
        term=q,
        category=category,
        location=location,
        min_level=min_level,
        limit=limit or cfg.search_page_size,
    )
    return {"users": [_public(u) for u in users], "total": len(users)}


@router.get("/matches")
def suggested_matches(
    limit: int = Query(3, ge=1, le=20),
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
):
    matches = user_service.suggest_matches(engine, user.id, limit=limit)
    return {"users": [_public(u) for u in matches]}


@router.patch("/me")
def update_me(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    """Edit the caller's own profile.  Only the fields sent are changed."""
    changes = {
        key: getattr(body, key)
        for key in body.model_fields_set
        if getattr(body, key) is not None or key in ("photo_url", "location")
    }
    if not changes:
        return profile_view(user)
    updated = user_service.update_profile(engine, user.id, hub=hub, **changes)
    if updated is None:
        raise HTTPException(404, "User not found")
    if badge_service.check_and_award_badges(engine, user.id, hub=hub):
        updated = user_service.get_user(engine, user.id)
    return profile_view(updated)


@router.get("/{user_id}")
def get_profile(
    user_id: str,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
):
    target = user_service.get_user(engine, user_id)
    if target is None or (
        target.id != user.id and (not target.is_public or target.is_banned)
    ):
        raise HTTPException(404, "User not found")
    if target.id == user.id:
        return profile_view(target)
    return _public(target)


@router.get("/{user_id}/feedback")
def feedback_received(
    user_id: str,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
):
    rows = feedback_service.list_for_user(engine, user_id)
    return {"feedback": [feedback_view(f) for f in rows], "total": len(rows)}
