"""
skillswap.api.routes.admin — Moderation endpoints (admin JWT)
===============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from skillswap.api.deps import get_current_admin, get_engine, get_hub
from skillswap.database.models import ReportStatus, User, UserRole
from skillswap.engine.live import LiveQueryHub
from skillswap.engine.records import profile_view, report_view
from skillswap.services import (
    admin_service,
    export_service,
    feedback_service,
    notification_service,
)
from skillswap.services.log_buffer import (
    VALID_LEVELS,
    get_current_level,
    get_logs,
    set_capture_level,
)

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class BanBody(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class RoleBody(BaseModel):
    role: UserRole


class RejectSkillBody(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class PointsBody(BaseModel):
    points: int = Field(gt=0, le=1000)
    reason: str = Field(min_length=1, max_length=200)


class ResolveBody(BaseModel):
    status: ReportStatus


class PlatformMessage(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=4000)
    user_ids: list[str] | None = None


class LevelBody(BaseModel):
    level: str


def _user_found(user: User | None) -> dict:
    if user is None:
        raise HTTPException(404, "User not found")
    return profile_view(user)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------
@router.get("/users")
def list_users(admin: User = Depends(get_current_admin), engine=Depends(get_engine)):
    users = admin_service.list_users(engine)
    return {"users": [profile_view(u) for u in users], "total": len(users)}


@router.post("/users/{user_id}/ban")
def ban_user(
    user_id: str,
    body: BanBody,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    if user_id == admin.id:
        raise HTTPException(422, "You cannot ban yourself.")
    return _user_found(admin_service.ban_user(
        engine, user_id, body.reason, admin_id=admin.id, hub=hub,
    ))


@router.post("/users/{user_id}/unban")
def unban_user(
    user_id: str,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _user_found(admin_service.unban_user(engine, user_id, admin_id=admin.id, hub=hub))


@router.put("/users/{user_id}/role")
def change_role(
    user_id: str,
    body: RoleBody,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _user_found(admin_service.set_role(
        engine, user_id, body.role, admin_id=admin.id, hub=hub,
    ))


@router.post("/users/{user_id}/points")
def award_points(
    user_id: str,
    body: PointsBody,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _user_found(feedback_service.award_points(
        engine, user_id, body.points, body.reason, hub=hub,
    ))


# ---------------------------------------------------------------------------
# Skill descriptions
# ---------------------------------------------------------------------------
def _skill_reviewed(review, *args, **kwargs) -> dict:
    try:
        user = review(*args, **kwargs)
    except admin_service.NothingToReviewError as exc:
        raise HTTPException(422, str(exc))
    if user is None:
        raise HTTPException(404, "Skill not found")
    return profile_view(user)


@router.post("/users/{user_id}/skills/{skill_id}/approve")
def approve_skill_description(
    user_id: str,
    skill_id: str,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _skill_reviewed(
        admin_service.approve_skill_description,
        engine, user_id, skill_id, admin_id=admin.id, hub=hub,
    )


@router.post("/users/{user_id}/skills/{skill_id}/reject")
def reject_skill_description(
    user_id: str,
    skill_id: str,
    body: RejectSkillBody,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _skill_reviewed(
        admin_service.reject_skill_description,
        engine, user_id, skill_id, body.reason, admin_id=admin.id, hub=hub,
    )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
@router.get("/reports")
def list_reports(
    status: ReportStatus | None = Query(None),
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    rows = admin_service.list_reports(engine, status=status)
    return {"reports": [report_view(r) for r in rows], "total": len(rows)}


@router.post("/reports/{report_id}/resolve")
def resolve_report(
    report_id: str,
    body: ResolveBody,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    try:
        row = admin_service.resolve_report(engine, report_id, body.status, admin.id, hub=hub)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    if row is None:
        raise HTTPException(404, "Report not found")
    return report_view(row)


# ---------------------------------------------------------------------------
# Platform
# ---------------------------------------------------------------------------
@router.post("/messages")
def send_platform_message(
    body: PlatformMessage,
    admin: User = Depends(get_current_admin),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    sent = notification_service.broadcast(
        engine, title=body.title, message=body.message, user_ids=body.user_ids, hub=hub,
    )
    return {"sent": sent}


@router.get("/stats")
def stats(admin: User = Depends(get_current_admin), engine=Depends(get_engine)):
    return admin_service.platform_stats(engine).to_dict()


@router.get("/export/users.csv")
def export_users(admin: User = Depends(get_current_admin), engine=Depends(get_engine)):
    return Response(
        content=export_service.export_users_csv(engine),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="users.csv"'},
    )


@router.get("/export/swaps.csv")
def export_swaps(admin: User = Depends(get_current_admin), engine=Depends(get_engine)):
    return Response(
        content=export_service.export_swaps_csv(engine),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="swaps.csv"'},
    )


# ---------------------------------------------------------------------------
# Live Logs
# ---------------------------------------------------------------------------
@router.get("/logs")
def get_live_logs(
    tail: int = Query(200, ge=1, le=5000),
    level: str | None = Query(None),
    logger_filter: str | None = Query(None, alias="logger"),
    admin: User = Depends(get_current_admin),
):
    """Recent entries from the in-memory log buffer."""
    entries = get_logs(tail=tail, level=level, logger_filter=logger_filter)
    return {
        "entries": entries,
        "total": len(entries),
        "capture_level": get_current_level(),
        "valid_levels": list(VALID_LEVELS),
    }


@router.put("/logs/level")
def change_log_level(body: LevelBody, admin: User = Depends(get_current_admin)):
    level_name = body.level.upper()
    if level_name not in VALID_LEVELS:
        raise HTTPException(400, detail=f"Invalid level. Must be one of: {', '.join(VALID_LEVELS)}")
    return {"level": set_capture_level(level_name)}
