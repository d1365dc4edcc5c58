"""
skillswap.api.routes.notifications — Inbox endpoints
======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from skillswap.api.deps import get_current_user, get_engine, get_hub
from skillswap.database.models import User
from skillswap.engine.live import LiveQueryHub
from skillswap.engine.records import notification_view
from skillswap.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    limit: int | None = Query(None, ge=1, le=500),
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
):
    rows = notification_service.list_notifications(engine, user.id, limit=limit)
    return {
        "notifications": [notification_view(n) for n in rows],
        "unread": notification_service.unread_count(engine, user.id),
    }


@router.post("/read-all")
def read_all(
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    changed = notification_service.mark_all_read(engine, user.id, hub=hub)
    return {"updated": changed}


@router.post("/{notification_id}/read")
def read_one(
    notification_id: str,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    row = notification_service.mark_read(engine, notification_id, user.id, hub=hub)
    if row is None:
        raise HTTPException(404, "Notification not found")
    return notification_view(row)
