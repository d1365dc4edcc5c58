"""
skillswap.api.routes.reports — Member-filed abuse reports
===========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from skillswap.api.deps import get_current_user, get_engine, get_hub
from skillswap.database.models import User
from skillswap.engine.live import LiveQueryHub
from skillswap.engine.records import report_view
from skillswap.services import admin_service

router = APIRouter(prefix="/reports", tags=["reports"])


class ReportCreate(BaseModel):
    reason: str = Field(min_length=1, max_length=200)
    description: str = Field("", max_length=4000)
    reported_user_id: str | None = None
    reported_swap_id: str | None = None


@router.post("", status_code=201)
def file_report(
    body: ReportCreate,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    try:
        row = admin_service.create_report(
            engine,
            reporter_id=user.id,
            reason=body.reason,
            description=body.description,
            reported_user_id=body.reported_user_id,
            reported_swap_id=body.reported_swap_id,
            hub=hub,
        )
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    return report_view(row)
