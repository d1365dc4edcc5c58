"""
skillswap.api.routes.swaps — Swap request lifecycle & feedback
================================================================

Permission and transition failures raised by the service layer are mapped
to 403 / 409 by the handlers in :mod:`skillswap.api.main`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from skillswap.api.deps import get_current_user, get_engine, get_hub
from skillswap.database.models import User
from skillswap.engine.live import LiveQueryHub
from skillswap.engine.records import Skill, feedback_view, swap_view
from skillswap.services import feedback_service, swap_service

router = APIRouter(prefix="/swaps", tags=["swaps"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class SwapCreate(BaseModel):
    to_user_id: str
    offered: list[Skill] = Field(default_factory=list)
    wanted: list[Skill] = Field(default_factory=list)
    message: str | None = Field(None, max_length=2000)


class SwapResponse(BaseModel):
    response_message: str | None = Field(None, max_length=2000)


class SwapComplete(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class FeedbackCreate(BaseModel):
    to_user_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field("", max_length=2000)


def _found(row):
    if row is None:
        raise HTTPException(404, "Swap request not found")
    return swap_view(row)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
@router.get("")
def list_swaps(user: User = Depends(get_current_user), engine=Depends(get_engine)):
    """Everything the caller sent or received, newest first."""
    rows = swap_service.list_for_user(engine, user.id)
    return {"swaps": [swap_view(r) for r in rows], "total": len(rows)}


@router.post("", status_code=201)
def create_swap(
    body: SwapCreate,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    try:
        row = swap_service.create_swap(
            engine,
            from_user_id=user.id,
            to_user_id=body.to_user_id,
            offered=body.offered,
            wanted=body.wanted,
            message=body.message,
            hub=hub,
        )
    except swap_service.SwapTargetError as exc:
        raise HTTPException(422, str(exc))
    return swap_view(row)


@router.get("/{swap_id}")
def get_swap(swap_id: str, user: User = Depends(get_current_user), engine=Depends(get_engine)):
    return _found(swap_service.get_swap(engine, swap_id, viewer_id=user.id))


@router.post("/{swap_id}/accept")
def accept_swap(
    swap_id: str,
    body: SwapResponse | None = None,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _found(swap_service.accept_swap(
        engine, swap_id, user.id,
        response_message=body.response_message if body else None, hub=hub,
    ))


@router.post("/{swap_id}/reject")
def reject_swap(
    swap_id: str,
    body: SwapResponse | None = None,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _found(swap_service.reject_swap(
        engine, swap_id, user.id,
        response_message=body.response_message if body else None, hub=hub,
    ))


@router.post("/{swap_id}/complete")
def complete_swap(
    swap_id: str,
    body: SwapComplete | None = None,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _found(swap_service.complete_swap(
        engine, swap_id, user.id, notes=body.notes if body else None, hub=hub,
    ))


@router.post("/{swap_id}/cancel")
def cancel_swap(
    swap_id: str,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _found(swap_service.cancel_swap(engine, swap_id, user.id, hub=hub))


@router.delete("/{swap_id}")
def delete_swap(
    swap_id: str,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    return _found(swap_service.delete_swap(engine, swap_id, user.id, hub=hub))


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------
@router.post("/{swap_id}/feedback", status_code=201)
def leave_feedback(
    swap_id: str,
    body: FeedbackCreate,
    user: User = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    row = feedback_service.submit_feedback(
        engine,
        swap_id=swap_id,
        from_user_id=user.id,
        to_user_id=body.to_user_id,
        rating=body.rating,
        comment=body.comment,
        hub=hub,
    )
    if row is None:
        raise HTTPException(404, "Swap request not found")
    return feedback_view(row)


@router.get("/{swap_id}/feedback")
def swap_feedback(swap_id: str, user: User = Depends(get_current_user), engine=Depends(get_engine)):
    # Visibility follows the swap itself.
    _found(swap_service.get_swap(engine, swap_id, viewer_id=user.id))
    rows = feedback_service.list_for_swap(engine, swap_id)
    return {"feedback": [feedback_view(f) for f in rows], "total": len(rows)}
