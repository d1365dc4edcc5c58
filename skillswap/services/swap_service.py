"""
skillswap.services.swap_service — Swap Request Lifecycle
==========================================================

Persists the moves planned by :mod:`skillswap.engine.lifecycle`.  Each
operation:

  1. Loads the request (``None`` → caller answers 404)
  2. Asks :func:`plan_transition` whether *actor* may make the move
  3. Applies it plus any notification in one transaction
  4. Commits, then publishes ``swapRequests`` / ``notifications``

Participant snapshots are captured once, in :func:`create_swap`, and never
refreshed.  Two actors racing on one request are last-writer-wins.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from skillswap.database.models import NotificationType, SwapRequest, SwapStatus, User
from skillswap.engine.lifecycle import SwapAction, SwapPermissionError, plan_transition
from skillswap.engine.live import notify_changed
from skillswap.engine.records import Skill, dump_skills, snapshot_of
from skillswap.services.notification_service import add_notification

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.engine.live import LiveQueryHub

logger = logging.getLogger(__name__)


class SwapTargetError(ValueError):
    """The recipient of a new request is not a valid counterpart."""


def _detach(session: Session, row: SwapRequest) -> SwapRequest:
    session.refresh(row)
    session.expunge(row)
    return row


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def create_swap(
    engine: Engine,
    *,
    from_user_id: str,
    to_user_id: str,
    offered: list[Skill],
    wanted: list[Skill],
    message: str | None = None,
    hub: LiveQueryHub | None = None,
) -> SwapRequest:
    """Open a ``pending`` request and notify the recipient.

    Raises
    ------
    SwapTargetError
        Self-requests, unknown recipients and banned recipients.
    LookupError
        If the requester does not exist.
    """
    if from_user_id == to_user_id:
        raise SwapTargetError("You cannot send a swap request to yourself.")

    with Session(engine, expire_on_commit=False) as session:
        sender = session.get(User, from_user_id)
        if sender is None:
            raise LookupError(f"User {from_user_id} not found")
        recipient = session.get(User, to_user_id)
        if recipient is None:
            raise SwapTargetError("The user you are trying to reach does not exist.")
        if recipient.is_banned:
            raise SwapTargetError("This user is not accepting swap requests.")

        row = SwapRequest(
            from_user_id=sender.id,
            to_user_id=recipient.id,
            from_user=snapshot_of(sender),
            to_user=snapshot_of(recipient),
            skills_offered=dump_skills(offered),
            skills_wanted=dump_skills(wanted),
            status=SwapStatus.PENDING.value,
            message=message,
        )
        session.add(row)
        session.flush()
        add_notification(
            session,
            user_id=recipient.id,
            type=NotificationType.SWAP_REQUEST,
            title="New Swap Request",
            message=f"{sender.name} wants to swap skills with you!",
            related_id=row.id,
        )
        session.commit()
        row = _detach(session, row)

    notify_changed(hub, "swapRequests", "notifications")
    logger.info("Swap %s created: %s → %s", row.id, from_user_id, to_user_id)
    return row


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
_RESPONSE_NOTIFICATIONS: dict[SwapAction, tuple[NotificationType, str, str]] = {
    SwapAction.ACCEPT: (
        NotificationType.SWAP_ACCEPTED,
        "Swap Request Accepted",
        "{name} accepted your swap request!",
    ),
    SwapAction.REJECT: (
        NotificationType.SWAP_REJECTED,
        "Swap Request Rejected",
        "{name} declined your swap request.",
    ),
}


def _transition(
    engine: Engine,
    swap_id: str,
    action: SwapAction,
    actor_id: str,
    *,
    response_message: str | None = None,
    notes: str | None = None,
    hub: LiveQueryHub | None = None,
) -> SwapRequest | None:
    with Session(engine, expire_on_commit=False) as session:
        row = session.get(SwapRequest, swap_id)
        if row is None or row.status == SwapStatus.DELETED:
            return None

        # Raises before anything is written; the stored row stays as it was.
        target = plan_transition(
            current=row.status,
            action=action,
            actor_id=actor_id,
            from_user_id=row.from_user_id,
            to_user_id=row.to_user_id,
        )
        previous = row.status
        row.status = target.value
        if response_message is not None:
            row.response_message = response_message
        if notes is not None:
            row.notes = notes
        if target == SwapStatus.COMPLETED:
            row.completed_at = datetime.now(UTC)

        published = ["swapRequests"]
        if action in _RESPONSE_NOTIFICATIONS:
            ntype, title, template = _RESPONSE_NOTIFICATIONS[action]
            actor = session.get(User, actor_id)
            actor_name = actor.name if actor is not None else row.to_user.get("name", "Someone")
            add_notification(
                session,
                user_id=row.from_user_id,
                type=ntype,
                title=title,
                message=template.format(name=actor_name),
                related_id=row.id,
            )
            published.append("notifications")

        session.commit()
        row = _detach(session, row)

    notify_changed(hub, *published)
    logger.info("Swap %s: %s → %s by %s", swap_id, previous, target.value, actor_id)
    return row


def accept_swap(
    engine: Engine, swap_id: str, actor_id: str, *,
    response_message: str | None = None, hub: LiveQueryHub | None = None,
) -> SwapRequest | None:
    return _transition(
        engine, swap_id, SwapAction.ACCEPT, actor_id,
        response_message=response_message, hub=hub,
    )


def reject_swap(
    engine: Engine, swap_id: str, actor_id: str, *,
    response_message: str | None = None, hub: LiveQueryHub | None = None,
) -> SwapRequest | None:
    return _transition(
        engine, swap_id, SwapAction.REJECT, actor_id,
        response_message=response_message, hub=hub,
    )


def complete_swap(
    engine: Engine, swap_id: str, actor_id: str, *,
    notes: str | None = None, hub: LiveQueryHub | None = None,
) -> SwapRequest | None:
    return _transition(engine, swap_id, SwapAction.COMPLETE, actor_id, notes=notes, hub=hub)


def cancel_swap(
    engine: Engine, swap_id: str, actor_id: str, *, hub: LiveQueryHub | None = None,
) -> SwapRequest | None:
    return _transition(engine, swap_id, SwapAction.CANCEL, actor_id, hub=hub)


def delete_swap(
    engine: Engine, swap_id: str, actor_id: str, *, hub: LiveQueryHub | None = None,
) -> SwapRequest | None:
    """Soft delete: the row stays with status ``deleted``."""
    return _transition(engine, swap_id, SwapAction.DELETE, actor_id, hub=hub)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_swap(engine: Engine, swap_id: str, viewer_id: str | None = None) -> SwapRequest | None:
    """Fetch one request.

    With *viewer_id* set, a non-participant gets :class:`SwapPermissionError`.
    Deleted requests read as missing.
    """
    with Session(engine) as session:
        row = session.get(SwapRequest, swap_id)
        if row is None or row.status == SwapStatus.DELETED:
            return None
        if viewer_id is not None and viewer_id not in (row.from_user_id, row.to_user_id):
            raise SwapPermissionError("Only the two participants can view this swap request.")
        session.expunge(row)
        return row


def list_for_user(engine: Engine, user_id: str) -> list[SwapRequest]:
    """Requests *user_id* sent or received, excluding deleted, newest first."""
    with Session(engine) as session:
        rows = list(session.scalars(
            select(SwapRequest)
            .where(
                or_(SwapRequest.from_user_id == user_id, SwapRequest.to_user_id == user_id),
                SwapRequest.status != SwapStatus.DELETED.value,
            )
            .order_by(SwapRequest.created_at.desc())
        ).all())
        for row in rows:
            session.expunge(row)
        return rows


def list_all(engine: Engine, *, include_deleted: bool = True) -> list[SwapRequest]:
    """Every request, newest first (admin export)."""
    with Session(engine) as session:
        query = select(SwapRequest).order_by(SwapRequest.created_at.desc())
        if not include_deleted:
            query = query.where(SwapRequest.status != SwapStatus.DELETED.value)
        rows = list(session.scalars(query).all())
        for row in rows:
            session.expunge(row)
        return rows
