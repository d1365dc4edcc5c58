"""
skillswap.services.feedback_service — Ratings, Trust & Points
===============================================================

Submitting feedback is the only way reputation moves.  One transaction
covers:

  1. the feedback row (with both participant snapshots)
  2. the rated user's new trust score  (:func:`next_trust_score`)
  3. their points                       (:func:`points_for_rating`)
  4. a ``feedback_received`` notification

Badge evaluation runs afterwards as its own write; a failure there leaves
the feedback in place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillswap.database.models import Feedback, NotificationType, SwapRequest, SwapStatus, User
from skillswap.engine.live import notify_changed
from skillswap.engine.records import snapshot_of
from skillswap.engine.reputation import next_trust_score, points_for_rating
from skillswap.services.badge_service import check_and_award_badges
from skillswap.services.notification_service import add_notification

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.engine.live import LiveQueryHub

logger = logging.getLogger(__name__)


class FeedbackError(ValueError):
    """Feedback rejected; nothing was written.

    ``status_code`` is 422 for a bad rating and 409 when the swap or the
    participants do not allow it.
    """

    def __init__(self, message: str, status_code: int = 409) -> None:
        self.status_code = status_code
        super().__init__(message)


def submit_feedback(
    engine: Engine,
    *,
    swap_id: str,
    from_user_id: str,
    to_user_id: str,
    rating: int,
    comment: str = "",
    hub: LiveQueryHub | None = None,
) -> Feedback | None:
    """Record a rating for a completed swap and update the rated user.

    Returns ``None`` if the swap does not exist.  A second rating for the
    same swap by the same rater is accepted.
    """
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise FeedbackError("Rating must be a whole number from 1 to 5.", status_code=422)

    with Session(engine, expire_on_commit=False) as session:
        swap = session.get(SwapRequest, swap_id)
        if swap is None or swap.status == SwapStatus.DELETED:
            return None
        if swap.status != SwapStatus.COMPLETED:
            raise FeedbackError("Feedback can only be left on a completed swap.")
        participants = (swap.from_user_id, swap.to_user_id)
        if from_user_id not in participants:
            raise FeedbackError("Only a participant of this swap can leave feedback.")
        if to_user_id not in participants or to_user_id == from_user_id:
            raise FeedbackError("Feedback must be for the other participant of this swap.")

        rater = session.get(User, from_user_id)
        rated = session.get(User, to_user_id)
        if rater is None or rated is None:
            raise FeedbackError("A participant of this swap no longer exists.")

        row = Feedback(
            swap_request_id=swap.id,
            from_user_id=rater.id,
            to_user_id=rated.id,
            from_user=snapshot_of(rater),
            to_user=snapshot_of(rated),
            rating=rating,
            comment=comment,
        )
        session.add(row)
        session.flush()

        old_score = rated.trust_score
        rated.trust_score = next_trust_score(old_score, rating)
        earned = points_for_rating(rating)
        rated.points = rated.points + earned

        add_notification(
            session,
            user_id=rated.id,
            type=NotificationType.FEEDBACK_RECEIVED,
            title="New Feedback Received",
            message=f"You received {rating}/5 stars from {rater.name} for your skill swap!",
            related_id=row.id,
        )
        session.commit()
        session.refresh(row)
        session.expunge(row)
        new_score = rated.trust_score

    notify_changed(hub, "feedbacks", "users", "notifications")
    logger.info(
        "Feedback %s on swap %s: %s rated %s %d/5 (trust %d → %d, +%d pts)",
        row.id, swap_id, from_user_id, to_user_id, rating, old_score, new_score, earned,
    )

    check_and_award_badges(engine, to_user_id, hub=hub)
    return row


def award_points(
    engine: Engine,
    user_id: str,
    points: int,
    reason: str,
    *,
    hub: LiveQueryHub | None = None,
) -> User | None:
    """Add *points* (must be positive) and tell the user why, atomically."""
    if points <= 0:
        raise ValueError("Points awarded must be positive.")

    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.points = user.points + points
        add_notification(
            session,
            user_id=user_id,
            type=NotificationType.SYSTEM,
            title="Points Awarded",
            message=f"You earned {points} points for: {reason}",
        )
        session.commit()
        session.refresh(user)
        _ = user.badges
        session.expunge(user)

    notify_changed(hub, "users", "notifications")
    logger.info("Awarded %d point(s) to user %s: %s", points, user_id, reason)
    check_and_award_badges(engine, user_id, hub=hub)
    return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def list_for_user(engine: Engine, user_id: str) -> list[Feedback]:
    """Feedback *user_id* received, newest first."""
    with Session(engine) as session:
        rows = list(session.scalars(
            select(Feedback)
            .where(Feedback.to_user_id == user_id)
            .order_by(Feedback.created_at.desc())
        ).all())
        for row in rows:
            session.expunge(row)
        return rows


def list_for_swap(engine: Engine, swap_id: str) -> list[Feedback]:
    with Session(engine) as session:
        rows = list(session.scalars(
            select(Feedback)
            .where(Feedback.swap_request_id == swap_id)
            .order_by(Feedback.created_at.desc())
        ).all())
        for row in rows:
            session.expunge(row)
        return rows
