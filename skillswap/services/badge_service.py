"""
skillswap.services.badge_service — Persist Newly Earned Badges
================================================================

Runs :func:`skillswap.engine.badges.evaluate_badges` against the stored
user and writes whatever it returns, with one ``system`` notification per
new badge, in a single transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillswap.database.models import NotificationType, User, UserBadge
from skillswap.engine.badges import Badge, BadgeStats, evaluate_badges
from skillswap.engine.live import notify_changed
from skillswap.services.notification_service import add_notification

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.engine.live import LiveQueryHub

logger = logging.getLogger(__name__)


def stats_for(user: User) -> BadgeStats:
    return BadgeStats(
        points=user.points,
        trust_score=user.trust_score,
        skills_offered_count=len(user.skills_offered or []),
        badge_names=frozenset(b.name for b in user.badges),
    )


def check_and_award_badges(
    engine: Engine,
    user_id: str,
    *,
    hub: LiveQueryHub | None = None,
) -> list[Badge]:
    """Award any badges *user_id* now qualifies for.  Returns the new ones.

    A concurrent run that inserts the same badge first trips the
    ``(user_id, name)`` unique constraint; that run is rolled back and
    reports nothing awarded.
    """
    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            return []
        earned = evaluate_badges(stats_for(user))
        if not earned:
            return []

        for badge in earned:
            session.add(UserBadge(
                user_id=user_id,
                name=badge.name,
                description=badge.description,
                icon=badge.icon,
                earned_at=badge.earned_at,
            ))
            add_notification(
                session,
                user_id=user_id,
                type=NotificationType.SYSTEM,
                title="New Badge Earned!",
                message=f"Congratulations! You earned the \"{badge.name}\" badge: {badge.description}",
            )
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.warning("Badge award for user %s raced another writer; skipped", user_id)
            return []

    notify_changed(hub, "users", "notifications")
    logger.info(
        "User %s earned badge(s): %s", user_id, ", ".join(b.name for b in earned),
    )
    return earned
