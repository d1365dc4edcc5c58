"""
skillswap.services.notification_service — Per-User Inbox
==========================================================

Append-only notifications.  Other services add theirs inside their own
transaction through :func:`add_notification`; the standalone functions
here open a session of their own.

There is no retry: a failed write raises to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from skillswap.database.models import Notification, NotificationType, User
from skillswap.engine.live import notify_changed

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.engine.live import LiveQueryHub

logger = logging.getLogger(__name__)


def add_notification(
    session: Session,
    *,
    user_id: str,
    type: NotificationType | str,
    title: str,
    message: str,
    related_id: str | None = None,
) -> Notification:
    """Stage a notification in an open session (no commit)."""
    row = Notification(
        user_id=user_id,
        type=NotificationType(type).value,
        title=title,
        message=message,
        related_id=related_id,
        is_read=False,
    )
    session.add(row)
    return row


def create_notification(
    engine: Engine,
    *,
    user_id: str,
    type: NotificationType | str,
    title: str,
    message: str,
    related_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> Notification:
    with Session(engine, expire_on_commit=False) as session:
        row = add_notification(
            session,
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
        )
        session.commit()
        session.refresh(row)
        session.expunge(row)

    notify_changed(hub, "notifications")
    logger.info("Notification %s (%s) → user %s", row.id, row.type, user_id)
    return row


def list_notifications(engine: Engine, user_id: str, *, limit: int | None = None) -> list[Notification]:
    """Newest first."""
    with Session(engine) as session:
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        rows = list(session.scalars(query).all())
        for row in rows:
            session.expunge(row)
        return rows


def unread_count(engine: Engine, user_id: str) -> int:
    with Session(engine) as session:
        return session.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        ) or 0


def mark_read(
    engine: Engine,
    notification_id: str,
    user_id: str,
    *,
    hub: LiveQueryHub | None = None,
) -> Notification | None:
    """Mark one notification read.

    Returns ``None`` when it does not exist or belongs to someone else, so
    both cases look the same to the caller.
    """
    with Session(engine, expire_on_commit=False) as session:
        row = session.get(Notification, notification_id)
        if row is None or row.user_id != user_id:
            return None
        row.is_read = True
        session.commit()
        session.refresh(row)
        session.expunge(row)

    notify_changed(hub, "notifications")
    return row


def mark_all_read(engine: Engine, user_id: str, *, hub: LiveQueryHub | None = None) -> int:
    """Mark every unread notification for *user_id* read.  Returns the count."""
    with Session(engine) as session:
        result = session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        session.commit()
        changed = result.rowcount or 0

    if changed:
        notify_changed(hub, "notifications")
    logger.info("Marked %d notification(s) read for user %s", changed, user_id)
    return changed


def broadcast(
    engine: Engine,
    *,
    title: str,
    message: str,
    user_ids: list[str] | None = None,
    hub: LiveQueryHub | None = None,
) -> int:
    """Send one ``system`` notification to each target, in one transaction.

    With no *user_ids* (or an empty list) every non-banned user receives
    it.  Explicit ids that match no user are skipped.  Returns the number
    of notifications written.
    """
    with Session(engine) as session:
        if not user_ids:
            targets = list(session.scalars(
                select(User.id).where(User.is_banned.is_(False))
            ).all())
        else:
            known = set(session.scalars(select(User.id).where(User.id.in_(user_ids))).all())
            targets = [uid for uid in dict.fromkeys(user_ids) if uid in known]
        for uid in targets:
            add_notification(
                session,
                user_id=uid,
                type=NotificationType.SYSTEM,
                title=title,
                message=message,
            )
        session.commit()

    if targets:
        notify_changed(hub, "notifications")
    logger.info("Broadcast %r to %d user(s)", title, len(targets))
    return len(targets)
