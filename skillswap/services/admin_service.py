"""
skillswap.services.admin_service — Moderation Service Layer
=============================================================

Admin mutations on members and reports.  Every write that the affected
member should hear about stages its notification in the same transaction
as the change, so a ban without its "Account Suspended" notice (or the
other way round) cannot be committed.

Reports are filed by any member through :func:`create_report` and worked
by admins through :func:`list_reports` / :func:`resolve_report`.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from skillswap.database.models import (
    NotificationType,
    Report,
    ReportStatus,
    SwapRequest,
    SwapStatus,
    User,
    UserRole,
)
from skillswap.engine.live import notify_changed
from skillswap.engine.records import DescriptionStatus, decode_skills, dump_skills
from skillswap.services.notification_service import add_notification

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.engine.live import LiveQueryHub

logger = logging.getLogger(__name__)


def _detach_user(session: Session, user: User) -> User:
    session.refresh(user)
    _ = user.badges
    session.expunge(user)
    return user


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------
def list_users(engine: Engine) -> list[User]:
    """All members, newest first."""
    with Session(engine) as session:
        users = list(session.scalars(select(User).order_by(User.created_at.desc())).all())
        for user in users:
            _ = user.badges
            session.expunge(user)
        return users


def ban_user(
    engine: Engine,
    user_id: str,
    reason: str,
    *,
    admin_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> User | None:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.is_banned = True
        user.ban_reason = reason
        user.banned_at = datetime.now(UTC)
        add_notification(
            session,
            user_id=user_id,
            type=NotificationType.SYSTEM,
            title="Account Suspended",
            message=(
                f"Your account has been suspended for: {reason}. "
                "Please contact support if you believe this is an error."
            ),
        )
        session.commit()
        user = _detach_user(session, user)

    notify_changed(hub, "users", "notifications")
    logger.info("User %s banned by %s: %s", user_id, admin_id or "system", reason)
    return user


def unban_user(
    engine: Engine,
    user_id: str,
    *,
    admin_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> User | None:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.is_banned = False
        user.ban_reason = None
        user.banned_at = None
        add_notification(
            session,
            user_id=user_id,
            type=NotificationType.SYSTEM,
            title="Account Restored",
            message="Your account has been restored. You can now use the platform normally.",
        )
        session.commit()
        user = _detach_user(session, user)

    notify_changed(hub, "users", "notifications")
    logger.info("User %s unbanned by %s", user_id, admin_id or "system")
    return user


def set_role(
    engine: Engine,
    user_id: str,
    role: UserRole | str,
    *,
    admin_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> User | None:
    role = UserRole(role)
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.role = role.value
        session.commit()
        user = _detach_user(session, user)

    notify_changed(hub, "users")
    logger.info("User %s role set to %s by %s", user_id, role.value, admin_id or "system")
    return user


# ---------------------------------------------------------------------------
# Skill descriptions
# ---------------------------------------------------------------------------
class NothingToReviewError(ValueError):
    """The offered skill has no description for an admin to judge."""


def _review_skill_description(
    engine: Engine,
    user_id: str,
    skill_id: str,
    verdict: DescriptionStatus,
    reason: str | None,
    admin_id: str | None,
    hub: LiveQueryHub | None,
) -> User | None:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        skills = decode_skills(user.skills_offered or [], source=f"user {user_id} skills_offered")
        target = next((s for s in skills if s.id == skill_id), None)
        if target is None:
            return None
        if not target.description:
            raise NothingToReviewError(f"{target.name} has no description to review.")

        target.description_status = verdict
        target.rejection_reason = reason
        user.skills_offered = dump_skills(skills)

        if verdict == DescriptionStatus.APPROVED:
            title = "Skill Description Approved"
            message = f"Your description for {target.name} has been approved."
        else:
            title = "Skill Description Rejected"
            message = (
                f"Your description for {target.name} was rejected: {reason}. "
                "Edit it from your profile to submit it again."
            )
        add_notification(
            session,
            user_id=user_id,
            type=NotificationType.SYSTEM,
            title=title,
            message=message,
            related_id=skill_id,
        )
        session.commit()
        user = _detach_user(session, user)

    notify_changed(hub, "users", "notifications")
    logger.info(
        "Skill %s of user %s %s by %s", skill_id, user_id, verdict.value, admin_id or "system",
    )
    return user


def approve_skill_description(
    engine: Engine,
    user_id: str,
    skill_id: str,
    *,
    admin_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> User | None:
    """Mark an offered skill's description approved.

    Returns ``None`` when the user or the skill does not exist.
    """
    return _review_skill_description(
        engine, user_id, skill_id, DescriptionStatus.APPROVED, None, admin_id, hub,
    )


def reject_skill_description(
    engine: Engine,
    user_id: str,
    skill_id: str,
    reason: str,
    *,
    admin_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> User | None:
    return _review_skill_description(
        engine, user_id, skill_id, DescriptionStatus.REJECTED, reason, admin_id, hub,
    )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
def create_report(
    engine: Engine,
    *,
    reporter_id: str,
    reason: str,
    description: str,
    reported_user_id: str | None = None,
    reported_swap_id: str | None = None,
    hub: LiveQueryHub | None = None,
) -> Report:
    if not reported_user_id and not reported_swap_id:
        raise ValueError("A report must name a user or a swap request.")

    with Session(engine, expire_on_commit=False) as session:
        row = Report(
            reporter_id=reporter_id,
            reported_user_id=reported_user_id,
            reported_swap_id=reported_swap_id,
            reason=reason,
            description=description,
            status=ReportStatus.PENDING.value,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
        session.expunge(row)

    notify_changed(hub, "reports")
    logger.info("Report %s filed by %s", row.id, reporter_id)
    return row


def list_reports(engine: Engine, *, status: ReportStatus | str | None = None) -> list[Report]:
    """Reports newest first, optionally only those in *status*."""
    with Session(engine) as session:
        query = select(Report).order_by(Report.created_at.desc())
        if status is not None:
            query = query.where(Report.status == ReportStatus(status).value)
        rows = list(session.scalars(query).all())
        for row in rows:
            session.expunge(row)
        return rows


def resolve_report(
    engine: Engine,
    report_id: str,
    outcome: ReportStatus | str,
    admin_id: str,
    *,
    hub: LiveQueryHub | None = None,
) -> Report | None:
    outcome = ReportStatus(outcome)
    if outcome == ReportStatus.PENDING:
        raise ValueError("A report can only be resolved or dismissed.")

    with Session(engine, expire_on_commit=False) as session:
        row = session.get(Report, report_id)
        if row is None:
            return None
        row.status = outcome.value
        row.resolved_at = datetime.now(UTC)
        row.resolved_by = admin_id
        session.commit()
        session.refresh(row)
        session.expunge(row)

    notify_changed(hub, "reports")
    logger.info("Report %s %s by %s", report_id, outcome.value, admin_id)
    return row


# ---------------------------------------------------------------------------
# Dashboard stats
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PlatformStats:
    total_users: int
    active_users: int
    banned_users: int
    total_swaps: int
    pending_swaps: int
    completed_swaps: int
    pending_reports: int
    top_skills: list[tuple[str, int]]

    def to_dict(self) -> dict:
        return {
            "total_users": self.total_users,
            "active_users": self.active_users,
            "banned_users": self.banned_users,
            "total_swaps": self.total_swaps,
            "pending_swaps": self.pending_swaps,
            "completed_swaps": self.completed_swaps,
            "pending_reports": self.pending_reports,
            "top_skills": [{"name": n, "count": c} for n, c in self.top_skills],
        }


def platform_stats(engine: Engine, *, top_n: int = 5) -> PlatformStats:
    with Session(engine) as session:
        total_users = session.scalar(select(func.count(User.id))) or 0
        banned = session.scalar(
            select(func.count(User.id)).where(User.is_banned.is_(True))
        ) or 0

        status_counts = dict(session.execute(
            select(SwapRequest.status, func.count(SwapRequest.id))
            .group_by(SwapRequest.status)
        ).all())

        pending_reports = session.scalar(
            select(func.count(Report.id)).where(Report.status == ReportStatus.PENDING.value)
        ) or 0

        skill_counts: Counter[str] = Counter()
        for user_id, offered in session.execute(select(User.id, User.skills_offered)).all():
            for skill in decode_skills(offered or [], source=f"user {user_id} skills_offered"):
                skill_counts[skill.name] += 1

    return PlatformStats(
        total_users=total_users,
        active_users=total_users - banned,
        banned_users=banned,
        total_swaps=sum(
            n for s, n in status_counts.items() if s != SwapStatus.DELETED.value
        ),
        pending_swaps=status_counts.get(SwapStatus.PENDING.value, 0),
        completed_swaps=status_counts.get(SwapStatus.COMPLETED.value, 0),
        pending_reports=pending_reports,
        top_skills=skill_counts.most_common(top_n),
    )
