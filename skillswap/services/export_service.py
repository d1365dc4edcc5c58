"""
skillswap.services.export_service — CSV Exports for Admins
============================================================

Read-only dumps of the ``users`` and ``swapRequests`` collections.  The
header row is always written, even with no records.  Skill columns hold
counts, ``None`` becomes an empty cell, booleans are ``true``/``false`` and
datetimes are ISO-8601.  Quoting is the :mod:`csv` module's minimal mode.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillswap.database.models import SwapRequest, User
from skillswap.services import swap_service

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

USER_FIELDS: tuple[str, ...] = (
    "id", "name", "email", "location", "role", "isPublic", "isBanned",
    "trustScore", "points", "skillsOffered", "skillsWanted",
    "createdAt", "updatedAt",
)

SWAP_FIELDS: tuple[str, ...] = (
    "id", "fromUserId", "toUserId", "status", "skillsOffered",
    "skillsWanted", "createdAt", "updatedAt", "completedAt",
)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def to_csv(fields: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(fields)
    for row in rows:
        writer.writerow([_cell(v) for v in row])
    return buf.getvalue()


def _user_row(u: User) -> tuple:
    return (
        u.id, u.name, u.email, u.location, u.role, u.is_public, u.is_banned,
        u.trust_score, u.points, len(u.skills_offered or []),
        len(u.skills_wanted or []), u.created_at, u.updated_at,
    )


def _swap_row(s: SwapRequest) -> tuple:
    return (
        s.id, s.from_user_id, s.to_user_id, s.status,
        len(s.skills_offered or []), len(s.skills_wanted or []),
        s.created_at, s.updated_at, s.completed_at,
    )


def export_users_csv(engine: Engine) -> str:
    with Session(engine) as session:
        users = session.scalars(select(User).order_by(User.created_at)).all()
        body = to_csv(USER_FIELDS, (_user_row(u) for u in users))
        count = len(users)
    logger.info("Exported %d user(s) to CSV", count)
    return body


def export_swaps_csv(engine: Engine) -> str:
    """Every request, soft-deleted ones included, newest first."""
    swaps = swap_service.list_all(engine)
    body = to_csv(SWAP_FIELDS, (_swap_row(s) for s in swaps))
    logger.info("Exported %d swap request(s) to CSV", len(swaps))
    return body
