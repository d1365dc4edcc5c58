"""
skillswap.engine.records — Typed Records at the Storage Boundary
=================================================================

JSONB columns (skill lists, availability, participant snapshots) have no
schema in the database.  Everything read from them passes through the
pydantic models below, and a malformed payload raises
:class:`RecordDecodeError` instead of leaking half-filled dicts into the
rest of the app.

The same models are the wire shapes of the HTTP API and what
:mod:`skillswap.client` decodes responses into.
"""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from skillswap.database.models import (
        Feedback,
        Notification,
        Report,
        SwapRequest,
        User,
    )

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class RecordDecodeError(ValueError):
    """A stored record does not match its expected shape."""

    def __init__(self, source: str, error: ValidationError) -> None:
        self.source = source
        self.errors = error.errors(include_url=False)
        super().__init__(f"Malformed {source} record: {error.error_count()} error(s)")


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------
class Proficiency(enum.StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def rank(self) -> int:
        return _PROFICIENCY_RANK[self]


_PROFICIENCY_RANK: dict[Proficiency, int] = {
    Proficiency.BEGINNER: 0,
    Proficiency.INTERMEDIATE: 1,
    Proficiency.ADVANCED: 2,
    Proficiency.EXPERT: 3,
}


class DescriptionStatus(enum.StrEnum):
    """Admin review state of an offered skill's free-text description."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Skill(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=50)
    description: str | None = None
    level: Proficiency
    # Only set on offered skills that carry a description.
    description_status: DescriptionStatus | None = None
    rejection_reason: str | None = None


class Availability(BaseModel):
    model_config = ConfigDict(extra="ignore")

    weekends: bool = False
    evenings: bool = False
    custom: str | None = None


class Exchange(BaseModel):
    offered: list[Skill] = Field(default_factory=list)
    wanted: list[Skill] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class UserSnapshot(BaseModel):
    """Denormalized copy of a user, frozen into swaps and feedback."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: str
    photo_url: str | None = None
    location: str | None = None
    skills_offered: list[Skill] = Field(default_factory=list)
    skills_wanted: list[Skill] = Field(default_factory=list)
    availability: Availability = Field(default_factory=Availability)
    is_public: bool = True
    trust_score: int = Field(ge=0, le=100)
    points: int = Field(ge=0)
    role: str = "user"


class BadgeView(BaseModel):
    name: str
    description: str
    icon: str
    earned_at: datetime | None = None


class UserProfile(UserSnapshot):
    badges: list[BadgeView] = Field(default_factory=list)
    is_banned: bool = False
    ban_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PublicProfile(UserProfile):
    """A member as other members see them, without contact details."""

    email: str | None = None


# ---------------------------------------------------------------------------
# Swaps, feedback, notifications, reports
# ---------------------------------------------------------------------------
class SwapRequestView(BaseModel):
    id: str
    from_user_id: str
    to_user_id: str
    from_user: UserSnapshot
    to_user: UserSnapshot
    offered: list[Skill]
    wanted: list[Skill]
    status: str
    message: str | None = None
    response_message: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None


class FeedbackView(BaseModel):
    id: str
    swap_request_id: str
    from_user_id: str
    to_user_id: str
    from_user: UserSnapshot
    to_user: UserSnapshot
    rating: int = Field(ge=1, le=5)
    comment: str
    created_at: datetime | None = None


class NotificationView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool = False
    related_id: str | None = None
    created_at: datetime | None = None


class ReportView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reporter_id: str
    reported_user_id: str | None = None
    reported_swap_id: str | None = None
    reason: str
    description: str
    status: str
    created_at: datetime | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None


# ---------------------------------------------------------------------------
# Decode helpers
# ---------------------------------------------------------------------------
def decode(model: type[M], raw: Any, *, source: str) -> M:
    """Validate *raw* as *model*, raising :class:`RecordDecodeError` on failure."""
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.error("Failed to decode %s record: %s", source, exc)
        raise RecordDecodeError(source, exc) from exc


def decode_skills(raw: Any, *, source: str = "skill list") -> list[Skill]:
    if not isinstance(raw, list):
        raise RecordDecodeError(
            source,
            ValidationError.from_exception_data(
                "skills", [{"type": "list_type", "loc": (), "input": raw}],
            ),
        )
    return [decode(Skill, item, source=source) for item in raw]


def dump_skills(skills: list[Skill]) -> list[dict]:
    """Serialize skills for a JSONB column."""
    return [s.model_dump(mode="json") for s in skills]


def snapshot_of(user: User) -> dict:
    """Return the JSON-ready snapshot of *user* as it is right now.

    Stored on swaps and feedback; never refreshed afterwards.
    """
    snap = UserSnapshot(
        id=user.id,
        name=user.name,
        email=user.email,
        photo_url=user.photo_url,
        location=user.location,
        skills_offered=decode_skills(user.skills_offered, source=f"user {user.id} skills_offered"),
        skills_wanted=decode_skills(user.skills_wanted, source=f"user {user.id} skills_wanted"),
        availability=decode(Availability, user.availability or {}, source=f"user {user.id} availability"),
        is_public=user.is_public,
        trust_score=user.trust_score,
        points=user.points,
        role=user.role,
    )
    return snap.model_dump(mode="json")


def profile_view(user: User) -> UserProfile:
    return decode(UserProfile, {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "photo_url": user.photo_url,
        "location": user.location,
        "skills_offered": user.skills_offered,
        "skills_wanted": user.skills_wanted,
        "availability": user.availability or {},
        "is_public": user.is_public,
        "trust_score": user.trust_score,
        "points": user.points,
        "role": user.role,
        "badges": [
            {
                "name": b.name,
                "description": b.description,
                "icon": b.icon,
                "earned_at": b.earned_at,
            }
            for b in user.badges
        ],
        "is_banned": user.is_banned,
        "ban_reason": user.ban_reason,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }, source=f"user {user.id}")


def swap_view(row: SwapRequest) -> SwapRequestView:
    return decode(SwapRequestView, {
        "id": row.id,
        "from_user_id": row.from_user_id,
        "to_user_id": row.to_user_id,
        "from_user": row.from_user,
        "to_user": row.to_user,
        "offered": row.skills_offered,
        "wanted": row.skills_wanted,
        "status": row.status,
        "message": row.message,
        "response_message": row.response_message,
        "notes": row.notes,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "completed_at": row.completed_at,
    }, source=f"swap request {row.id}")


def feedback_view(row: Feedback) -> FeedbackView:
    return decode(FeedbackView, {
        "id": row.id,
        "swap_request_id": row.swap_request_id,
        "from_user_id": row.from_user_id,
        "to_user_id": row.to_user_id,
        "from_user": row.from_user,
        "to_user": row.to_user,
        "rating": row.rating,
        "comment": row.comment,
        "created_at": row.created_at,
    }, source=f"feedback {row.id}")


def notification_view(row: Notification) -> NotificationView:
    return decode(NotificationView, row, source=f"notification {row.id}")


def report_view(row: Report) -> ReportView:
    return decode(ReportView, row, source=f"report {row.id}")
