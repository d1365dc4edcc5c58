"""
skillswap.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users           — Member profiles, skills, reputation, moderation state
- user_badges     — Earned badges (unique per user + badge name)
- swap_requests   — Proposed skill exchanges with denormalized participants
- feedbacks       — Ratings left after a completed swap
- notifications   — Per-user inbox
- reports         — Abuse reports awaiting moderation

Document-shaped fields (skill lists, participant snapshots, availability)
are stored as JSONB and decoded through :mod:`skillswap.engine.records`.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    """Return a fresh opaque record identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all SkillSwap ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class UserRole(enum.StrEnum):
    USER = "user"
    ADMIN = "admin"


class SwapStatus(enum.StrEnum):
    """Every status a swap request can be in."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DELETED = "deleted"


class NotificationType(enum.StrEnum):
    SWAP_REQUEST = "swap_request"
    SWAP_ACCEPTED = "swap_accepted"
    SWAP_REJECTED = "swap_rejected"
    FEEDBACK_RECEIVED = "feedback_received"
    SYSTEM = "system"


class ReportStatus(enum.StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


# ---------------------------------------------------------------------------
# Users — one row per member
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(500), default=None)
    location: Mapped[str | None] = mapped_column(String(100), default=None)

    # Skill lists are owned by value; swaps copy them at creation time.
    skills_offered: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    skills_wanted: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    availability: Mapped[dict] = mapped_column(
        JSONB, nullable=False,
        default=lambda: {"weekends": False, "evenings": False},
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)

    # Reputation
    trust_score: Mapped[int] = mapped_column(Integer, default=100)
    points: Mapped[int] = mapped_column(Integer, default=0)

    # Moderation
    role: Mapped[str] = mapped_column(String(10), nullable=False, default=UserRole.USER.value)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False)
    ban_reason: Mapped[str | None] = mapped_column(Text, default=None)
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    badges: Mapped[list[UserBadge]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserBadge.earned_at",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_users_trust_desc", "trust_score"),
        Index("ix_users_created_at", "created_at"),
        CheckConstraint("trust_score BETWEEN 0 AND 100", name="ck_users_trust_range"),
        CheckConstraint("points >= 0", name="ck_users_points_nonneg"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r} trust={self.trust_score}>"


# ---------------------------------------------------------------------------
# UserBadge — append-only, keyed by name
# ---------------------------------------------------------------------------
class UserBadge(Base):
    __tablename__ = "user_badges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="badges")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_badges_user_name"),
    )

    def __repr__(self) -> str:
        return f"<UserBadge user={self.user_id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# SwapRequest — participants are snapshots, not live references
# ---------------------------------------------------------------------------
class SwapRequest(Base):
    __tablename__ = "swap_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    from_user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    to_user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    from_user: Mapped[dict] = mapped_column(JSONB, nullable=False)
    to_user: Mapped[dict] = mapped_column(JSONB, nullable=False)
    skills_offered: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    skills_wanted: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SwapStatus.PENDING.value
    )
    message: Mapped[str | None] = mapped_column(Text, default=None)
    response_message: Mapped[str | None] = mapped_column(Text, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    __table_args__ = (
        Index("ix_swap_requests_from_user", "from_user_id", "created_at"),
        Index("ix_swap_requests_to_user", "to_user_id", "created_at"),
        Index("ix_swap_requests_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<SwapRequest id={self.id} {self.from_user_id}->{self.to_user_id} "
            f"status={self.status}>"
        )


# ---------------------------------------------------------------------------
# Feedback — immutable rating for a completed swap
# ---------------------------------------------------------------------------
class Feedback(Base):
    __tablename__ = "feedbacks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    swap_request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("swap_requests.id", ondelete="CASCADE"), nullable=False
    )
    from_user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    to_user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    from_user: Mapped[dict] = mapped_column(JSONB, nullable=False)
    to_user: Mapped[dict] = mapped_column(JSONB, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_feedbacks_to_user", "to_user_id", "created_at"),
        Index("ix_feedbacks_swap", "swap_request_id"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_feedbacks_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Feedback id={self.id} swap={self.swap_request_id} rating={self.rating}>"


# ---------------------------------------------------------------------------
# Notification — per-user inbox entry
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    related_id: Mapped[str | None] = mapped_column(String(36), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_notifications_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user={self.user_id} type={self.type}>"


# ---------------------------------------------------------------------------
# Report — abuse report about a user and/or a swap
# ---------------------------------------------------------------------------
class Report(Base):
    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    reporter_id: Mapped[str] = mapped_column(String(36), nullable=False)
    reported_user_id: Mapped[str | None] = mapped_column(String(36), default=None)
    reported_swap_id: Mapped[str | None] = mapped_column(String(36), default=None)
    reason: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReportStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    resolved_by: Mapped[str | None] = mapped_column(String(36), default=None)

    __table_args__ = (
        Index("ix_reports_status_time", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Report id={self.id} status={self.status}>"
