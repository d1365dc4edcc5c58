"""Initial SkillSwap schema

Revision ID: 5e1c0a7b9d21
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5e1c0a7b9d21"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create users, badges, swap requests, feedback, notifications, reports."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("photo_url", sa.String(500)),
        sa.Column("location", sa.String(100)),
        sa.Column("skills_offered", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("skills_wanted", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column(
            "availability", postgresql.JSONB(), nullable=False,
            server_default='{"weekends": false, "evenings": false}',
        ),
        sa.Column("is_public", sa.Boolean(), server_default=sa.true()),
        sa.Column("trust_score", sa.Integer(), server_default="100"),
        sa.Column("points", sa.Integer(), server_default="0"),
        sa.Column("role", sa.String(10), nullable=False, server_default="user"),
        sa.Column("is_banned", sa.Boolean(), server_default=sa.false()),
        sa.Column("ban_reason", sa.Text()),
        sa.Column("banned_at", sa.DateTime(timezone=True)),
        _timestamp("created_at", nullable=True),
        _timestamp("updated_at", nullable=True),
        sa.CheckConstraint("trust_score BETWEEN 0 AND 100", name="ck_users_trust_range"),
        sa.CheckConstraint("points >= 0", name="ck_users_points_nonneg"),
    )
    op.create_index("ix_users_trust_desc", "users", ["trust_score"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "user_badges",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("icon", sa.String(16), nullable=False, server_default=""),
        _timestamp("earned_at", nullable=True),
        sa.UniqueConstraint("user_id", "name", name="uq_user_badges_user_name"),
    )

    op.create_table(
        "swap_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("from_user_id", sa.String(36), nullable=False),
        sa.Column("to_user_id", sa.String(36), nullable=False),
        sa.Column("from_user", postgresql.JSONB(), nullable=False),
        sa.Column("to_user", postgresql.JSONB(), nullable=False),
        sa.Column("skills_offered", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("skills_wanted", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text()),
        sa.Column("response_message", sa.Text()),
        sa.Column("notes", sa.Text()),
        _timestamp("created_at", nullable=True),
        _timestamp("updated_at", nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_swap_requests_from_user", "swap_requests", ["from_user_id", "created_at"])
    op.create_index("ix_swap_requests_to_user", "swap_requests", ["to_user_id", "created_at"])
    op.create_index("ix_swap_requests_status", "swap_requests", ["status"])

    op.create_table(
        "feedbacks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "swap_request_id", sa.String(36),
            sa.ForeignKey("swap_requests.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("from_user_id", sa.String(36), nullable=False),
        sa.Column("to_user_id", sa.String(36), nullable=False),
        sa.Column("from_user", postgresql.JSONB(), nullable=False),
        sa.Column("to_user", postgresql.JSONB(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        _timestamp("created_at", nullable=True),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_feedbacks_rating_range"),
    )
    op.create_index("ix_feedbacks_to_user", "feedbacks", ["to_user_id", "created_at"])
    op.create_index("ix_feedbacks_swap", "feedbacks", ["swap_request_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false()),
        sa.Column("related_id", sa.String(36)),
        _timestamp("created_at", nullable=True),
    )
    op.create_index("ix_notifications_user_time", "notifications", ["user_id", "created_at"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reporter_id", sa.String(36), nullable=False),
        sa.Column("reported_user_id", sa.String(36)),
        sa.Column("reported_swap_id", sa.String(36)),
        sa.Column("reason", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _timestamp("created_at", nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        sa.Column("resolved_by", sa.String(36)),
    )
    op.create_index("ix_reports_status_time", "reports", ["status", "created_at"])


def downgrade() -> None:
    """Drop every SkillSwap table."""
    op.drop_index("ix_reports_status_time", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_notifications_user_time", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_feedbacks_swap", table_name="feedbacks")
    op.drop_index("ix_feedbacks_to_user", table_name="feedbacks")
    op.drop_table("feedbacks")
    op.drop_index("ix_swap_requests_status", table_name="swap_requests")
    op.drop_index("ix_swap_requests_to_user", table_name="swap_requests")
    op.drop_index("ix_swap_requests_from_user", table_name="swap_requests")
    op.drop_table("swap_requests")
    op.drop_table("user_badges")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_trust_desc", table_name="users")
    op.drop_table("users")
