"""
tests/test_admin_service.py — Moderation, Reports & Platform Stats (DB)
=========================================================================
"""

from __future__ import annotations

import pytest
from conftest import make_skill

from skillswap.engine.records import Skill
from skillswap.services import (
    admin_service,
    notification_service,
    swap_service,
    user_service,
)


# ===========================================================================
# Ban / unban / role
# ===========================================================================
class TestModeration:
    def test_ban_sets_state_and_notifies(self, db_engine, make_user, recording_hub):
        admin = make_user("Admin", role="admin")
        alice = make_user("Alice")

        banned = admin_service.ban_user(
            db_engine, alice.id, "spam", admin_id=admin.id, hub=recording_hub,
        )
        assert banned.is_banned is True
        assert banned.ban_reason == "spam"
        assert banned.banned_at is not None
        assert recording_hub.published == ["users", "notifications"]

        (note,) = notification_service.list_notifications(db_engine, alice.id)
        assert note.type == "system"
        assert note.title == "Account Suspended"
        assert note.message == (
            "Your account has been suspended for: spam. "
            "Please contact support if you believe this is an error."
        )

    def test_unban_clears_state_and_notifies(self, db_engine, make_user):
        alice = make_user("Alice")
        admin_service.ban_user(db_engine, alice.id, "spam")
        restored = admin_service.unban_user(db_engine, alice.id)

        assert restored.is_banned is False
        assert restored.ban_reason is None
        assert restored.banned_at is None
        note = notification_service.list_notifications(db_engine, alice.id)[0]
        assert note.title == "Account Restored"
        assert note.message == "Your account has been restored. You can now use the platform normally."

    def test_banned_user_hidden_from_search(self, db_engine, make_user):
        viewer = make_user("Viewer")
        alice = make_user("Alice")
        admin_service.ban_user(db_engine, alice.id, "spam")
        assert user_service.search_users(db_engine, viewer.id) == []

    def test_unknown_user(self, db_engine):
        assert admin_service.ban_user(db_engine, "ghost", "x") is None
        assert admin_service.unban_user(db_engine, "ghost") is None
        assert admin_service.set_role(db_engine, "ghost", "admin") is None

    def test_set_role(self, db_engine, make_user):
        alice = make_user("Alice")
        assert admin_service.set_role(db_engine, alice.id, "admin").role == "admin"
        assert admin_service.set_role(db_engine, alice.id, "user").role == "user"

    def test_set_role_rejects_unknown(self, db_engine, make_user):
        alice = make_user("Alice")
        with pytest.raises(ValueError):
            admin_service.set_role(db_engine, alice.id, "superuser")

    def test_list_users_newest_first(self, db_engine, make_user):
        make_user("First")
        make_user("Second")
        assert [u.name for u in admin_service.list_users(db_engine)] == ["Second", "First"]


# ===========================================================================
# Skill descriptions
# ===========================================================================
@pytest.fixture
def described(db_engine, make_user):
    alice = make_user("Alice")
    user = user_service.update_profile(
        db_engine,
        alice.id,
        skills_offered=[
            Skill(name="Guitar", category="Music", level="expert", description="Jazz standards"),
            Skill(name="Chess", category="Games", level="beginner"),
        ],
    )
    guitar, chess = user.skills_offered
    return alice, guitar["id"], chess["id"]


class TestSkillDescriptions:
    def test_approve_sets_status_and_notifies(self, db_engine, described, recording_hub):
        alice, guitar_id, _ = described
        user = admin_service.approve_skill_description(
            db_engine, alice.id, guitar_id, hub=recording_hub,
        )
        guitar = user.skills_offered[0]
        assert guitar["description_status"] == "approved"
        assert guitar["rejection_reason"] is None
        assert recording_hub.published == ["users", "notifications"]

        (note,) = notification_service.list_notifications(db_engine, alice.id)
        assert note.title == "Skill Description Approved"
        assert note.message == "Your description for Guitar has been approved."
        assert note.related_id == guitar_id

    def test_reject_records_reason(self, db_engine, described):
        alice, guitar_id, _ = described
        user = admin_service.reject_skill_description(
            db_engine, alice.id, guitar_id, "Contains a phone number",
        )
        guitar = user.skills_offered[0]
        assert guitar["description_status"] == "rejected"
        assert guitar["rejection_reason"] == "Contains a phone number"

        (note,) = notification_service.list_notifications(db_engine, alice.id)
        assert note.title == "Skill Description Rejected"
        assert note.message == (
            "Your description for Guitar was rejected: Contains a phone number. "
            "Edit it from your profile to submit it again."
        )

    def test_other_skills_untouched(self, db_engine, described):
        alice, guitar_id, _ = described
        user = admin_service.approve_skill_description(db_engine, alice.id, guitar_id)
        chess = user.skills_offered[1]
        assert chess["name"] == "Chess"
        assert chess["description_status"] is None

    def test_nothing_to_review(self, db_engine, described, recording_hub):
        alice, _, chess_id = described
        with pytest.raises(admin_service.NothingToReviewError, match="Chess"):
            admin_service.approve_skill_description(
                db_engine, alice.id, chess_id, hub=recording_hub,
            )
        assert recording_hub.published == []
        assert notification_service.list_notifications(db_engine, alice.id) == []

    def test_unknown_user_or_skill(self, db_engine, described):
        alice, guitar_id, _ = described
        assert admin_service.approve_skill_description(db_engine, "ghost", guitar_id) is None
        assert admin_service.reject_skill_description(db_engine, alice.id, "nope", "x") is None


# ===========================================================================
# Reports
# ===========================================================================
class TestReports:
    def test_create_and_list(self, db_engine, make_user, recording_hub):
        alice, bob = make_user(), make_user()
        report = admin_service.create_report(
            db_engine,
            reporter_id=alice.id,
            reported_user_id=bob.id,
            reason="Harassment",
            description="Rude messages",
            hub=recording_hub,
        )
        assert report.status == "pending"
        assert report.resolved_at is None
        assert recording_hub.published == ["reports"]
        assert [r.id for r in admin_service.list_reports(db_engine, status="pending")] == [report.id]

    def test_report_needs_a_target(self, db_engine, make_user):
        alice = make_user()
        with pytest.raises(ValueError):
            admin_service.create_report(
                db_engine, reporter_id=alice.id, reason="?", description="?",
            )

    def test_resolve(self, db_engine, make_user):
        admin, alice = make_user(role="admin"), make_user()
        report = admin_service.create_report(
            db_engine, reporter_id=alice.id, reported_swap_id="swap-1",
            reason="No-show", description="Never turned up",
        )
        done = admin_service.resolve_report(db_engine, report.id, "dismissed", admin.id)

        assert done.status == "dismissed"
        assert done.resolved_by == admin.id
        assert done.resolved_at is not None
        assert admin_service.list_reports(db_engine, status="pending") == []
        assert len(admin_service.list_reports(db_engine)) == 1

    def test_resolve_back_to_pending_rejected(self, db_engine, make_user):
        alice = make_user()
        report = admin_service.create_report(
            db_engine, reporter_id=alice.id, reported_user_id=alice.id,
            reason="x", description="y",
        )
        with pytest.raises(ValueError):
            admin_service.resolve_report(db_engine, report.id, "pending", alice.id)

    def test_resolve_unknown(self, db_engine):
        assert admin_service.resolve_report(db_engine, "nope", "resolved", "admin") is None


# ===========================================================================
# Platform stats
# ===========================================================================
class TestPlatformStats:
    def test_counts(self, db_engine, make_user):
        alice = make_user(offered=["Guitar", "Piano"])
        bob = make_user(offered=["Guitar"])
        carol = make_user()
        admin_service.ban_user(db_engine, carol.id, "spam")

        def _open():
            return swap_service.create_swap(
                db_engine, from_user_id=alice.id, to_user_id=bob.id,
                offered=[make_skill("Guitar")], wanted=[make_skill("Piano")],
            )

        _open()
        done = _open()
        swap_service.accept_swap(db_engine, done.id, bob.id)
        swap_service.complete_swap(db_engine, done.id, alice.id)
        gone = _open()
        swap_service.cancel_swap(db_engine, gone.id, alice.id)
        swap_service.delete_swap(db_engine, gone.id, alice.id)
        admin_service.create_report(
            db_engine, reporter_id=alice.id, reported_user_id=carol.id,
            reason="x", description="y",
        )

        stats = admin_service.platform_stats(db_engine)
        assert stats.total_users == 3
        assert stats.active_users == 2
        assert stats.banned_users == 1
        assert stats.total_swaps == 2
        assert stats.pending_swaps == 1
        assert stats.completed_swaps == 1
        assert stats.pending_reports == 1
        assert stats.top_skills[0] == ("Guitar", 2)

        as_dict = stats.to_dict()
        assert as_dict["top_skills"][0] == {"name": "Guitar", "count": 2}

    def test_empty_platform(self, db_engine):
        stats = admin_service.platform_stats(db_engine)
        assert stats.total_users == 0
        assert stats.total_swaps == 0
        assert stats.top_skills == []
