"""
tests/test_notification_service.py — Per-User Inbox (DB)
==========================================================
"""

from __future__ import annotations

import pytest

from skillswap.services import notification_service


def _note(db_engine, user, title="Hello", **kw):
    return notification_service.create_notification(
        db_engine,
        user_id=user.id,
        type=kw.pop("type", "system"),
        title=title,
        message=kw.pop("message", f"{title} message"),
        **kw,
    )


class TestCreateAndList:
    def test_create_defaults_unread(self, db_engine, make_user, recording_hub):
        alice = make_user()
        note = _note(db_engine, alice, related_id="swap-1", hub=recording_hub)

        assert note.is_read is False
        assert note.type == "system"
        assert note.related_id == "swap-1"
        assert note.created_at is not None
        assert recording_hub.published == ["notifications"]

    def test_unknown_type_rejected(self, db_engine, make_user):
        alice = make_user()
        with pytest.raises(ValueError):
            _note(db_engine, alice, type="carrier_pigeon")

    def test_list_newest_first_and_scoped(self, db_engine, make_user):
        alice, bob = make_user(), make_user()
        _note(db_engine, alice, "one")
        _note(db_engine, alice, "two")
        _note(db_engine, bob, "other")

        titles = [n.title for n in notification_service.list_notifications(db_engine, alice.id)]
        assert titles == ["two", "one"]

    def test_limit(self, db_engine, make_user):
        alice = make_user()
        for i in range(5):
            _note(db_engine, alice, f"n{i}")
        assert len(notification_service.list_notifications(db_engine, alice.id, limit=2)) == 2


class TestReadState:
    def test_mark_read(self, db_engine, make_user):
        alice = make_user()
        note = _note(db_engine, alice)
        assert notification_service.unread_count(db_engine, alice.id) == 1

        updated = notification_service.mark_read(db_engine, note.id, alice.id)
        assert updated.is_read is True
        assert notification_service.unread_count(db_engine, alice.id) == 0

    def test_mark_read_is_owner_only(self, db_engine, make_user):
        alice, bob = make_user(), make_user()
        note = _note(db_engine, alice)
        assert notification_service.mark_read(db_engine, note.id, bob.id) is None
        assert notification_service.unread_count(db_engine, alice.id) == 1

    def test_mark_read_unknown(self, db_engine, make_user):
        alice = make_user()
        assert notification_service.mark_read(db_engine, "nope", alice.id) is None

    def test_mark_all_read_counts_only_unread(self, db_engine, make_user, recording_hub):
        alice, bob = make_user(), make_user()
        first = _note(db_engine, alice)
        _note(db_engine, alice)
        _note(db_engine, alice)
        _note(db_engine, bob)
        notification_service.mark_read(db_engine, first.id, alice.id)

        assert notification_service.mark_all_read(db_engine, alice.id, hub=recording_hub) == 2
        assert notification_service.unread_count(db_engine, alice.id) == 0
        assert notification_service.unread_count(db_engine, bob.id) == 1
        assert recording_hub.published == ["notifications"]

    def test_mark_all_read_nothing_to_do(self, db_engine, make_user, recording_hub):
        alice = make_user()
        assert notification_service.mark_all_read(db_engine, alice.id, hub=recording_hub) == 0
        assert recording_hub.published == []


class TestBroadcast:
    def test_all_non_banned_users(self, db_engine, make_user, set_user_fields):
        alice, bob, carol = make_user(), make_user(), make_user()
        set_user_fields(carol.id, is_banned=True)

        sent = notification_service.broadcast(db_engine, title="Maintenance", message="Tonight")
        assert sent == 2
        for user in (alice, bob):
            (note,) = notification_service.list_notifications(db_engine, user.id)
            assert note.type == "system"
            assert note.title == "Maintenance"
            assert note.message == "Tonight"
        assert notification_service.list_notifications(db_engine, carol.id) == []

    def test_explicit_targets_deduplicated(self, db_engine, make_user):
        alice, bob = make_user(), make_user()
        sent = notification_service.broadcast(
            db_engine, title="Hi", message="Just you", user_ids=[alice.id, alice.id],
        )
        assert sent == 1
        assert notification_service.list_notifications(db_engine, bob.id) == []

    def test_unknown_ids_skipped(self, db_engine, make_user):
        alice = make_user()
        sent = notification_service.broadcast(
            db_engine, title="Hi", message="m", user_ids=["ghost", alice.id, "nobody"],
        )
        assert sent == 1
        assert notification_service.list_notifications(db_engine, "ghost") == []
        assert len(notification_service.list_notifications(db_engine, alice.id)) == 1

    def test_only_unknown_ids_sends_nothing(self, db_engine, make_user, recording_hub):
        make_user()
        sent = notification_service.broadcast(
            db_engine, title="Hi", message="m", user_ids=["ghost"], hub=recording_hub,
        )
        assert sent == 0
        assert recording_hub.published == []

    def test_empty_list_means_everyone(self, db_engine, make_user):
        make_user(), make_user()
        assert notification_service.broadcast(db_engine, title="t", message="m", user_ids=[]) == 2
