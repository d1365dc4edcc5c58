"""
tests/test_state.py — Client-Side State Reducers
==================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from skillswap.engine.records import NotificationView, SwapRequestView, UserSnapshot
from skillswap.engine.state import (
    NotificationState,
    SwapState,
    apply_notification_snapshot,
    apply_swap_snapshot,
    drop_swap,
    mark_all_read,
    mark_notification_read,
    set_swap_status,
    upsert_swap,
    with_notification_error,
    with_swap_error,
)

_T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _snap(uid: str) -> UserSnapshot:
    return UserSnapshot(id=uid, name=uid.title(), email=f"{uid}@example.com", trust_score=100, points=0)


def _swap(sid: str, minutes: int = 0, status: str = "pending") -> SwapRequestView:
    return SwapRequestView(
        id=sid,
        from_user_id="alice",
        to_user_id="bob",
        from_user=_snap("alice"),
        to_user=_snap("bob"),
        offered=[],
        wanted=[],
        status=status,
        created_at=_T0 + timedelta(minutes=minutes),
    )


def _note(nid: str, minutes: int = 0, is_read: bool = False) -> NotificationView:
    return NotificationView(
        id=nid,
        user_id="alice",
        type="system",
        title=nid,
        message=nid,
        is_read=is_read,
        created_at=_T0 + timedelta(minutes=minutes),
    )


# ===========================================================================
# Swap state
# ===========================================================================
class TestSwapState:
    def test_snapshot_sorted_and_filtered(self):
        state = apply_swap_snapshot(
            SwapState(loading=True, error="old"),
            [_swap("a", 0), _swap("b", 5), _swap("gone", 9, "deleted")],
        )
        assert [r.id for r in state.requests] == ["b", "a"]
        assert state.loading is False
        assert state.error is None

    def test_upsert_replaces_by_id(self):
        state = apply_swap_snapshot(SwapState(), [_swap("a", 0), _swap("b", 5)])
        state = upsert_swap(state, _swap("a", 0, "accepted"))
        assert [r.id for r in state.requests] == ["b", "a"]
        assert state.get("a").status == "accepted"

    def test_upsert_deleted_removes(self):
        state = apply_swap_snapshot(SwapState(), [_swap("a")])
        assert upsert_swap(state, _swap("a", status="deleted")).requests == ()

    def test_drop(self):
        state = apply_swap_snapshot(SwapState(), [_swap("a"), _swap("b", 1)])
        assert [r.id for r in drop_swap(state, "a").requests] == ["b"]

    def test_set_status_is_a_new_object(self):
        before = apply_swap_snapshot(SwapState(), [_swap("a")])
        after = set_swap_status(before, "a", "cancelled")
        assert after.get("a").status == "cancelled"
        assert before.get("a").status == "pending"

    def test_set_status_unknown_id(self):
        state = apply_swap_snapshot(SwapState(), [_swap("a")])
        assert set_swap_status(state, "zzz", "accepted") is state

    def test_error_keeps_requests(self):
        state = apply_swap_snapshot(SwapState(), [_swap("a")])
        failed = with_swap_error(state, "Network down")
        assert failed.error == "Network down"
        assert failed.requests == state.requests


# ===========================================================================
# Notification state
# ===========================================================================
class TestNotificationState:
    def test_snapshot_newest_first_and_unread(self):
        state = apply_notification_snapshot(
            NotificationState(error="old"),
            [_note("a", 0), _note("b", 3, is_read=True), _note("c", 1)],
        )
        assert [n.id for n in state.notifications] == ["b", "c", "a"]
        assert state.unread_count == 2
        assert state.error is None

    def test_mark_one_read(self):
        state = apply_notification_snapshot(NotificationState(), [_note("a"), _note("b", 1)])
        state = mark_notification_read(state, "a")
        assert state.unread_count == 1
        assert {n.id: n.is_read for n in state.notifications} == {"a": True, "b": False}

    def test_mark_all_read(self):
        state = apply_notification_snapshot(NotificationState(), [_note("a"), _note("b", 1)])
        assert mark_all_read(state).unread_count == 0

    def test_error_keeps_notifications(self):
        state = apply_notification_snapshot(NotificationState(), [_note("a")])
        failed = with_notification_error(state, "boom")
        assert failed.error == "boom"
        assert failed.notifications == state.notifications
