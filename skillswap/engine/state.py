"""
skillswap.engine.state — Client-Side State & Reducers
=======================================================

Immutable state structs for a SkillSwap client plus the pure functions that
produce the next state.  Every reducer returns a new object; nothing here
touches the network.

Failures are recorded with :func:`with_swap_error` /
:func:`with_notification_error`, which set ``error`` and leave the entity
lists exactly as they were.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from skillswap.database.models import SwapStatus
from skillswap.engine.records import NotificationView, SwapRequestView


# ---------------------------------------------------------------------------
# Swap requests
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SwapState:
    requests: tuple[SwapRequestView, ...] = ()
    loading: bool = False
    error: str | None = None

    def get(self, swap_id: str) -> SwapRequestView | None:
        for req in self.requests:
            if req.id == swap_id:
                return req
        return None


def _newest_first(requests: Iterable[SwapRequestView]) -> tuple[SwapRequestView, ...]:
    return tuple(sorted(
        requests,
        key=lambda r: r.created_at.timestamp() if r.created_at else 0.0,
        reverse=True,
    ))


def apply_swap_snapshot(state: SwapState, snapshot: Iterable[SwapRequestView]) -> SwapState:
    """Replace the list with a full server snapshot (deleted rows dropped)."""
    visible = (r for r in snapshot if r.status != SwapStatus.DELETED)
    return replace(state, requests=_newest_first(visible), loading=False, error=None)


def upsert_swap(state: SwapState, swap: SwapRequestView) -> SwapState:
    """Insert or replace one request by id; a deleted request is removed."""
    if swap.status == SwapStatus.DELETED:
        return drop_swap(state, swap.id)
    others = [r for r in state.requests if r.id != swap.id]
    return replace(state, requests=_newest_first([swap, *others]), error=None)


def drop_swap(state: SwapState, swap_id: str) -> SwapState:
    return replace(
        state,
        requests=tuple(r for r in state.requests if r.id != swap_id),
        error=None,
    )


def set_swap_status(state: SwapState, swap_id: str, status: str) -> SwapState:
    """Optimistically move one request to *status* before the server confirms."""
    current = state.get(swap_id)
    if current is None:
        return state
    return upsert_swap(state, current.model_copy(update={"status": status}))


def restore_swap(
    state: SwapState, swap_id: str, previous: SwapRequestView | None,
) -> SwapState:
    """Put one request back as it was; ``None`` means it was not listed."""
    if previous is None:
        return drop_swap(state, swap_id)
    return upsert_swap(state, previous)


def with_swap_error(state: SwapState, message: str) -> SwapState:
    return replace(state, loading=False, error=message)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class NotificationState:
    notifications: tuple[NotificationView, ...] = ()
    error: str | None = None

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.is_read)


def apply_notification_snapshot(
    state: NotificationState, snapshot: Iterable[NotificationView],
) -> NotificationState:
    ordered = sorted(
        snapshot,
        key=lambda n: n.created_at.timestamp() if n.created_at else 0.0,
        reverse=True,
    )
    return replace(state, notifications=tuple(ordered), error=None)


def mark_notification_read(state: NotificationState, notification_id: str) -> NotificationState:
    return replace(state, notifications=tuple(
        n.model_copy(update={"is_read": True}) if n.id == notification_id else n
        for n in state.notifications
    ))


def mark_all_read(state: NotificationState) -> NotificationState:
    return replace(state, notifications=tuple(
        n if n.is_read else n.model_copy(update={"is_read": True})
        for n in state.notifications
    ))


def mark_unread(state: NotificationState, notification_ids: Iterable[str]) -> NotificationState:
    """Undo read marks on *notification_ids*; ids no longer listed are ignored."""
    ids = set(notification_ids)
    return replace(state, notifications=tuple(
        n.model_copy(update={"is_read": False}) if n.id in ids else n
        for n in state.notifications
    ))


def with_notification_error(state: NotificationState, message: str) -> NotificationState:
    return replace(state, error=message)
