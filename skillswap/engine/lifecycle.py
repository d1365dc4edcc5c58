"""
skillswap.engine.lifecycle — Swap Request State Machine
========================================================

Transition table::

    pending  → accepted | rejected | cancelled
    accepted → completed | cancelled
    rejected | cancelled | completed → deleted
    deleted  → (terminal)

:func:`plan_transition` checks both the table and who is asking: only the
two participants may move a request, and only the recipient may accept or
reject it.  It is pure; the service layer persists whatever it returns.
"""

from __future__ import annotations

import enum

from skillswap.database.models import SwapStatus

__all__ = [
    "ACTION_TARGETS",
    "RECIPIENT_ONLY_ACTIONS",
    "TRANSITIONS",
    "SwapAction",
    "SwapPermissionError",
    "SwapTransitionError",
    "can_transition",
    "plan_transition",
]


class SwapAction(enum.StrEnum):
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"
    CANCEL = "cancel"
    DELETE = "delete"


TRANSITIONS: dict[SwapStatus, frozenset[SwapStatus]] = {
    SwapStatus.PENDING: frozenset({
        SwapStatus.ACCEPTED, SwapStatus.REJECTED, SwapStatus.CANCELLED,
    }),
    SwapStatus.ACCEPTED: frozenset({SwapStatus.COMPLETED, SwapStatus.CANCELLED}),
    SwapStatus.REJECTED: frozenset({SwapStatus.DELETED}),
    SwapStatus.CANCELLED: frozenset({SwapStatus.DELETED}),
    SwapStatus.COMPLETED: frozenset({SwapStatus.DELETED}),
    SwapStatus.DELETED: frozenset(),
}

ACTION_TARGETS: dict[SwapAction, SwapStatus] = {
    SwapAction.ACCEPT: SwapStatus.ACCEPTED,
    SwapAction.REJECT: SwapStatus.REJECTED,
    SwapAction.COMPLETE: SwapStatus.COMPLETED,
    SwapAction.CANCEL: SwapStatus.CANCELLED,
    SwapAction.DELETE: SwapStatus.DELETED,
}

RECIPIENT_ONLY_ACTIONS: frozenset[SwapAction] = frozenset({
    SwapAction.ACCEPT, SwapAction.REJECT,
})


class SwapTransitionError(ValueError):
    """The requested action is not allowed from the request's current status."""

    def __init__(self, current: SwapStatus, action: SwapAction) -> None:
        self.current = current
        self.action = action
        super().__init__(
            f"Cannot {action.value} a swap request that is {current.value}."
        )


class SwapPermissionError(PermissionError):
    """The actor is not allowed to perform the action on this request."""


def can_transition(current: SwapStatus, target: SwapStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def plan_transition(
    *,
    current: str,
    action: SwapAction,
    actor_id: str,
    from_user_id: str,
    to_user_id: str,
) -> SwapStatus:
    """Validate *action* by *actor_id* and return the status to persist.

    Raises
    ------
    SwapPermissionError
        If the actor is not a participant, or is the requester trying to
        accept/reject their own request.
    SwapTransitionError
        If the transition table does not allow the move.
    """
    if actor_id not in (from_user_id, to_user_id):
        raise SwapPermissionError("Only the two participants can change this swap request.")
    if action in RECIPIENT_ONLY_ACTIONS and actor_id != to_user_id:
        raise SwapPermissionError(
            f"Only the recipient can {action.value} this swap request."
        )

    status = SwapStatus(current)
    target = ACTION_TARGETS[action]
    if not can_transition(status, target):
        raise SwapTransitionError(status, action)
    return target
