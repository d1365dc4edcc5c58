"""
skillswap.client — Async HTTP Client with Local State
=======================================================

Thin wrapper over :class:`httpx.AsyncClient` that keeps a
:class:`~skillswap.engine.state.SwapState` and a
:class:`~skillswap.engine.state.NotificationState` in step with the
server.

Status changes and read marks are applied optimistically.  If the call
fails, whether the server refuses (:class:`SkillSwapAPIError`) or the
request never gets an answer (:class:`httpx.HTTPError`), the touched entity
goes back to how it was, the message lands in ``state.error`` and the
exception is re-raised.  An entity a pushed snapshot replaced in the
meantime keeps the pushed version.

Snapshots pushed over the WebSocket feeds go through
:meth:`SkillSwapClient.apply_swap_snapshot` and
:meth:`SkillSwapClient.apply_notification_snapshot`.

Usage::

    async with SkillSwapClient("http://localhost:8000") as client:
        await client.login("demo@example.com", "demo123")
        await client.refresh_swaps()
        await client.accept_swap(client.swaps.requests[0].id)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from skillswap.engine.records import (
    FeedbackView,
    NotificationView,
    PublicProfile,
    Skill,
    SwapRequestView,
    UserProfile,
)
from skillswap.engine.state import (
    NotificationState,
    SwapState,
    apply_notification_snapshot,
    apply_swap_snapshot,
    mark_all_read,
    mark_notification_read,
    mark_unread,
    restore_swap,
    set_swap_status,
    upsert_swap,
    with_notification_error,
    with_swap_error,
)

logger = logging.getLogger(__name__)


class SkillSwapAPIError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


# Failures that leave local state as the server last confirmed it
_CALL_FAILURES = (SkillSwapAPIError, httpx.HTTPError)


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, SkillSwapAPIError):
        return exc.message
    return str(exc) or type(exc).__name__


def _error_message(resp: httpx.Response) -> str:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, str) and detail:
        return detail
    return resp.reason_phrase or f"HTTP {resp.status_code}"


class SkillSwapClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.token = token
        self.user: UserProfile | None = None
        self.swaps = SwapState()
        self.notifications = NotificationState()

    async def __aenter__(self) -> SkillSwapClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = await self._http.request(method, f"/api{path}", headers=headers, **kwargs)
        if resp.is_error:
            message = _error_message(resp)
            logger.info("%s %s failed: %d %s", method, path, resp.status_code, message)
            raise SkillSwapAPIError(resp.status_code, message)
        if resp.headers.get("content-type", "").startswith("application/json"):
            return resp.json()
        return resp.text

    # -------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------
    async def _start_session(self, data: dict) -> UserProfile:
        self.token = data["token"]
        self.user = UserProfile.model_validate(data["user"])
        return self.user

    async def register(self, name: str, email: str, password: str) -> UserProfile:
        data = await self._request(
            "POST", "/auth/register", json={"name": name, "email": email, "password": password},
        )
        return await self._start_session(data)

    async def login(self, email: str, password: str) -> UserProfile:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        return await self._start_session(data)

    async def me(self) -> UserProfile:
        self.user = UserProfile.model_validate(await self._request("GET", "/auth/me"))
        return self.user

    async def update_profile(self, **fields: Any) -> UserProfile:
        body = {
            k: ([s.model_dump(mode="json") if isinstance(s, Skill) else s for s in v]
                if k in ("skills_offered", "skills_wanted") else v)
            for k, v in fields.items()
        }
        self.user = UserProfile.model_validate(await self._request("PATCH", "/users/me", json=body))
        return self.user

    async def search_users(self, term: str | None = None, **filters: Any) -> list[PublicProfile]:
        params = {k: v for k, v in {"q": term, **filters}.items() if v is not None}
        data = await self._request("GET", "/users/search", params=params)
        return [PublicProfile.model_validate(u) for u in data["users"]]

    # -------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------
    async def refresh_swaps(self) -> SwapState:
        self.swaps = SwapState(requests=self.swaps.requests, loading=True)
        try:
            data = await self._request("GET", "/swaps")
        except _CALL_FAILURES as exc:
            self.swaps = with_swap_error(self.swaps, _failure_message(exc))
            raise
        self.apply_swap_snapshot(data["swaps"])
        return self.swaps

    def apply_swap_snapshot(self, snapshot: list[dict] | list[SwapRequestView]) -> SwapState:
        views = [SwapRequestView.model_validate(s) for s in snapshot]
        self.swaps = apply_swap_snapshot(self.swaps, views)
        return self.swaps

    async def create_swap(
        self,
        to_user_id: str,
        offered: list[Skill],
        wanted: list[Skill],
        message: str | None = None,
    ) -> SwapRequestView:
        try:
            data = await self._request("POST", "/swaps", json={
                "to_user_id": to_user_id,
                "offered": [s.model_dump(mode="json") for s in offered],
                "wanted": [s.model_dump(mode="json") for s in wanted],
                "message": message,
            })
        except _CALL_FAILURES as exc:
            self.swaps = with_swap_error(self.swaps, _failure_message(exc))
            raise
        swap = SwapRequestView.model_validate(data)
        self.swaps = upsert_swap(self.swaps, swap)
        return swap

    async def _transition(
        self, swap_id: str, action: str, optimistic_status: str, body: dict | None = None,
    ) -> SwapRequestView:
        previous = self.swaps.get(swap_id)
        self.swaps = set_swap_status(self.swaps, swap_id, optimistic_status)
        optimistic = self.swaps.get(swap_id)
        try:
            if action == "delete":
                data = await self._request("DELETE", f"/swaps/{swap_id}")
            else:
                data = await self._request("POST", f"/swaps/{swap_id}/{action}", json=body)
        except _CALL_FAILURES as exc:
            # A snapshot pushed while the call was in flight is newer than both.
            if self.swaps.get(swap_id) is optimistic:
                self.swaps = restore_swap(self.swaps, swap_id, previous)
            self.swaps = with_swap_error(self.swaps, _failure_message(exc))
            raise
        swap = SwapRequestView.model_validate(data)
        self.swaps = upsert_swap(self.swaps, swap)
        return swap

    async def accept_swap(self, swap_id: str, response_message: str | None = None) -> SwapRequestView:
        return await self._transition(
            swap_id, "accept", "accepted", {"response_message": response_message},
        )

    async def reject_swap(self, swap_id: str, response_message: str | None = None) -> SwapRequestView:
        return await self._transition(
            swap_id, "reject", "rejected", {"response_message": response_message},
        )

    async def complete_swap(self, swap_id: str, notes: str | None = None) -> SwapRequestView:
        return await self._transition(swap_id, "complete", "completed", {"notes": notes})

    async def cancel_swap(self, swap_id: str) -> SwapRequestView:
        return await self._transition(swap_id, "cancel", "cancelled")

    async def delete_swap(self, swap_id: str) -> None:
        await self._transition(swap_id, "delete", "deleted")

    async def submit_feedback(
        self, swap_id: str, to_user_id: str, rating: int, comment: str = "",
    ) -> FeedbackView:
        data = await self._request("POST", f"/swaps/{swap_id}/feedback", json={
            "to_user_id": to_user_id, "rating": rating, "comment": comment,
        })
        return FeedbackView.model_validate(data)

    # -------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------
    async def refresh_notifications(self) -> NotificationState:
        try:
            data = await self._request("GET", "/notifications")
        except _CALL_FAILURES as exc:
            self.notifications = with_notification_error(self.notifications, _failure_message(exc))
            raise
        self.apply_notification_snapshot(data["notifications"])
        return self.notifications

    def apply_notification_snapshot(
        self, snapshot: list[dict] | list[NotificationView],
    ) -> NotificationState:
        views = [NotificationView.model_validate(n) for n in snapshot]
        self.notifications = apply_notification_snapshot(self.notifications, views)
        return self.notifications

    def _unread_ids(self, only: str | None = None) -> set[str]:
        return {
            n.id for n in self.notifications.notifications
            if not n.is_read and (only is None or n.id == only)
        }

    def _optimistic_copies(self, ids: set[str]) -> dict[str, NotificationView]:
        return {n.id: n for n in self.notifications.notifications if n.id in ids}

    def _undo_read_marks(self, optimistic: dict[str, NotificationView], exc: Exception) -> None:
        # Entries replaced by a pushed snapshot keep the pushed state.
        current = {n.id: n for n in self.notifications.notifications}
        untouched = [nid for nid, n in optimistic.items() if current.get(nid) is n]
        self.notifications = with_notification_error(
            mark_unread(self.notifications, untouched), _failure_message(exc),
        )

    async def mark_read(self, notification_id: str) -> None:
        touched = self._unread_ids(only=notification_id)
        self.notifications = mark_notification_read(self.notifications, notification_id)
        optimistic = self._optimistic_copies(touched)
        try:
            await self._request("POST", f"/notifications/{notification_id}/read")
        except _CALL_FAILURES as exc:
            self._undo_read_marks(optimistic, exc)
            raise

    async def mark_all_read(self) -> None:
        touched = self._unread_ids()
        self.notifications = mark_all_read(self.notifications)
        optimistic = self._optimistic_copies(touched)
        try:
            await self._request("POST", "/notifications/read-all")
        except _CALL_FAILURES as exc:
            self._undo_read_marks(optimistic, exc)
            raise
