"""
skillswap.api.routes.live — WebSocket snapshot feeds
======================================================

``/ws/notifications`` and ``/ws/swaps`` push the caller's full inbox /
swap list on connect and again after every change.  Authentication is the
same JWT as the HTTP API, passed as ``?token=``; a bad token closes the
socket with code 4001.

Server → client frames::

    {"type": "notifications", "notifications": [...], "unread": 3}
    {"type": "swaps", "swaps": [...]}

Anything the client sends is read and ignored; a disconnect cancels the
live subscription.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import partial

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from jwt.exceptions import InvalidTokenError

from skillswap.api.deps import decode_token, get_engine, get_hub
from skillswap.database.engine import run_db
from skillswap.database.models import User
from skillswap.engine.live import LiveQueryHub, Subscription
from skillswap.engine.records import notification_view, swap_view
from skillswap.services import notification_service, swap_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ws", tags=["live"])

AUTH_FAILED = 4001


# ---------------------------------------------------------------------------
# Snapshot queries (run on a worker thread via run_db)
# ---------------------------------------------------------------------------
def notifications_snapshot(engine, user_id: str) -> dict:
    rows = notification_service.list_notifications(engine, user_id)
    items = [notification_view(n).model_dump(mode="json") for n in rows]
    return {
        "type": "notifications",
        "notifications": items,
        "unread": sum(1 for n in items if not n["is_read"]),
    }


def swaps_snapshot(engine, user_id: str) -> dict:
    rows = swap_service.list_for_user(engine, user_id)
    return {"type": "swaps", "swaps": [swap_view(r).model_dump(mode="json") for r in rows]}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
async def _authenticate(websocket: WebSocket, token: str | None, engine) -> User | None:
    try:
        payload = decode_token(token or "")
    except InvalidTokenError as exc:
        await websocket.close(code=AUTH_FAILED, reason=f"Authentication failed: {exc}")
        return None

    user = await run_db(user_service.get_user, engine, payload["sub"])
    if user is None or user.is_banned:
        await websocket.close(code=AUTH_FAILED, reason="Authentication failed")
        return None
    return user


async def _stream(websocket: WebSocket, sub: Subscription) -> None:
    """Forward snapshots until either side stops."""

    async def _drain() -> None:
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            sub.cancel()

    receiver = asyncio.create_task(_drain())
    try:
        async for snapshot in sub:
            await websocket.send_json(snapshot)
    except WebSocketDisconnect:
        pass
    finally:
        sub.cancel()
        receiver.cancel()


async def _serve(
    websocket: WebSocket,
    token: str | None,
    engine,
    hub: LiveQueryHub,
    collection: str,
    query: Callable[..., dict],
) -> None:
    user = await _authenticate(websocket, token, engine)
    if user is None:
        return
    await websocket.accept()
    sub = hub.subscribe(collection, partial(query, engine, user.id))
    logger.info("Live %s feed opened for user %s", collection, user.id)
    try:
        await _stream(websocket, sub)
    finally:
        logger.info("Live %s feed closed for user %s", collection, user.id)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.websocket("/notifications")
async def notifications_feed(
    websocket: WebSocket,
    token: str | None = Query(None),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    await _serve(websocket, token, engine, hub, "notifications", notifications_snapshot)


@router.websocket("/swaps")
async def swaps_feed(
    websocket: WebSocket,
    token: str | None = Query(None),
    engine=Depends(get_engine),
    hub: LiveQueryHub = Depends(get_hub),
):
    await _serve(websocket, token, engine, hub, "swapRequests", swaps_snapshot)
