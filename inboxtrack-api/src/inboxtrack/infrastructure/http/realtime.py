"""WebSocket channel for live application changes."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger

from inboxtrack.infrastructure.realtime.hub import SubscriptionHub, get_subscription_hub


router = APIRouter()


@router.websocket("/ws/{user_id}")
async def subscribe_changes(
    websocket: WebSocket,
    user_id: str,
    hub: SubscriptionHub = Depends(get_subscription_hub),
) -> None:
    """
    Join the live channel for one user.

    Frames are {"kind": "created" | "updated" | "deleted", "payload": {...}}.
    Events published while disconnected are not replayed; clients refresh
    through GET /users/{user_id}/applications on (re)connect.
    """
    await websocket.accept()
    logger.info(f"WebSocket joined for user {user_id}")

    async with hub.subscribe(user_id) as queue:
        # Inbound frames (text or binary) are ignored; receiving only detects disconnect
        receiver = asyncio.ensure_future(websocket.receive())
        getter: asyncio.Future | None = None
        try:
            while True:
                if getter is None:
                    getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)

                if receiver in done:
                    if receiver.result()["type"] == "websocket.disconnect":
                        break
                    receiver = asyncio.ensure_future(websocket.receive())

                if getter in done:
                    event = getter.result()
                    getter = None
                    await websocket.send_json(event.model_dump(mode="json"))
        except WebSocketDisconnect:
            pass
        finally:
            receiver.cancel()
            if getter is not None:
                getter.cancel()
            logger.info(f"WebSocket left for user {user_id}")
