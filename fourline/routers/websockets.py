from __future__ import annotations

import asyncio
import logging
from typing import Optional

import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..errors import MalformedPayload
from ..lifecycle import RoomLifecycle

router = APIRouter(prefix="", tags=["ws"])
logger = logging.getLogger(__name__)


async def _serve(ws: WebSocket, room_id: Optional[str]) -> None:
    lifecycle: RoomLifecycle = ws.app.state.lifecycle
    await ws.accept()
    connection_id = lifecycle.connect(ws)
    writer = asyncio.create_task(lifecycle.manager.pump(connection_id))
    try:
        if room_id is not None:
            await lifecycle.handle_data(connection_id, {"type": "join", "room_id": room_id})
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                lifecycle.reject(connection_id, MalformedPayload("Binary frames are not supported."))
                continue
            await lifecycle.handle_text(connection_id, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error on %s", connection_id)
    finally:
        writer.cancel()
        # Runs even when the endpoint task itself is being cancelled.
        with anyio.CancelScope(shield=True):
            await lifecycle.disconnect(connection_id)


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await _serve(ws, None)


@router.websocket("/ws/{room_id}")
async def room_websocket_endpoint(ws: WebSocket, room_id: str):
    await _serve(ws, room_id)
