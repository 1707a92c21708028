from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Any, Dict, Iterable, List, Optional

from fastapi import WebSocket

from .constants import OUTBOX_SIZE
from .schemas import ServerEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Active websocket connections keyed by server-issued connection id.

    Each connection owns a bounded outbox drained by its own ``pump`` task.
    Sending only enqueues, so a room never waits on a slow socket. Delivery
    is at-most-once: a full outbox drops the event, a failed send stops the
    pump, nothing is retried.
    """

    def __init__(self, outbox_size: int = OUTBOX_SIZE) -> None:
        self.outbox_size = outbox_size
        self.connections: Dict[str, WebSocket] = {}
        self.outboxes: Dict[str, asyncio.Queue[Dict[str, Any]]] = {}

    def register(self, ws: WebSocket) -> str:
        connection_id = secrets.token_hex(8)
        while connection_id in self.connections:
            connection_id = secrets.token_hex(8)
        self.connections[connection_id] = ws
        self.outboxes[connection_id] = asyncio.Queue(maxsize=self.outbox_size)
        return connection_id

    def unregister(self, connection_id: str) -> Optional[WebSocket]:
        self.outboxes.pop(connection_id, None)
        return self.connections.pop(connection_id, None)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self.connections

    def __len__(self) -> int:
        return len(self.connections)

    # -------------------- Delivery -------------------- #

    def send(self, connection_id: str, event: ServerEvent) -> None:
        """Queue *event* for one connection if it is still open."""
        outbox = self.outboxes.get(connection_id)
        if outbox is None:
            return
        try:
            outbox.put_nowait(event.model_dump(mode="json"))
        except asyncio.QueueFull:
            logger.warning("Outbox of %s is full, dropping %s", connection_id, event.type)

    def broadcast(self, connection_ids: Iterable[str], event: ServerEvent) -> None:
        """Queue *event* for every connection in *connection_ids*."""
        for connection_id in list(connection_ids):
            self.send(connection_id, event)

    def pending(self, connection_id: str) -> List[Dict[str, Any]]:
        """Take every queued payload for *connection_id* without sending it."""
        outbox = self.outboxes.get(connection_id)
        payloads: List[Dict[str, Any]] = []
        while outbox is not None and not outbox.empty():
            payloads.append(outbox.get_nowait())
        return payloads

    async def pump(self, connection_id: str) -> None:
        """Write queued payloads to the socket in order until it fails."""
        ws = self.connections.get(connection_id)
        outbox = self.outboxes.get(connection_id)
        if ws is None or outbox is None:
            return
        while True:
            payload = await outbox.get()
            try:
                await ws.send_json(payload)
            except Exception as exc:
                # Client went away; its receive loop cleans up.
                logger.warning("Send to %s failed: %s", connection_id, exc)
                return


__all__ = ["ConnectionManager"]
