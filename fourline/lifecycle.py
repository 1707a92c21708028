"""Maps websocket connections and their messages onto rooms.

``RoomLifecycle`` is the only place that touches both the registry and the
connection manager. Every action against a room runs under that room's lock
from mutation until its events are queued on the recipients' outboxes, so
the events of one action are never interleaved with another action's on the
same room. Queueing never waits on a socket; each connection's pump writes
its outbox on its own. Different rooms never share a lock.
"""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from fastapi import WebSocket
from pydantic import ValidationError

from .connections import ConnectionManager
from .constants import EMPTY_ROOM_TTL
from .errors import InternalError, MalformedPayload, Rejection, SessionNotFound
from .game_logic import Envelope, apply_move, join_room, leave_room, restart_room
from .registry import RoomRegistry
from .room import Room
from .schemas import (
    ClientMessage,
    CreateMessage,
    JoinMessage,
    MoveMessage,
    MoveRejected,
    RestartMessage,
    RoomCreated,
    client_message_adapter,
)

logger = logging.getLogger(__name__)


class RoomLifecycle:
    def __init__(
        self,
        registry: RoomRegistry,
        manager: Optional[ConnectionManager] = None,
        empty_room_ttl: float = EMPTY_ROOM_TTL,
    ):
        self.registry = registry
        self.manager = manager or ConnectionManager()
        self.empty_room_ttl = empty_room_ttl

    # ---------------------------------------------------------------------
    # Connections
    # ---------------------------------------------------------------------

    def connect(self, ws: WebSocket) -> str:
        connection_id = self.manager.register(ws)
        logger.info("Connection %s opened", connection_id)
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Forget the socket, then reconcile the room it belonged to."""
        self.manager.unregister(connection_id)
        await self.leave(connection_id)
        logger.info("Connection %s closed", connection_id)

    # ---------------------------------------------------------------------
    # Inbound messages
    # ---------------------------------------------------------------------

    async def handle_text(self, connection_id: str, raw: str) -> None:
        """Validate one raw frame and perform it; bad frames are rejected."""
        try:
            data = json.loads(raw)
        except ValueError:
            self.reject(connection_id, MalformedPayload("Message is not valid JSON."))
            return
        await self.handle_data(connection_id, data)

    async def handle_data(self, connection_id: str, data: Any) -> None:
        try:
            message = client_message_adapter.validate_python(data)
        except ValidationError as exc:
            action = data.get("type") if isinstance(data, dict) else None
            logger.debug("Malformed message from %s: %s", connection_id, exc)
            self.reject(
                connection_id,
                MalformedPayload(_describe(exc)),
                action=action if isinstance(action, str) else None,
            )
            return
        await self.perform(connection_id, message)

    async def perform(self, connection_id: str, message: ClientMessage) -> None:
        """Run *message*; any failure is reported to *connection_id* only."""
        try:
            await self.dispatch(connection_id, message)
        except Rejection as exc:
            logger.debug("Rejected %s from %s: %s", message.type, connection_id, exc.reason)
            self.reject(connection_id, exc, action=message.type)
        except Exception:
            logger.exception("Unexpected error handling %s from %s", message.type, connection_id)
            self.reject(connection_id, InternalError(), action=message.type)

    async def dispatch(self, connection_id: str, message: ClientMessage) -> None:
        if isinstance(message, CreateMessage):
            room = self.create_room()
            self.manager.send(connection_id, RoomCreated(room_id=room.room_id))
        elif isinstance(message, JoinMessage):
            await self.join(connection_id, message.room_id)
        elif isinstance(message, MoveMessage):
            await self.move(connection_id, message.row, message.col, message.room_id)
        elif isinstance(message, RestartMessage):
            await self.restart(connection_id, message.room_id)
        else:
            raise MalformedPayload(f"Unsupported message type {message.type!r}.")

    def reject(self, connection_id: str, exc: Rejection, action: Optional[str] = None) -> None:
        self.manager.send(connection_id, MoveRejected(action=action, **exc.to_dict()))

    # ---------------------------------------------------------------------
    # Actions
    # ---------------------------------------------------------------------

    def create_room(self) -> Room:
        """Create an empty room, pruned later if nobody joins it."""
        room = self.registry.create()
        try:
            room.cleanup_task = asyncio.get_running_loop().create_task(
                self._prune_if_unused(room.room_id)
            )
        except RuntimeError:
            # No running loop (plain synchronous use): nothing to schedule.
            room.cleanup_task = None
        return room

    async def join(self, connection_id: str, room_id: Optional[str] = None) -> None:
        current = self.registry.room_id_for(connection_id)
        if room_id is None:
            if current is None:
                raise SessionNotFound("Join needs a room id.")
            room_id = current
        elif current is not None and current != room_id:
            await self.leave(connection_id)

        async with self._locked_room(room_id, create=True) as room:
            envelopes = join_room(room, connection_id)
            self.registry.bind(connection_id, room.room_id)
            if room.cleanup_task is not None:
                room.cleanup_task.cancel()
                room.cleanup_task = None
            self._deliver(room, envelopes)

    async def move(self, connection_id: str, row: int, col: int, room_id: Optional[str] = None) -> None:
        async with self._locked_room(self._target(connection_id, room_id)) as room:
            envelopes = apply_move(room, connection_id, row, col)
            self._deliver(room, envelopes)

    async def restart(self, connection_id: str, room_id: Optional[str] = None) -> None:
        async with self._locked_room(self._target(connection_id, room_id)) as room:
            envelopes = restart_room(room, connection_id)
            self._deliver(room, envelopes)

    async def leave(self, connection_id: str) -> None:
        """Drop *connection_id* from its room, removing the room once empty."""
        room_id = self.registry.unbind(connection_id)
        if room_id is None:
            return
        room = self.registry.get(room_id)
        if room is None:
            return
        async with room.lock:
            if room.closed:
                return
            envelopes = leave_room(room, connection_id)
            if room.is_empty():
                self.registry.remove(room_id)
                return
            self._deliver(room, envelopes)

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _target(self, connection_id: str, room_id: Optional[str]) -> str:
        if room_id is not None:
            return room_id
        room = self.registry.resolve(connection_id)
        if room is None:
            raise SessionNotFound("You have not joined a room.")
        return room.room_id

    @asynccontextmanager
    async def _locked_room(self, room_id: str, create: bool = False) -> AsyncIterator[Room]:
        # A room may be removed while we wait for its lock; look it up again then.
        while True:
            room = self.registry.get_or_create(room_id) if create else self.registry.require(room_id)
            async with room.lock:
                if not room.closed:
                    yield room
                    return

    def _deliver(self, room: Room, envelopes: List[Envelope]) -> None:
        for envelope in envelopes:
            if envelope.is_broadcast:
                self.manager.broadcast(room.members, envelope.event)
            else:
                self.manager.send(envelope.to, envelope.event)

    async def _prune_if_unused(self, room_id: str) -> None:
        try:
            await asyncio.sleep(self.empty_room_ttl)
        except asyncio.CancelledError:
            return
        room = self.registry.get(room_id)
        if room is None:
            return
        async with room.lock:
            if not room.closed and room.is_empty():
                room.cleanup_task = None
                logger.info("Room %s pruned after %.0fs unused", room_id, self.empty_room_ttl)
                self.registry.remove(room_id)


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0] if exc.errors() else None
    if first is None:
        return MalformedPayload.default_message
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


__all__ = ["RoomLifecycle"]
