"""In-memory registry of live rooms.

One ``RoomRegistry`` is built per application and handed to everything that
needs it. Besides the rooms themselves it keeps the connection → room lookup
used when a client action omits its room id. No method awaits, so each call
is atomic on the event loop.
"""
from __future__ import annotations

import logging
import secrets
from typing import Dict, Iterator, List, Optional

from .config import GameRules
from .constants import ROOM_ID_BYTES
from .errors import SessionNotFound
from .room import Room

logger = logging.getLogger(__name__)


def generate_room_id() -> str:
    """URL-safe random room id."""
    return secrets.token_urlsafe(ROOM_ID_BYTES)


class RoomRegistry:
    def __init__(self, rules: Optional[GameRules] = None):
        self.rules = rules or GameRules()
        self._rooms: Dict[str, Room] = {}
        # connection id -> room id it currently belongs to
        self._membership: Dict[str, str] = {}

    # -------------------- Rooms -------------------- #

    def create(self) -> Room:
        """Create an empty room under a fresh id."""
        room_id = generate_room_id()
        while room_id in self._rooms:
            room_id = generate_room_id()
        return self.get_or_create(room_id)

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def require(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise SessionNotFound(f"Room {room_id!r} not found.")
        return room

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, self.rules)
            self._rooms[room_id] = room
            logger.info("Room %s created", room_id)
        return room

    def remove(self, room_id: str) -> None:
        room = self._rooms.pop(room_id, None)
        if room is None:
            return
        room.closed = True
        if room.cleanup_task is not None and not room.cleanup_task.done():
            room.cleanup_task.cancel()
        for cid in [cid for cid, rid in self._membership.items() if rid == room_id]:
            self._membership.pop(cid, None)
        logger.info("Room %s removed", room_id)

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    # -------------------- Connection lookup -------------------- #

    def bind(self, connection_id: str, room_id: str) -> None:
        self._membership[connection_id] = room_id

    def unbind(self, connection_id: str) -> Optional[str]:
        return self._membership.pop(connection_id, None)

    def room_id_for(self, connection_id: str) -> Optional[str]:
        return self._membership.get(connection_id)

    def resolve(self, connection_id: str) -> Optional[Room]:
        """Return the room *connection_id* is a member of, if any."""
        room_id = self._membership.get(connection_id)
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    # -------------------- Container protocol -------------------- #

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(self.rooms())


__all__ = ["RoomRegistry", "generate_room_id"]
