"""Core rules of a room.

Every function here operates only on an in-memory ``fourline.room.Room`` and
never touches a websocket. Each returns the events its transition produced as
``Envelope`` objects; the lifecycle layer delivers them. A refused action
raises a ``fourline.errors.Rejection`` before anything is mutated.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .constants import SEATED_ROLES, Role
from .errors import NotAPlayer, NotYourTurn, SessionTerminal
from .room import Room
from .schemas import (
    BoardUpdated,
    GameOver,
    ParticipantLeft,
    RoleAssigned,
    RoomReady,
    ServerEvent,
    TurnChanged,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Envelope:
    """An outbound event plus its audience.

    ``to`` names a single connection; ``None`` means every member of the room.
    """

    event: ServerEvent
    to: Optional[str] = None

    @property
    def is_broadcast(self) -> bool:
        return self.to is None


# ---------------------------------------------------------------------------
# Seating
# ---------------------------------------------------------------------------

def join_room(room: Room, connection_id: str) -> List[Envelope]:
    """Seat *connection_id* (or make it a spectator) and describe the result.

    Joining never fails. A connection that is already a member keeps its role
    and simply receives its role and the current snapshot again.
    """
    already_member = room.is_member(connection_id)
    was_full = room.is_full()
    role = room.seat(connection_id)

    envelopes = [
        Envelope(RoleAssigned(room_id=room.room_id, connection_id=connection_id, role=role), to=connection_id),
        Envelope(room.snapshot(), to=connection_id),
    ]
    if already_member:
        return envelopes

    logger.info("Room %s: %s joined as %s", room.room_id, connection_id, role.value)
    envelopes.append(Envelope(room.occupancy()))
    if not was_full and room.is_full():
        envelopes.append(Envelope(RoomReady(room_id=room.room_id, players=room.seat_map())))
    return envelopes


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------

def apply_move(room: Room, connection_id: str, row: int, col: int) -> List[Envelope]:
    """Validate and apply one move.

    Checks run in a fixed order and the first failure is raised: game over,
    not a player, not your turn, then the grid's own placement checks
    (bounds, gravity support, occupancy).
    """
    if room.game_over:
        raise SessionTerminal()

    role = room.role_of(connection_id)
    if role not in SEATED_ROLES:
        raise NotAPlayer()

    if role is not room.current_turn:
        raise NotYourTurn()

    room.grid.set(row, col, role)
    envelopes = [Envelope(BoardUpdated(row=row, col=col, role=role))]

    line = room.grid.winning_line_through(row, col, room.rules.win_length)
    if line is not None:
        room.game_over = True
        room.winner = role
        room.winning_line = line
        logger.info("Room %s: %s wins at (%d, %d)", room.room_id, role.value, row, col)
        envelopes.append(Envelope(GameOver(winner=role, line=line)))
        return envelopes

    room.current_turn = room.other_seat(role)
    envelopes.append(Envelope(TurnChanged(role=room.current_turn)))

    if room.grid.is_full():
        room.game_over = True
        logger.info("Room %s: grid full, game drawn", room.room_id)
        envelopes.append(Envelope(GameOver(winner=None)))
    return envelopes


# ---------------------------------------------------------------------------
# Restart & departure
# ---------------------------------------------------------------------------

def restart_room(room: Room, connection_id: str) -> List[Envelope]:
    """Reset the game for everyone; any member of the room may ask."""
    if not room.is_member(connection_id):
        raise NotAPlayer("Only members of the room can restart it.")
    room.reset()
    logger.info("Room %s: restarted by %s", room.room_id, connection_id)
    return [Envelope(room.snapshot(reset=True))]


def leave_room(room: Room, connection_id: str) -> List[Envelope]:
    """Remove *connection_id* from the room.

    A seated player leaving resets the game for whoever remains. The caller
    drops the room from its registry once ``room.is_empty()``.
    """
    role = room.unseat(connection_id)
    if role is None:
        return []
    logger.info("Room %s: %s (%s) left", room.room_id, connection_id, role.value)
    if room.is_empty():
        return []

    envelopes = [
        Envelope(ParticipantLeft(connection_id=connection_id, role=role)),
        Envelope(room.occupancy()),
    ]
    if role in SEATED_ROLES:
        room.reset()
        envelopes.append(Envelope(room.snapshot(reset=True)))
    return envelopes


__all__ = [
    "Envelope",
    "join_room",
    "apply_move",
    "restart_room",
    "leave_room",
]
