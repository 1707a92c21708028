from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role held by a connection inside a room."""

    BLACK = "black"
    WHITE = "white"
    SPECTATOR = "spectator"


class Placement(str, Enum):
    """Placement discipline applied to every grid of a process."""

    GRAVITY = "gravity"  # pieces stack from the bottom row up
    FREE = "free"


# Seat precedence: the first joiner plays black and moves first.
SEATED_ROLES: tuple[Role, Role] = (Role.BLACK, Role.WHITE)

BOARD_SIZE = 8
WIN_LENGTH = 4

# Axis directions scanned from a freshly placed piece.
DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),   # vertical
    (0, 1),   # horizontal
    (1, 1),   # diagonal down-right
    (1, -1),  # diagonal down-left
)

ROOM_ID_BYTES = 6
EMPTY_ROOM_TTL = 300.0

# Events queued per connection before new ones are dropped.
OUTBOX_SIZE = 256

__all__ = [
    "Role",
    "Placement",
    "SEATED_ROLES",
    "BOARD_SIZE",
    "WIN_LENGTH",
    "DIRECTIONS",
    "ROOM_ID_BYTES",
    "EMPTY_ROOM_TTL",
    "OUTBOX_SIZE",
]
