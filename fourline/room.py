from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .config import GameRules
from .constants import SEATED_ROLES, Role
from .grid import Coord, Grid
from .schemas import Occupancy, RoomState, RoomSummary, SeatMap, SessionReset

# NOTE: ``Room`` holds no transport objects. Websockets live in
# ``fourline.connections``; a room only knows connection ids.


class Room:
    """Authoritative state of one game: grid, seats, roles, turn and game-over latch."""

    def __init__(self, room_id: str, rules: Optional[GameRules] = None):
        self.room_id = room_id
        self.rules = rules or GameRules()
        self.grid = Grid(self.rules.board_size, self.rules.placement)
        # seat role -> connection id occupying it
        self.seats: Dict[Role, Optional[str]] = {role: None for role in SEATED_ROLES}
        # every member (players and spectators): connection id -> role
        self.roles: Dict[str, Role] = {}
        self.current_turn: Role = Role.BLACK
        self.game_over: bool = False
        self.winner: Optional[Role] = None
        self.winning_line: List[Coord] = []
        self.created_at = datetime.now(timezone.utc)

        # Serialises actions against this room; see ``fourline.lifecycle``.
        self.lock = asyncio.Lock()
        # Set once the room has been dropped from its registry.
        self.closed: bool = False
        # Task pruning the room if it stays empty after creation
        self.cleanup_task: Optional[asyncio.Task] = None

    # -------------------- Membership -------------------- #

    @property
    def players(self) -> List[str]:
        """Seated connection ids in seat order (black first)."""
        return [cid for cid in (self.seats[role] for role in SEATED_ROLES) if cid is not None]

    @property
    def spectators(self) -> List[str]:
        return [cid for cid, role in self.roles.items() if role is Role.SPECTATOR]

    @property
    def members(self) -> List[str]:
        return list(self.roles)

    def role_of(self, connection_id: str) -> Optional[Role]:
        return self.roles.get(connection_id)

    def is_member(self, connection_id: str) -> bool:
        return connection_id in self.roles

    def is_empty(self) -> bool:
        return not self.roles

    def is_full(self) -> bool:
        return all(self.seats[role] is not None for role in SEATED_ROLES)

    def seat(self, connection_id: str) -> Role:
        """Give *connection_id* the first free seat, or make it a spectator."""
        existing = self.roles.get(connection_id)
        if existing is not None:
            return existing
        role = Role.SPECTATOR
        for seat_role in SEATED_ROLES:
            if self.seats[seat_role] is None:
                self.seats[seat_role] = connection_id
                role = seat_role
                break
        self.roles[connection_id] = role
        return role

    def unseat(self, connection_id: str) -> Optional[Role]:
        """Drop *connection_id* from the room, returning the role it held."""
        role = self.roles.pop(connection_id, None)
        if role in SEATED_ROLES and self.seats[role] == connection_id:
            self.seats[role] = None
        return role

    # -------------------- Game state -------------------- #

    def reset(self) -> None:
        """Fresh grid, black to move, game-over latch cleared. Seats are kept."""
        self.grid.reset()
        self.current_turn = Role.BLACK
        self.game_over = False
        self.winner = None
        self.winning_line = []

    def other_seat(self, role: Role) -> Role:
        return Role.WHITE if role is Role.BLACK else Role.BLACK

    # -------------------- Snapshots -------------------- #

    def seat_map(self) -> SeatMap:
        return SeatMap(black=self.seats[Role.BLACK], white=self.seats[Role.WHITE])

    def occupancy(self) -> Occupancy:
        return Occupancy(
            room_id=self.room_id,
            players=self.seat_map(),
            seated=len(self.players),
            spectators=len(self.spectators),
        )

    def snapshot(self, reset: bool = False) -> RoomState:
        """Return the full room state; ``reset=True`` tags it as a reset broadcast."""
        model = SessionReset if reset else RoomState
        return model(
            room_id=self.room_id,
            grid=[list(line) for line in self.grid.cells],
            current_turn=self.current_turn,
            players=self.seat_map(),
            game_over=self.game_over,
            winner=self.winner,
            board_size=self.rules.board_size,
            win_length=self.rules.win_length,
            placement=self.rules.placement,
        )

    def summary(self) -> RoomSummary:
        return RoomSummary(
            room_id=self.room_id,
            seated=len(self.players),
            spectators=len(self.spectators),
            game_over=self.game_over,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"Room({self.room_id!r}, players={self.players}, spectators={len(self.spectators)})"


__all__ = ["Room"]
