"""Pydantic schemas for every message crossing the transport boundary.

Inbound frames and outbound events are tagged by their ``type`` field; each
tag has a fixed schema so the room logic never sees unvalidated payloads.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, TypeAdapter

from .constants import Placement, Role

RoomId = Annotated[str, Field(min_length=1, max_length=64)]

# -----------------------------
# Inbound (client → server)
# -----------------------------


class _ClientMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CreateMessage(_ClientMessage):
    type: Literal["create"]


class JoinMessage(_ClientMessage):
    type: Literal["join"]
    room_id: Optional[RoomId] = None


class MoveMessage(_ClientMessage):
    type: Literal["move"]
    room_id: Optional[RoomId] = None
    # ``r``/``c`` are what the browser client sends.
    row: StrictInt = Field(validation_alias=AliasChoices("row", "r"))
    col: StrictInt = Field(validation_alias=AliasChoices("col", "c"))


class RestartMessage(_ClientMessage):
    type: Literal["restart"]
    room_id: Optional[RoomId] = None


ClientMessage = Annotated[
    Union[CreateMessage, JoinMessage, MoveMessage, RestartMessage],
    Field(discriminator="type"),
]
client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)

# -----------------------------
# Outbound (server → client)
# -----------------------------


class SeatMap(BaseModel):
    black: Optional[str] = None
    white: Optional[str] = None


class RoomCreated(BaseModel):
    type: Literal["room_created"] = "room_created"
    room_id: str


class RoleAssigned(BaseModel):
    type: Literal["role_assigned"] = "role_assigned"
    room_id: str
    connection_id: str
    role: Role


class Occupancy(BaseModel):
    type: Literal["occupancy"] = "occupancy"
    room_id: str
    players: SeatMap
    seated: int
    spectators: int


class RoomState(BaseModel):
    """Full snapshot of a room, enough for a client to redraw from scratch."""

    type: Literal["state"] = "state"
    room_id: str
    grid: List[List[Optional[Role]]]
    current_turn: Role
    players: SeatMap
    game_over: bool
    winner: Optional[Role] = None
    board_size: int
    win_length: int
    placement: Placement


class SessionReset(RoomState):
    type: Literal["session_reset"] = "session_reset"  # type: ignore[assignment]


class RoomReady(BaseModel):
    type: Literal["ready"] = "ready"
    room_id: str
    players: SeatMap


class BoardUpdated(BaseModel):
    type: Literal["board_updated"] = "board_updated"
    row: int
    col: int
    role: Role


class TurnChanged(BaseModel):
    type: Literal["turn_changed"] = "turn_changed"
    role: Role


class GameOver(BaseModel):
    type: Literal["game_over"] = "game_over"
    winner: Optional[Role] = None  # None means the grid filled up
    line: List[Tuple[int, int]] = []


class MoveRejected(BaseModel):
    type: Literal["move_rejected"] = "move_rejected"
    action: Optional[str] = None
    reason: str
    message: str


class ParticipantLeft(BaseModel):
    type: Literal["participant_left"] = "participant_left"
    connection_id: str
    role: Role


ServerEvent = Union[
    RoomCreated,
    RoleAssigned,
    Occupancy,
    RoomState,
    SessionReset,
    RoomReady,
    BoardUpdated,
    TurnChanged,
    GameOver,
    MoveRejected,
    ParticipantLeft,
]

# -----------------------------
# HTTP
# -----------------------------


class RoomResponse(BaseModel):
    room_id: str
    join_url: str


class RoomSummary(BaseModel):
    room_id: str
    seated: int
    spectators: int
    game_over: bool
    created_at: datetime


__all__ = [
    "RoomId",
    "CreateMessage",
    "JoinMessage",
    "MoveMessage",
    "RestartMessage",
    "ClientMessage",
    "client_message_adapter",
    "SeatMap",
    "RoomCreated",
    "RoleAssigned",
    "Occupancy",
    "RoomState",
    "SessionReset",
    "RoomReady",
    "BoardUpdated",
    "TurnChanged",
    "GameOver",
    "MoveRejected",
    "ParticipantLeft",
    "ServerEvent",
    "RoomResponse",
    "RoomSummary",
]
