from __future__ import annotations

import pytest

from fourline.config import GameRules
from fourline.constants import Placement
from fourline.errors import SessionNotFound
from fourline.lobby import collect_room_summaries
from fourline.game_logic import join_room
from fourline.registry import RoomRegistry


def test_get_or_create_is_idempotent() -> None:
    registry = RoomRegistry()
    first = registry.get_or_create("abc")
    second = registry.get_or_create("abc")
    assert first is second
    assert len(registry) == 1
    assert "abc" in registry


def test_fresh_room_state() -> None:
    room = RoomRegistry(GameRules(board_size=6, placement=Placement.FREE)).get_or_create("abc")
    assert room.grid.size == 6
    assert room.grid.is_empty()
    assert room.players == []
    assert room.game_over is False
    assert room.current_turn.value == "black"


def test_create_generates_distinct_ids() -> None:
    registry = RoomRegistry()
    ids = {registry.create().room_id for _ in range(50)}
    assert len(ids) == 50
    assert len(registry) == 50


def test_require_unknown_room_raises() -> None:
    with pytest.raises(SessionNotFound):
        RoomRegistry().require("missing")


def test_remove_is_safe_and_closes_room() -> None:
    registry = RoomRegistry()
    registry.remove("missing")
    room = registry.get_or_create("abc")
    registry.bind("x", "abc")
    registry.remove("abc")
    assert room.closed is True
    assert registry.get("abc") is None
    assert registry.resolve("x") is None


def test_connection_lookup() -> None:
    registry = RoomRegistry()
    room = registry.get_or_create("abc")
    assert registry.resolve("x") is None
    registry.bind("x", "abc")
    assert registry.resolve("x") is room
    assert registry.unbind("x") == "abc"
    assert registry.resolve("x") is None
    assert registry.unbind("x") is None


def test_room_summaries_can_hide_full_rooms() -> None:
    registry = RoomRegistry()
    full = registry.get_or_create("full")
    join_room(full, "x")
    join_room(full, "y")
    join_room(registry.get_or_create("open"), "z")

    assert [s.room_id for s in collect_room_summaries(registry)] == ["full", "open"]
    assert [s.room_id for s in collect_room_summaries(registry, open_only=True)] == ["open"]
    summary = collect_room_summaries(registry)[0]
    assert summary.seated == 2
    assert summary.spectators == 0
