"""HTTP endpoints and the websocket protocol end to end."""

from __future__ import annotations

import time
from typing import Any, Dict, List

from fastapi import FastAPI
from fastapi.testclient import TestClient

from fourline.app import create_app
from fourline.config import Settings


def _receive(ws: Any, count: int) -> List[Dict[str, Any]]:
    return [ws.receive_json() for _ in range(count)]


def _wait_for_removal(app: FastAPI, room_id: str, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while room_id in app.state.registry and time.monotonic() < deadline:
        time.sleep(0.01)
    assert room_id not in app.state.registry


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_and_read_room(client: TestClient, app: FastAPI) -> None:
    created = client.post("/rooms")
    assert created.status_code == 201
    body = created.json()
    room_id = body["room_id"]
    assert body["join_url"] == f"/room/{room_id}"
    assert room_id in app.state.registry

    fetched = client.get(f"/rooms/{room_id}")
    assert fetched.status_code == 200
    state = fetched.json()
    assert state["type"] == "state"
    assert state["current_turn"] == "black"
    assert state["game_over"] is False
    assert state["placement"] == "gravity"
    assert len(state["grid"]) == 8

    listed = client.get("/rooms").json()
    assert [summary["room_id"] for summary in listed] == [room_id]


def test_unknown_room_is_404(client: TestClient) -> None:
    response = client.get("/rooms/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"] == "Room not found"


def test_two_players_and_a_spectator(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws/game") as black:
        assigned, state, occupancy = _receive(black, 3)
        assert assigned["type"] == "role_assigned" and assigned["role"] == "black"
        assert state["type"] == "state"
        assert occupancy["seated"] == 1

        with client.websocket_connect("/ws/game") as white:
            assigned, _, _, ready = _receive(white, 4)
            assert assigned["role"] == "white"
            assert ready["type"] == "ready"
            assert [m["type"] for m in _receive(black, 2)] == ["occupancy", "ready"]

            with client.websocket_connect("/ws/game") as spectator:
                assigned, _, occupancy = _receive(spectator, 3)
                assert assigned["role"] == "spectator"
                assert occupancy["spectators"] == 1
                _receive(black, 1)
                _receive(white, 1)

                spectator.send_json({"type": "move", "row": 7, "col": 0})
                rejected = spectator.receive_json()
                assert rejected["type"] == "move_rejected"
                assert rejected["reason"] == "NotAPlayer"

                white.send_json({"type": "move", "row": 7, "col": 0})
                assert white.receive_json()["reason"] == "NotYourTurn"

                black.send_json({"type": "move", "row": 6, "col": 0})
                assert black.receive_json()["reason"] == "UnsupportedCell"

                black.send_json({"type": "move", "r": 7, "c": 0})
                for ws in (black, white, spectator):
                    update, turn = _receive(ws, 2)
                    assert update == {"type": "board_updated", "row": 7, "col": 0, "role": "black"}
                    assert turn == {"type": "turn_changed", "role": "white"}

            # spectator left
            assert [m["type"] for m in _receive(black, 2)] == ["participant_left", "occupancy"]
            _receive(white, 2)

        # white left: the game resets for black
        left, occupancy, reset = _receive(black, 3)
        assert left["role"] == "white"
        assert occupancy["seated"] == 1
        assert reset["type"] == "session_reset"
        assert reset["grid"][7][0] is None
        assert "game" in app.state.registry

    _wait_for_removal(app, "game")


def test_vertical_four_wins_and_restart(client: TestClient) -> None:
    with client.websocket_connect("/ws/duel") as black, client.websocket_connect("/ws/duel") as white:
        _receive(black, 5)
        _receive(white, 4)

        moves = [(black, 7, 0), (white, 7, 1), (black, 6, 0), (white, 6, 1), (black, 5, 0), (white, 5, 1)]
        for ws, row, col in moves:
            ws.send_json({"type": "move", "row": row, "col": col})
            _receive(black, 2)
            _receive(white, 2)

        black.send_json({"type": "move", "row": 4, "col": 0})
        update, over = _receive(white, 2)
        assert update["type"] == "board_updated"
        assert over == {"type": "game_over", "winner": "black", "line": [[4, 0], [5, 0], [6, 0], [7, 0]]}
        _receive(black, 2)

        white.send_json({"type": "move", "row": 4, "col": 1})
        assert white.receive_json()["reason"] == "SessionTerminal"

        white.send_json({"type": "restart"})
        for ws in (black, white):
            reset = ws.receive_json()
            assert reset["type"] == "session_reset"
            assert reset["game_over"] is False
            assert reset["winner"] is None
            assert reset["current_turn"] == "black"
            assert all(cell is None for line in reset["grid"] for cell in line)


def test_create_over_websocket_then_join() -> None:
    app = create_app(Settings())
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "create"})
            created = ws.receive_json()
            assert created["type"] == "room_created"

            ws.send_json({"type": "join", "room_id": created["room_id"]})
            assigned = ws.receive_json()
            assert assigned["role"] == "black"
            assert assigned["room_id"] == created["room_id"]

            ws.send_text("{broken")
            ws.receive_json()
            ws.receive_json()
            assert ws.receive_json()["reason"] == "MalformedPayload"


def test_created_room_is_pruned_when_nobody_joins() -> None:
    app = create_app(Settings(empty_room_ttl=0.05))
    with TestClient(app) as client:
        room_id = client.post("/rooms").json()["room_id"]
        deadline = time.monotonic() + 2.0
        while room_id in app.state.registry and time.monotonic() < deadline:
            time.sleep(0.02)
        assert client.get(f"/rooms/{room_id}").status_code == 404


def test_binary_frame_is_rejected_without_leaving_the_room(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws/bytes") as black, client.websocket_connect("/ws/bytes") as white:
        _receive(black, 5)
        _receive(white, 4)
        black.send_json({"type": "move", "row": 7, "col": 3})
        _receive(black, 2)
        _receive(white, 2)

        white.send_bytes(b"\x00garbage")
        rejected = white.receive_json()
        assert rejected["type"] == "move_rejected"
        assert rejected["reason"] == "MalformedPayload"
        assert rejected["action"] is None

        room = app.state.registry.get("bytes")
        assert len(room.players) == 2
        assert room.grid.get(7, 3) == "black"

        white.send_json({"type": "move", "row": 7, "col": 4})
        for ws in (black, white):
            update, turn = _receive(ws, 2)
            assert update == {"type": "board_updated", "row": 7, "col": 4, "role": "white"}
            assert turn == {"type": "turn_changed", "role": "black"}

    _wait_for_removal(app, "bytes")
