"""Rejections raised by the room state machine.

A rejection describes client misuse, never a server fault: it is reported to
the originating connection only and leaves the room state untouched.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class Rejection(Exception):
    """Base class for every action the server refuses to apply."""

    default_message = "Action rejected."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def reason(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable rejection payload."""
        return {"reason": self.reason, "message": str(self)}


class SessionNotFound(Rejection):
    default_message = "Room not found."


class SessionTerminal(Rejection):
    default_message = "Game is over."


class NotAPlayer(Rejection):
    default_message = "Spectators cannot play."


class NotYourTurn(Rejection):
    default_message = "Not your turn."


class OutOfBounds(Rejection):
    default_message = "Invalid cell."


class UnsupportedCell(Rejection):
    default_message = "You can only place on bottom or on top of another piece."


class CellOccupied(Rejection):
    default_message = "Cell already occupied."


class MalformedPayload(Rejection):
    default_message = "Malformed message."


class InternalError(Rejection):
    """Stand-in for an unexpected fault while handling one action."""

    default_message = "Action could not be processed."


__all__ = [
    "Rejection",
    "SessionNotFound",
    "SessionTerminal",
    "NotAPlayer",
    "NotYourTurn",
    "OutOfBounds",
    "UnsupportedCell",
    "CellOccupied",
    "MalformedPayload",
    "InternalError",
]
