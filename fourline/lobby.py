"""Helpers for listing live rooms."""
from __future__ import annotations

from typing import List

from .registry import RoomRegistry
from .schemas import RoomSummary


def collect_room_summaries(registry: RoomRegistry, open_only: bool = False) -> List[RoomSummary]:
    """Return a summary of every room, oldest first.

    With *open_only* only rooms that still have a free seat are listed.
    """
    summaries: List[RoomSummary] = []
    for room in sorted(registry.rooms(), key=lambda r: r.created_at):
        if open_only and room.is_full():
            continue
        summaries.append(room.summary())
    return summaries


__all__ = ["collect_room_summaries"]
