from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Query, Request

from ..lifecycle import RoomLifecycle
from ..lobby import collect_room_summaries
from ..schemas import RoomResponse, RoomState, RoomSummary

router = APIRouter(prefix="", tags=["rooms"])


def _lifecycle(request: Request) -> RoomLifecycle:
    return request.app.state.lifecycle


@router.post("/rooms", response_model=RoomResponse, status_code=201)
async def create_room(request: Request):
    room = _lifecycle(request).create_room()
    return RoomResponse(room_id=room.room_id, join_url=f"/room/{room.room_id}")


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(request: Request, open_only: bool = Query(default=False)):
    return collect_room_summaries(_lifecycle(request).registry, open_only=open_only)


@router.get("/rooms/{room_id}", response_model=RoomState)
async def read_room(room_id: str, request: Request):
    room = _lifecycle(request).registry.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.snapshot()
