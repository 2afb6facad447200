from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ..registry import SessionRegistry
from ..schemas import RoomDetail, RoomSummary

router = APIRouter(prefix="", tags=["rooms"])


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(registry: SessionRegistry = Depends(get_registry)):
    return registry.summaries()


@router.get("/rooms/{room_id}", response_model=RoomDetail)
async def room_detail(room_id: str, registry: SessionRegistry = Depends(get_registry)):
    room = registry.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return RoomDetail(
        room_id=room.room_id,
        members=room.member_names(),
        language=room.language,
        buffer=room.buffer,
    )
