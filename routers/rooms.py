from fastapi import APIRouter, Depends, HTTPException, Request

from lifecycle import ConnectionLifecycle
from logging_config import get_logger
from registry import Room
from schemas.rooms import RoomListResponse, RoomSummary

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_hub(request: Request) -> ConnectionLifecycle:
    return request.app.state.hub


def summarize(room: Room) -> RoomSummary:
    return RoomSummary(
        room_id=room.id,
        members=list(room.members),
        count=len(room.members),
        created_at=room.created_at,
        history_size=len(room.history),
    )


@rooms_router.get("", response_model=RoomListResponse)
async def list_rooms(hub: ConnectionLifecycle = Depends(get_hub)):
    """Read-only listing of live rooms with their members, for operational inspection."""
    rooms = [summarize(room) for room in hub.registry.list_rooms()]
    logger.debug(f"Room listing requested: {len(rooms)} rooms")
    return RoomListResponse(rooms=rooms, total_rooms=len(rooms))


@rooms_router.get("/{room_id}", response_model=RoomSummary)
async def get_room_details(room_id: str, hub: ConnectionLifecycle = Depends(get_hub)):
    room = hub.registry.get(room_id)
    if room is None:
        logger.info(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")
    return summarize(room)
