from pydantic import BaseModel
from typing import List


class RoomSummary(BaseModel):
    room_id: str
    members: List[str]
    count: int
    created_at: str
    history_size: int

class RoomListResponse(BaseModel):
    rooms: List[RoomSummary]
    total_rooms: int

class StatusResponse(BaseModel):
    status: str
    service: str
    rooms: int
    connections: int
