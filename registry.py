from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, Iterable, List, NamedTuple, Optional

from constants import HISTORY_LIMIT
from logging_config import get_logger
from schemas.messages import ChatEntry

logger = get_logger(__name__)


class Room:
    """Membership and bounded chat backlog of one room.

    members keeps join order and never holds duplicates. history is a ring
    buffer: once full, appending evicts the oldest entry.
    """

    def __init__(self, room_id: str, history_limit: int = HISTORY_LIMIT):
        self.id = room_id
        self.members: List[str] = []
        self.history: Deque[ChatEntry] = deque(maxlen=history_limit)
        self.created_at = datetime.now(timezone.utc).isoformat()

    def has_member(self, connection_id: str) -> bool:
        return connection_id in self.members

    def add_member(self, connection_id: str):
        if connection_id not in self.members:
            self.members.append(connection_id)

    def remove_member(self, connection_id: str) -> bool:
        if connection_id in self.members:
            self.members.remove(connection_id)
            return True
        return False

    def is_empty(self) -> bool:
        return not self.members

    def copy(self) -> "Room":
        clone = Room(self.id, self.history.maxlen)
        clone.members = list(self.members)
        clone.history.extend(self.history)
        clone.created_at = self.created_at
        return clone

    def __repr__(self):
        return f"Room(id={self.id!r}, members={self.members!r}, history={len(self.history)})"


class RegistryCheckpoint(NamedTuple):
    rooms: Dict[str, Optional[Room]]
    bindings: Dict[str, Optional[str]]


class RoomRegistry:
    """In-memory owner of every room and of the connection -> room bindings."""

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self.history_limit = history_limit
        self._rooms: Dict[str, Room] = {}
        self._bindings: Dict[str, str] = {}

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, self.history_limit)
            self._rooms[room_id] = room
            logger.info(f"Room {room_id} created")
        return room

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def remove_if_empty(self, room_id: str) -> bool:
        room = self._rooms.get(room_id)
        if room is None or not room.is_empty():
            return False
        del self._rooms[room_id]
        logger.info(f"Room {room_id} is empty, removed it along with {len(room.history)} chat entries")
        return True

    def bind(self, connection_id: str, room_id: str):
        self._bindings[connection_id] = room_id

    def unbind(self, connection_id: str) -> Optional[str]:
        return self._bindings.pop(connection_id, None)

    def room_of(self, connection_id: str) -> Optional[str]:
        return self._bindings.get(connection_id)

    def list_rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def checkpoint(self, room_ids: Iterable[str], connection_ids: Iterable[str]) -> RegistryCheckpoint:
        """Copy the given rooms and bindings so a failed event can be undone."""
        rooms = {}
        for room_id in room_ids:
            room = self._rooms.get(room_id)
            rooms[room_id] = room.copy() if room is not None else None
        bindings = {connection_id: self._bindings.get(connection_id) for connection_id in connection_ids}
        return RegistryCheckpoint(rooms=rooms, bindings=bindings)

    def rollback(self, checkpoint: RegistryCheckpoint):
        for room_id, room in checkpoint.rooms.items():
            if room is None:
                self._rooms.pop(room_id, None)
            else:
                self._rooms[room_id] = room.copy()
        for connection_id, room_id in checkpoint.bindings.items():
            if room_id is None:
                self._bindings.pop(connection_id, None)
            else:
                self._bindings[connection_id] = room_id
        logger.debug(f"Registry rolled back rooms={list(checkpoint.rooms)} bindings={list(checkpoint.bindings)}")

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
