from datetime import datetime, timezone

from constants import SYSTEM_SENDER
from logging_config import get_logger
from outcomes import Delivery, Outcome, OutcomeStatus
from registry import Room, RoomRegistry
from schemas.messages import ChatEntry, ChatMessage

logger = get_logger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatRelay:
    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    def send(self, connection_id: str, content: str) -> Outcome:
        """Append a participant's message to its room and fan it out to everyone else.

        The room is taken from the connection's binding. A message from a
        connection that already left (or never joined) is dropped.
        """
        room_id = self.registry.room_of(connection_id)
        room = self.registry.get(room_id) if room_id is not None else None
        if room is None:
            logger.debug(f"Dropping chat message from {connection_id}: not in a room")
            return Outcome(status=OutcomeStatus.NOT_IN_ROOM)

        entry = self._append(room, connection_id, content)
        message = ChatMessage.from_entry(entry).to_wire()
        deliveries = [Delivery(member, message) for member in room.members if member != connection_id]
        logger.debug(f"Chat message from {connection_id} in room {room_id} relayed to {len(deliveries)} members")
        return Outcome(status=OutcomeStatus.OK, deliveries=deliveries, room_id=room_id, members=list(room.members))

    def append_system(self, room_id: str, content: str) -> ChatEntry:
        room = self.registry.get_or_create(room_id)
        return self._append(room, SYSTEM_SENDER, content)

    def _append(self, room: Room, sender: str, content: str) -> ChatEntry:
        entry = ChatEntry(sender=sender, content=content, timestamp=utc_timestamp())
        room.history.append(entry)
        return entry
