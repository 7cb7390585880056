import uuid
from typing import Any, List, Optional, Set, Tuple

from pydantic import ValidationError

from chat import ChatRelay
from constants import HISTORY_LIMIT, MAX_MEMBERS
from logging_config import get_logger
from membership import MembershipController
from negotiation import NegotiationRouter
from outcomes import Delivery, Outcome, OutcomeStatus
from registry import RoomRegistry
from schemas.messages import (
    ChatMessageRequest,
    ErrorMessage,
    JoinRoomRequest,
    LeaveRoomRequest,
    Me,
    NegotiationRequest,
    inbound_event_adapter,
)

logger = get_logger(__name__)


class ConnectionLifecycle:
    """Entry point of the hub: one instance per process.

    Every inbound event is turned into exactly one controller call and
    processed to completion before the caller hands the resulting deliveries
    to the transport. If processing raises, the rooms and bindings it touched
    are restored and nothing is delivered.
    """

    def __init__(self, registry: Optional[RoomRegistry] = None, max_members: int = MAX_MEMBERS,
                 history_limit: int = HISTORY_LIMIT):
        self.registry = registry if registry is not None else RoomRegistry(history_limit=history_limit)
        self._connections: Set[str] = set()
        self.chat = ChatRelay(self.registry)
        self.router = NegotiationRouter(self.is_connected)
        self.membership = MembershipController(self.registry, self.chat, self.router, max_members=max_members)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def connect(self, connection_id: Optional[str] = None) -> Tuple[str, List[Delivery]]:
        connection_id = connection_id or str(uuid.uuid4())
        self._connections.add(connection_id)
        logger.info(f"User connected: {connection_id}")
        return connection_id, [Delivery(connection_id, Me(id=connection_id).to_wire())]

    def handle(self, event: Any, connection_id: str) -> List[Delivery]:
        if not self.is_connected(connection_id):
            logger.warning(f"Ignoring event from unknown connection {connection_id}")
            return []

        try:
            message = inbound_event_adapter.validate_python(event)
        except ValidationError as e:
            logger.warning(f"Rejecting malformed event from {connection_id}: {e.error_count()} validation error(s)")
            return self.reject(connection_id, f"Invalid event: {e.errors(include_url=False)[0]['msg']}")

        return self._guarded(connection_id, message).deliveries

    def disconnect(self, connection_id: str) -> List[Delivery]:
        if not self.is_connected(connection_id):
            return []
        logger.info(f"User disconnected: {connection_id}")
        try:
            outcome = self._guarded(connection_id, LeaveRoomRequest(type="leave_room"))
            if outcome.status is OutcomeStatus.INVALID:
                self._evict(connection_id)
            return outcome.deliveries
        finally:
            self._connections.discard(connection_id)

    def _evict(self, connection_id: str):
        # A gone connection must not keep its seat; drop it without notifying anyone
        room_id = self.registry.unbind(connection_id)
        room = self.registry.get(room_id) if room_id is not None else None
        if room is None:
            return
        room.remove_member(connection_id)
        self.registry.remove_if_empty(room_id)
        logger.warning(f"Evicted {connection_id} from room {room_id} after its leave failed")

    def reject(self, connection_id: str, detail: str) -> List[Delivery]:
        return [Delivery(connection_id, ErrorMessage(detail=detail).to_wire())]

    def _guarded(self, connection_id: str, message) -> Outcome:
        rooms = {self.registry.room_of(connection_id)}
        if isinstance(message, JoinRoomRequest):
            rooms.add(message.room_id)
        rooms.discard(None)
        checkpoint = self.registry.checkpoint(rooms, [connection_id])
        try:
            return self._dispatch(connection_id, message)
        except Exception as e:
            logger.error(f"Error processing {message.type} from {connection_id}: {e}", exc_info=True)
            self.registry.rollback(checkpoint)
            return Outcome(status=OutcomeStatus.INVALID)

    def _dispatch(self, connection_id: str, message) -> Outcome:
        if isinstance(message, JoinRoomRequest):
            return self.membership.join(connection_id, message.room_id)
        if isinstance(message, LeaveRoomRequest):
            return self.membership.leave(connection_id)
        if isinstance(message, ChatMessageRequest):
            return self.chat.send(connection_id, message.content)
        if isinstance(message, NegotiationRequest):
            if message.type == "offer":
                return self.router.forward_offer(connection_id, message.to, message.payload)
            if message.type == "answer":
                return self.router.forward_answer(connection_id, message.to, message.payload)
            return self.router.forward_ice_candidate(connection_id, message.to, message.payload)
        raise TypeError(f"Unhandled event type {type(message).__name__}")
