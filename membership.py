from typing import List

from chat import ChatRelay
from constants import MAX_MEMBERS
from logging_config import get_logger
from negotiation import NegotiationRouter
from outcomes import Delivery, Outcome, OutcomeStatus
from registry import RoomRegistry
from schemas.messages import ChatHistory, ChatMessage, RoomFull, UserLeft, UsersInRoom

logger = get_logger(__name__)


class MembershipController:
    def __init__(self, registry: RoomRegistry, chat: ChatRelay, router: NegotiationRouter,
                 max_members: int = MAX_MEMBERS):
        self.registry = registry
        self.chat = chat
        self.router = router
        self.max_members = max_members

    def join(self, connection_id: str, room_id: str) -> Outcome:
        """Add a connection to a room.

        Deliveries, in order: the new membership snapshot to every member, the
        chat backlog to the joiner, a "joined" notice to the others, and one
        offer_request per existing member. A connection bound to another room
        leaves it first.
        """
        room = self.registry.get(room_id)
        # A member re-sending join_room is a duplicate even when the room is full
        if room is not None and room.has_member(connection_id):
            logger.debug(f"User {connection_id} is already in room {room_id}")
            return Outcome(status=OutcomeStatus.DUPLICATE_JOIN, room_id=room_id, members=list(room.members))

        if room is not None and len(room.members) >= self.max_members:
            logger.warning(f"Join rejected: room {room_id} is full ({len(room.members)}/{self.max_members})")
            return Outcome(
                status=OutcomeStatus.ROOM_FULL,
                deliveries=[Delivery(connection_id, RoomFull(room_id=room_id).to_wire())],
                room_id=room_id,
                members=list(room.members),
            )

        deliveries: List[Delivery] = []
        previous_room_id = self.registry.room_of(connection_id)
        if previous_room_id is not None:
            logger.info(f"User {connection_id} switching from room {previous_room_id} to {room_id}")
            deliveries.extend(self.leave(connection_id).deliveries)

        room = self.registry.get_or_create(room_id)
        existing = list(room.members)
        backlog = list(room.history)
        room.add_member(connection_id)
        self.registry.bind(connection_id, room_id)
        members = list(room.members)
        logger.info(f"User {connection_id} joined room {room_id} ({len(members)}/{self.max_members})")

        snapshot = UsersInRoom(members=members).to_wire()
        deliveries.extend(Delivery(member, snapshot) for member in members)
        deliveries.append(Delivery(connection_id, ChatHistory(entries=backlog).to_wire()))

        notice = ChatMessage.from_entry(self.chat.append_system(room_id, f"{connection_id} joined")).to_wire()
        deliveries.extend(Delivery(member, notice) for member in existing)

        deliveries.extend(self.router.bootstrap(connection_id, existing))
        return Outcome(status=OutcomeStatus.OK, deliveries=deliveries, room_id=room_id, members=members)

    def leave(self, connection_id: str) -> Outcome:
        """Remove a connection from its room; shared by explicit leave and disconnect.

        Calling it again for the same connection is a no-op.
        """
        room_id = self.registry.unbind(connection_id)
        if room_id is None:
            logger.debug(f"User {connection_id} is not in a room, nothing to leave")
            return Outcome(status=OutcomeStatus.NOT_IN_ROOM)

        room = self.registry.get(room_id)
        if room is None or not room.remove_member(connection_id):
            logger.warning(f"User {connection_id} was bound to room {room_id} but not a member of it")
            return Outcome(status=OutcomeStatus.NOT_IN_ROOM, room_id=room_id)

        remaining = list(room.members)
        logger.info(f"User {connection_id} left room {room_id} ({len(remaining)} remaining)")

        notice = ChatMessage.from_entry(self.chat.append_system(room_id, f"{connection_id} left")).to_wire()
        departed = UserLeft(participant=connection_id).to_wire()
        snapshot = UsersInRoom(members=remaining).to_wire()
        deliveries: List[Delivery] = []
        for member in remaining:
            deliveries.append(Delivery(member, notice))
            deliveries.append(Delivery(member, departed))
            deliveries.append(Delivery(member, snapshot))

        self.registry.remove_if_empty(room_id)
        return Outcome(status=OutcomeStatus.OK, deliveries=deliveries, room_id=room_id, members=remaining)
