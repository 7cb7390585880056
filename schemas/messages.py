from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter
from typing import Annotated, Any, List, Literal, Optional, Union


# Client -> hub

class JoinRoomRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["join_room"]
    room_id: str = Field(alias="roomId", min_length=1)

class LeaveRoomRequest(BaseModel):
    type: Literal["leave_room"]

class NegotiationRequest(BaseModel):
    """Offer, answer or ICE candidate addressed to one participant.

    The payload is carried opaquely and never inspected by the hub.
    """
    type: Literal["offer", "answer", "ice_candidate"]
    to: str = Field(min_length=1)
    payload: Any = Field(default=None, validation_alias=AliasChoices("payload", "offer", "answer", "candidate"))

class ChatMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["chat_message"]
    room_id: Optional[str] = Field(default=None, alias="roomId")
    content: str = Field(validation_alias=AliasChoices("content", "message"))


InboundEvent = Annotated[
    Union[JoinRoomRequest, LeaveRoomRequest, NegotiationRequest, ChatMessageRequest],
    Field(discriminator="type"),
]
inbound_event_adapter = TypeAdapter(InboundEvent)


# Hub -> client

class ChatEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    sender: str
    content: str
    timestamp: str

class OutboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

class Me(OutboundMessage):
    type: Literal["me"] = "me"
    id: str

class RoomFull(OutboundMessage):
    type: Literal["room_full"] = "room_full"
    room_id: str = Field(alias="roomId")

class UsersInRoom(OutboundMessage):
    type: Literal["users_in_room"] = "users_in_room"
    members: List[str]

class OfferRequest(OutboundMessage):
    type: Literal["offer_request"] = "offer_request"
    from_: str = Field(alias="from")

class NegotiationMessage(OutboundMessage):
    type: Literal["offer", "answer", "ice_candidate"]
    from_: str = Field(alias="from")
    payload: Any = None

class ChatMessage(OutboundMessage):
    type: Literal["chat_message"] = "chat_message"
    from_: str = Field(alias="from")
    content: str
    timestamp: str

    @classmethod
    def from_entry(cls, entry: ChatEntry) -> "ChatMessage":
        return cls(from_=entry.sender, content=entry.content, timestamp=entry.timestamp)

class ChatHistory(OutboundMessage):
    type: Literal["chat_history"] = "chat_history"
    entries: List[ChatEntry]

class UserLeft(OutboundMessage):
    type: Literal["user_left"] = "user_left"
    participant: str

class ErrorMessage(OutboundMessage):
    type: Literal["error"] = "error"
    detail: str
