from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel


class OutcomeStatus(str, Enum):
    """Result of processing one event.

    Only OK mutates state. ROOM_FULL is reported to the requester; the others
    are dropped silently (they are expected races, not faults).
    """
    OK = "ok"
    ROOM_FULL = "room_full"
    DUPLICATE_JOIN = "duplicate_join"
    NOT_IN_ROOM = "not_in_room"
    TARGET_UNREACHABLE = "target_unreachable"
    INVALID = "invalid"


class Delivery(NamedTuple):
    target: str
    message: dict


class Outcome(BaseModel):
    status: OutcomeStatus
    deliveries: List[Delivery] = []
    room_id: Optional[str] = None
    members: List[str] = []

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK
