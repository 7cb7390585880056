from typing import Any, Callable, Iterable, List

from logging_config import get_logger
from outcomes import Delivery, Outcome, OutcomeStatus
from schemas.messages import NegotiationMessage, OfferRequest

logger = get_logger(__name__)


class NegotiationRouter:
    """Relays offers, answers and ICE candidates between two participants.

    The router keeps no state of its own. Targets are resolved through
    is_connected; a target that is already gone is not an error, the message
    is simply dropped and the sender is not told.

    Mesh formation: when a participant joins, every member already in the room
    gets an offer_request naming the joiner, so the existing side of each pair
    always creates the offer. The joiner only ever answers, which rules out
    both peers offering to each other at once.
    """

    def __init__(self, is_connected: Callable[[str], bool]):
        self.is_connected = is_connected

    def forward(self, kind: str, sender: str, target: str, payload: Any) -> Outcome:
        if not self.is_connected(target):
            logger.debug(f"Dropping {kind} from {sender}: target {target} is not connected")
            return Outcome(status=OutcomeStatus.TARGET_UNREACHABLE)

        message = NegotiationMessage(type=kind, from_=sender, payload=payload).to_wire()
        logger.debug(f"Forwarding {kind} from {sender} to {target}")
        return Outcome(status=OutcomeStatus.OK, deliveries=[Delivery(target, message)])

    def forward_offer(self, sender: str, target: str, payload: Any) -> Outcome:
        return self.forward("offer", sender, target, payload)

    def forward_answer(self, sender: str, target: str, payload: Any) -> Outcome:
        return self.forward("answer", sender, target, payload)

    def forward_ice_candidate(self, sender: str, target: str, payload: Any) -> Outcome:
        return self.forward("ice_candidate", sender, target, payload)

    def bootstrap(self, joiner: str, existing_members: Iterable[str]) -> List[Delivery]:
        message = OfferRequest(from_=joiner).to_wire()
        deliveries = [Delivery(member, message) for member in existing_members if member != joiner]
        for delivery in deliveries:
            logger.debug(f"Requesting offer from {delivery.target} to {joiner}")
        return deliveries
