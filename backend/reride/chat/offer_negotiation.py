"""
Offer negotiation state machine.

WHAT: Transitions of an offer message: pending -> accepted/rejected/countered
WHY: Accepted and rejected offers are final; countered offers stay open
HOW: Pure transition function plus a negotiator that applies the payload
     change and the outcome message together
"""

import math
from typing import Literal

from .message_store import MessageStore
from ..models.message import (
    ROLES,
    OfferMessage,
    OfferPayload,
    OfferStatus,
    Role,
    TextMessage,
    other_role,
)
from ..utils.exceptions import InvalidStateError, ValidationError
from ..utils.logger import get_logger
from ..utils.offers import outcome_text

logger = get_logger(__name__)

OfferResponse = Literal["accepted", "rejected", "countered"]

RESPONSE_STATUSES: dict[str, OfferStatus] = {
    "accepted": OfferStatus.ACCEPTED,
    "rejected": OfferStatus.REJECTED,
    "countered": OfferStatus.COUNTERED,
}


def validate_price(price, field: str = "counter_price") -> float:
    """
    Check a price is a positive, finite number.

    Raises:
        ValidationError: If missing or not a positive number
    """
    if price is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError(f"{field} must be a number", field=field)
    if not math.isfinite(price) or price <= 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    return float(price)


def next_payload(
    message: OfferMessage,
    response: str,
    counter_price: float | None = None
) -> OfferPayload:
    """
    Compute the payload an offer moves to after a response.

    Args:
        message: Offer message being answered
        response: "accepted", "rejected" or "countered"
        counter_price: New reference price, required for "countered"

    Returns:
        New OfferPayload (the message itself is not modified)

    Raises:
        ValidationError: Unknown response or bad counter price
        InvalidStateError: The offer is already accepted or rejected
    """
    status = RESPONSE_STATUSES.get(response)
    if status is None:
        raise ValidationError(
            f"Unknown offer response '{response}'; expected one of {sorted(RESPONSE_STATUSES)}",
            field="response"
        )

    current = message.payload
    if current.is_terminal:
        raise InvalidStateError(message.id, current.status.value, response)

    if status is OfferStatus.COUNTERED:
        price = validate_price(counter_price, "counter_price")
        return current.model_copy(update={"status": status, "counter_price": price})

    return current.model_copy(update={"status": status})


def default_responder(message: OfferMessage) -> Role:
    """
    Role expected to answer an offer.

    A pending offer is answered by the other party; a countered offer goes
    back to its author.

    Raises:
        ValidationError: The offer has no participant author to infer from
    """
    if message.sender not in ROLES:
        raise ValidationError(
            f"responder_role is required for an offer sent by '{message.sender}'",
            field="responder_role"
        )
    if message.payload.status is OfferStatus.COUNTERED:
        return message.sender
    return other_role(message.sender)


class OfferNegotiator:
    """
    Apply offer responses to a conversation.

    WHAT: Respond to an offer and append the outcome message
    WHY: A reader must never see the payload change without the message
    HOW: Validate everything first, then run both mutations back to back
    """

    def __init__(self, messages: MessageStore):
        self._messages = messages

    def respond(
        self,
        conversation_id: str,
        message_id: int,
        response: str,
        responder_role: Role | None = None,
        counter_price: float | None = None
    ) -> tuple[OfferMessage, TextMessage]:
        """
        Respond to an offer message.

        Args:
            conversation_id: Conversation holding the offer
            message_id: Offer message id
            response: "accepted", "rejected" or "countered"
            responder_role: Role of the participant responding
                (defaults to default_responder(offer))
            counter_price: Required for "countered"

        Returns:
            (updated offer message, appended outcome message)
        """
        if responder_role is not None and responder_role not in ROLES:
            raise ValidationError(f"Unknown role: {responder_role}", field="responder_role")

        offer = self._messages.get_offer(conversation_id, message_id)
        payload = next_payload(offer, response, counter_price)
        responder_role = responder_role or default_responder(offer)

        outcome = self._messages.prepare(
            conversation_id,
            TextMessage(
                sender=responder_role,
                text=outcome_text(response, payload.counter_price)
            )
        )

        updated = self._messages.update_offer_payload(
            conversation_id,
            message_id,
            {"status": payload.status, "counter_price": payload.counter_price}
        )
        stored = self._messages.append(conversation_id, outcome)

        logger.info(
            f"Offer {message_id} in {conversation_id} {response} by {responder_role}"
            + (f" at {payload.counter_price}" if response == "countered" else "")
        )
        return updated, stored
