"""
Unit tests for offer negotiation.

WHAT: Test the offer state machine and the negotiator
WHY: Accepted and rejected offers are final; every response appends exactly
     one outcome message with fixed wording
HOW: Pure next_payload checks plus a negotiator over a real message store
"""

import math

import pytest

from reride.chat.message_store import MessageStore
from reride.chat.offer_negotiation import (
    OfferNegotiator,
    default_responder,
    next_payload,
    validate_price,
)
from reride.chat.registry import ConversationRegistry
from reride.models.message import OfferMessage, OfferPayload, OfferStatus, TextMessage
from reride.utils.exceptions import (
    InvalidStateError,
    OfferMessageNotFoundError,
    ValidationError,
)
from tests.fixtures.chat import make_conversation


def _offer(status=OfferStatus.PENDING, counter_price=None):
    return OfferMessage(
        id=1,
        sender="seller",
        text="Offer: ₹6,00,000",
        payload=OfferPayload(offer_price=600000, status=status, counter_price=counter_price)
    )


@pytest.fixture
def registry():
    registry = ConversationRegistry()
    registry.upsert(make_conversation())
    return registry


@pytest.fixture
def store(registry, clock):
    return MessageStore(registry, clock)


@pytest.fixture
def negotiator(store):
    return OfferNegotiator(store)


@pytest.fixture
def offer_id(store):
    offer = store.append("conv_1", _offer().model_copy(update={"id": None}))
    return offer.id


@pytest.mark.unit
class TestValidatePrice:
    """Test price validation."""

    @pytest.mark.parametrize("price", [None, 0, -1, math.nan, math.inf, True, "550000"])
    def test_rejects_invalid(self, price):
        with pytest.raises(ValidationError):
            validate_price(price)

    def test_accepts_positive(self):
        assert validate_price(550000) == 550000.0


@pytest.mark.unit
class TestNextPayload:
    """Test the offer state machine."""

    @pytest.mark.parametrize("response,status", [
        ("accepted", OfferStatus.ACCEPTED),
        ("rejected", OfferStatus.REJECTED),
    ])
    def test_pending_to_final(self, response, status):
        payload = next_payload(_offer(), response)

        assert payload.status == status
        assert payload.offer_price == 600000

    def test_counter_sets_counter_price(self):
        payload = next_payload(_offer(), "countered", 550000)

        assert payload.status == OfferStatus.COUNTERED
        assert payload.counter_price == 550000
        assert payload.reference_price == 550000

    def test_does_not_modify_message(self):
        message = _offer()
        next_payload(message, "accepted")

        assert message.payload.status == OfferStatus.PENDING

    def test_countered_can_be_accepted(self):
        payload = next_payload(_offer(OfferStatus.COUNTERED, 550000), "accepted")

        assert payload.status == OfferStatus.ACCEPTED
        assert payload.counter_price == 550000

    def test_countered_can_be_countered_again(self):
        payload = next_payload(_offer(OfferStatus.COUNTERED, 550000), "countered", 575000)

        assert payload.counter_price == 575000

    @pytest.mark.parametrize("status", [OfferStatus.ACCEPTED, OfferStatus.REJECTED])
    @pytest.mark.parametrize("response", ["accepted", "rejected", "countered"])
    def test_final_states_refuse_transitions(self, status, response):
        with pytest.raises(InvalidStateError) as exc_info:
            next_payload(_offer(status), response, 500000)

        assert exc_info.value.code == "OFFER_ALREADY_RESOLVED"

    def test_unknown_response(self):
        with pytest.raises(ValidationError):
            next_payload(_offer(), "maybe")

    @pytest.mark.parametrize("counter_price", [None, 0, -100, math.nan])
    def test_counter_requires_positive_price(self, counter_price):
        with pytest.raises(ValidationError):
            next_payload(_offer(), "countered", counter_price)


@pytest.mark.unit
class TestOfferNegotiator:
    """Test applying responses to a conversation."""

    def test_accept_appends_outcome(self, negotiator, registry, offer_id):
        updated, outcome = negotiator.respond("conv_1", offer_id, "accepted", "customer")

        assert updated.payload.status == OfferStatus.ACCEPTED
        assert outcome.text == "✅ Offer accepted! The deal is confirmed."
        assert outcome.sender == "customer"

        messages = registry.get("conv_1").messages
        assert len(messages) == 2
        assert messages[-1].id == outcome.id

    def test_reject_text(self, negotiator, offer_id):
        _, outcome = negotiator.respond("conv_1", offer_id, "rejected", "customer")

        assert outcome.text == "❌ Offer declined. Thank you for your interest."

    def test_counter_text(self, negotiator, registry, offer_id):
        updated, outcome = negotiator.respond(
            "conv_1", offer_id, "countered", "customer", counter_price=550000
        )

        assert updated.payload.status == OfferStatus.COUNTERED
        assert updated.payload.counter_price == 550000
        assert outcome.text == "💰 Counter-offer made: ₹5,50,000"
        assert isinstance(outcome, TextMessage)

    def test_second_response_fails_without_side_effects(self, negotiator, registry, offer_id):
        """Responding to a final offer appends nothing."""
        negotiator.respond("conv_1", offer_id, "accepted", "customer")

        with pytest.raises(InvalidStateError):
            negotiator.respond("conv_1", offer_id, "rejected", "customer")

        messages = registry.get("conv_1").messages
        assert len(messages) == 2
        assert messages[0].payload.status == OfferStatus.ACCEPTED

    def test_invalid_counter_leaves_conversation_unchanged(self, negotiator, registry, offer_id):
        with pytest.raises(ValidationError):
            negotiator.respond("conv_1", offer_id, "countered", "customer", counter_price=0)

        messages = registry.get("conv_1").messages
        assert len(messages) == 1
        assert messages[0].payload.status == OfferStatus.PENDING

    def test_unknown_offer(self, negotiator, registry):
        with pytest.raises(OfferMessageNotFoundError):
            negotiator.respond("conv_1", 999, "accepted", "customer")

        assert registry.get("conv_1").messages == []

    def test_unknown_role(self, negotiator, offer_id):
        with pytest.raises(ValidationError):
            negotiator.respond("conv_1", offer_id, "accepted", "admin")

    def test_outcome_after_offer_in_order(self, negotiator, registry, offer_id):
        """Outcome id and timestamp come after the offer."""
        _, outcome = negotiator.respond("conv_1", offer_id, "accepted", "customer")

        offer = registry.get("conv_1").messages[0]
        assert outcome.id > offer.id
        assert outcome.timestamp > offer.timestamp


@pytest.mark.unit
class TestDefaultResponder:
    """Test who answers when no role is given."""

    def test_pending_answered_by_other_party(self):
        assert default_responder(_offer()) == "customer"

    def test_countered_goes_back_to_author(self):
        assert default_responder(_offer(OfferStatus.COUNTERED, 550000)) == "seller"

    def test_respond_without_role(self, negotiator, offer_id):
        _, counter = negotiator.respond("conv_1", offer_id, "countered", counter_price=550000)
        _, accept = negotiator.respond("conv_1", offer_id, "accepted")

        assert counter.sender == "customer"
        assert accept.sender == "seller"

    def test_system_offer_needs_explicit_role(self):
        offer = _offer().model_copy(update={"sender": "system"})

        with pytest.raises(ValidationError):
            default_responder(offer)
