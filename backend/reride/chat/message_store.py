"""
Message store.

WHAT: Append and in-place status mutation for conversation messages
WHY: Messages are append-only; only read state and offer payloads change
HOW: Operates on the registry's live conversations, returns copies
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .registry import ConversationRegistry
from ..models.conversation import Conversation
from ..models.message import SYSTEM_SENDER, Message, OfferMessage, OfferPayload, Role
from ..utils.clock import Clock, epoch_millis, utc_now
from ..utils.exceptions import InvalidStateError, OfferMessageNotFoundError, ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MessageStore:
    """Ordered message lists for the conversations held by a registry."""

    def __init__(self, registry: ConversationRegistry, clock: Clock = utc_now):
        self._registry = registry
        self._clock = clock

    @staticmethod
    def _next_id(conversation: Conversation, candidate: int) -> int:
        last_id = max((m.id for m in conversation.messages if m.id is not None), default=0)
        return max(candidate, last_id + 1)

    def prepare(self, conversation_id: str, message: Message) -> Message:
        """
        Build the message `append` would store, without storing it.

        Assigns id and timestamp when absent and resets `is_read`.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
            ValidationError: If a caller-supplied id is already used
        """
        conversation = self._registry._require(conversation_id)
        timestamp = message.timestamp or self._clock()

        message_id = message.id
        if message_id is None:
            message_id = self._next_id(conversation, epoch_millis(timestamp))
        elif conversation.find_message(message_id) is not None:
            raise ValidationError(
                f"Message id {message_id} already exists in conversation {conversation_id}",
                field="id"
            )

        return message.model_copy(
            update={"id": message_id, "timestamp": timestamp, "is_read": False},
            deep=True
        )

    def append(self, conversation_id: str, message: Message) -> Message:
        """
        Append a message to the end of a conversation.

        Duplicate texts are kept as distinct messages.

        Args:
            conversation_id: Target conversation
            message: Message to store (id/timestamp optional)

        Returns:
            Copy of the stored message
        """
        stored = self.prepare(conversation_id, message)
        self._registry._require(conversation_id).messages.append(stored)

        logger.debug(
            f"Appended {stored.type} message {stored.id} to {conversation_id} "
            f"(sender: {stored.sender})"
        )
        return stored.model_copy(deep=True)

    def mark_all_read(self, conversation_id: str, reader_role: Role) -> int:
        """
        Mark every message not written by `reader_role` as read.

        System status lines are nobody's incoming messages and stay as they are.

        Returns:
            Number of messages whose state changed
        """
        conversation = self._registry._require(conversation_id)
        changed = 0
        for message in conversation.messages:
            if message.sender in (reader_role, SYSTEM_SENDER) or message.is_read:
                continue
            message.is_read = True
            changed += 1

        logger.debug(f"{reader_role} read {changed} messages in {conversation_id}")
        return changed

    def _require_offer(self, conversation_id: str, message_id: int) -> OfferMessage:
        conversation = self._registry._require(conversation_id)
        message = conversation.find_message(message_id)
        if not isinstance(message, OfferMessage):
            raise OfferMessageNotFoundError(conversation_id, message_id)
        return message

    def get_offer(self, conversation_id: str, message_id: int) -> OfferMessage:
        """Copy of an offer message, or OfferMessageNotFoundError."""
        return self._require_offer(conversation_id, message_id).model_copy(deep=True)

    def update_offer_payload(
        self,
        conversation_id: str,
        message_id: int,
        patch: dict[str, Any]
    ) -> OfferMessage:
        """
        Apply a partial update to an offer's payload.

        Args:
            conversation_id: Conversation holding the offer
            message_id: Offer message id
            patch: Payload fields to change (status, counter_price)

        Returns:
            Copy of the updated offer message

        Raises:
            OfferMessageNotFoundError: No offer message with that id
            InvalidStateError: The offer is already accepted or rejected
            ValidationError: The patched payload is invalid
        """
        message = self._require_offer(conversation_id, message_id)
        current = message.payload

        if current.is_terminal:
            attempted = patch.get("status", "updated")
            raise InvalidStateError(
                message_id,
                current.status.value,
                getattr(attempted, "value", attempted)
            )

        try:
            updated = OfferPayload.model_validate({**current.model_dump(), **patch})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid offer payload update: {e.errors()[0]['msg']}") from e

        message.payload = updated
        logger.debug(f"Offer {message_id} in {conversation_id} is now {updated.status.value}")
        return message.model_copy(deep=True)
