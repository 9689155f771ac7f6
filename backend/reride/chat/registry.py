"""
Conversation registry.

WHAT: Single source of truth mapping conversation id -> Conversation
WHY: Every mutation goes through one owner so cached views can be re-read
HOW: Dict of live pydantic models; reads hand out deep copies
"""

from datetime import datetime
from typing import Iterable, Iterator

from ..models.conversation import Conversation
from ..models.message import Role, other_role
from ..utils.exceptions import ConversationNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConversationView:
    """
    Restartable, finite view over the conversations matching a filter.

    The matching set is fixed when the view is created; each iteration
    yields fresh copies so callers cannot reach registry state.
    """

    def __init__(self, conversations: Iterable[Conversation]):
        self._items = tuple(c.model_copy(deep=True) for c in conversations)

    def __iter__(self) -> Iterator[Conversation]:
        return (c.model_copy(deep=True) for c in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class ConversationRegistry:
    """
    Own the conversation collection and its consistent reads.

    WHAT: get/upsert/touch/filter plus read-flag and moderation updates
    WHY: Facade and message store never keep a Conversation of their own
    HOW: In-memory dict; `_require` gives same-package collaborators the
         live object
    """

    def __init__(self):
        self._conversations: dict[str, Conversation] = {}

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def exists(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def _require(self, conversation_id: str) -> Conversation:
        """Live conversation for in-package mutation."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def get(self, conversation_id: str) -> Conversation:
        """
        Read a conversation.

        Args:
            conversation_id: Conversation identifier

        Returns:
            A copy of the stored conversation

        Raises:
            ConversationNotFoundError: If the id is unknown
        """
        return self._require(conversation_id).model_copy(deep=True)

    def upsert(self, conversation: Conversation) -> None:
        """Insert or replace a conversation (hydration and thread start only)."""
        self._conversations[conversation.id] = conversation.model_copy(deep=True)
        logger.debug(f"Upserted conversation {conversation.id}")

    def hydrate(self, conversations: Iterable[Conversation]) -> int:
        """Replace the registry contents with loaded conversations."""
        self._conversations.clear()
        for conversation in conversations:
            self.upsert(conversation)
        logger.info(f"Registry hydrated with {len(self._conversations)} conversations")
        return len(self._conversations)

    def touch(self, conversation_id: str, last_message_at: datetime, sender_role: Role) -> None:
        """
        Record a new message on the conversation summary.

        Sets `last_message_at` and marks the thread unread for the role that
        did not send the message.
        """
        conversation = self._require(conversation_id)
        conversation.last_message_at = last_message_at
        if other_role(sender_role) == "customer":
            conversation.is_read_by_customer = False
        else:
            conversation.is_read_by_seller = False

    def mark_read_by(self, conversation_id: str, role: Role) -> None:
        """Mark the conversation read for `role`; a no-op when already read."""
        conversation = self._require(conversation_id)
        if role == "customer":
            conversation.is_read_by_customer = True
        else:
            conversation.is_read_by_seller = True

    def set_flag(self, conversation_id: str, reason: str, flagged_at: datetime) -> None:
        conversation = self._require(conversation_id)
        conversation.is_flagged = True
        conversation.flag_reason = reason
        conversation.flagged_at = flagged_at

    def clear_flag(self, conversation_id: str) -> None:
        conversation = self._require(conversation_id)
        conversation.is_flagged = False
        conversation.flag_reason = None
        conversation.flagged_at = None

    def filter_by_participant(self, role: Role, identity: str) -> ConversationView:
        """
        Conversations in which `identity` takes part as `role`.

        Args:
            role: "customer" or "seller"
            identity: Participant key (email in ReRide)

        Returns:
            ConversationView in registry insertion order
        """
        return ConversationView(
            c for c in self._conversations.values() if c.participant(role) == identity
        )

    def flagged(self) -> ConversationView:
        """Conversations awaiting moderation."""
        return ConversationView(c for c in self._conversations.values() if c.is_flagged)

    def snapshot(self) -> list[Conversation]:
        """Copies of every conversation, for full-snapshot persistence."""
        return [c.model_copy(deep=True) for c in self._conversations.values()]
