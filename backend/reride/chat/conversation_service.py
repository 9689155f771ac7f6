"""
Conversation service facade.

WHAT: Single entry point for sending messages, offers, responses, reads and typing
WHY: Keep registry, notifications, active-conversation cache and storage in step
HOW: Compose registry, message store, negotiator and fan-out; apply changes
     in memory first, then write full snapshots (local-first)
"""

from datetime import datetime

from .message_store import MessageStore
from .notifications import NotificationCenter, NotificationFanout
from .offer_negotiation import OfferNegotiator, validate_price
from .persistence import ConversationRepository, NotificationRepository
from .registry import ConversationRegistry, ConversationView
from .typing_indicator import TypingIndicator, TypingStatus
from ..models.conversation import Conversation, Notification
from ..models.message import (
    ROLES,
    Message,
    OfferMessage,
    OfferPayload,
    Role,
    TextMessage,
)
from ..utils.clock import Clock, utc_now
from ..utils.exceptions import ConversationNotFoundError, PersistenceError, ValidationError
from ..utils.logger import get_logger
from ..utils.offers import offer_text
from ..utils.text import is_blank

logger = get_logger(__name__)

CONVERSATIONS = "conversations"
NOTIFICATIONS = "notifications"


def _require_role(role: str, field: str) -> None:
    if role not in ROLES:
        raise ValidationError(f"{field} must be one of {list(ROLES)}, got '{role}'", field=field)


class ConversationService:
    """
    Orchestrate conversation and offer operations.

    WHAT: Facade over registry, message store, negotiator and notifications
    WHY: UI and endpoints need one place that keeps every view consistent
    HOW: Each call validates, mutates through the registry, fans out a
         notification, refreshes the active conversation and saves
    """

    def __init__(
        self,
        conversation_repository: ConversationRepository,
        notification_repository: NotificationRepository,
        clock: Clock = utc_now,
        typing_indicator: TypingIndicator | None = None
    ):
        self._conversation_repository = conversation_repository
        self._notification_repository = notification_repository
        self._clock = clock

        self.registry = ConversationRegistry()
        self.messages = MessageStore(self.registry, clock)
        self.negotiator = OfferNegotiator(self.messages)
        self.notification_center = NotificationCenter(clock)
        self.fanout = NotificationFanout(self.notification_center)
        self.typing = typing_indicator or TypingIndicator()

        self._active_conversation: Conversation | None = None
        self._dirty: set[str] = set()

    # ========== Hydration & persistence ==========

    def load(self) -> None:
        """Hydrate conversations and notifications from storage."""
        self.registry.hydrate(self._conversation_repository.load_conversations())
        self.notification_center.hydrate(self._notification_repository.load_notifications())
        self._active_conversation = None
        self._dirty.clear()

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(self._dirty)

    @property
    def unsaved_collections(self) -> list[str]:
        """Collections whose last write failed and wait for `sync()`."""
        return sorted(self._dirty)

    def _persist(self, *collections: str) -> None:
        self._dirty.update(collections)
        self.sync()

    def sync(self) -> None:
        """
        Write every collection with unsaved changes.

        Retry this after a PersistenceError instead of repeating the
        original action.

        Raises:
            PersistenceError: If any write fails; that collection stays dirty
        """
        errors: list[PersistenceError] = []

        for collection in (CONVERSATIONS, NOTIFICATIONS):
            if collection not in self._dirty:
                continue
            try:
                if collection == CONVERSATIONS:
                    self._conversation_repository.save_conversations(self.registry.snapshot())
                else:
                    self._notification_repository.save_notifications(
                        self.notification_center.snapshot()
                    )
            except PersistenceError as e:
                errors.append(e)
            except Exception as e:
                logger.error(f"Unexpected error saving {collection}: {e}", exc_info=True)
                errors.append(PersistenceError(collection, str(e)))
            else:
                self._dirty.discard(collection)

        if errors:
            logger.warning(f"Sync failed, unsaved collections: {sorted(self._dirty)}")
            raise errors[0]

    # ========== Active conversation cache ==========

    @property
    def active_conversation(self) -> Conversation | None:
        """Conversation currently shown to the user, if any."""
        return self._active_conversation

    def open_conversation(self, conversation_id: str) -> Conversation:
        self._active_conversation = self.registry.get(conversation_id)
        return self._active_conversation

    def close_conversation(self) -> None:
        self._active_conversation = None

    def _refresh_active(self, conversation_id: str) -> None:
        if self._active_conversation and self._active_conversation.id == conversation_id:
            self._active_conversation = self.registry.get(conversation_id)

    # ========== Conversations ==========

    def start_conversation(
        self,
        customer_id: str,
        seller_id: str,
        vehicle_id: int | str,
        customer_name: str = "",
        vehicle_name: str = "",
        vehicle_price: float | None = None
    ) -> Conversation:
        """
        Open the thread between a customer and a seller about a vehicle.

        Returns the existing conversation when the customer already asked
        about this vehicle.
        """
        if is_blank(customer_id):
            raise ValidationError("customer_id is required", field="customer_id")
        if is_blank(seller_id):
            raise ValidationError("seller_id is required", field="seller_id")

        conversation_id = f"{customer_id}-{vehicle_id}"
        if self.registry.exists(conversation_id):
            return self.registry.get(conversation_id)

        conversation = Conversation(
            id=conversation_id,
            customer_id=customer_id,
            customer_name=customer_name,
            seller_id=seller_id,
            vehicle_id=vehicle_id,
            vehicle_name=vehicle_name,
            vehicle_price=vehicle_price,
            messages=[],
            last_message_at=self._clock(),
        )
        self.registry.upsert(conversation)
        logger.info(f"Started conversation {conversation_id} between {customer_id} and {seller_id}")

        self._persist(CONVERSATIONS)
        return self.registry.get(conversation_id)

    def get_conversation(self, conversation_id: str) -> Conversation:
        return self.registry.get(conversation_id)

    def conversations_for(self, role: Role, identity: str) -> ConversationView:
        _require_role(role, "role")
        return self.registry.filter_by_participant(role, identity)

    def unread_conversation_count(self, role: Role, identity: str) -> int:
        """Conversations with activity `identity` has not read yet (inbox badge)."""
        return sum(1 for c in self.conversations_for(role, identity) if not c.is_read_by(role))

    def flagged_conversations(self) -> ConversationView:
        return self.registry.flagged()

    # ========== Messages ==========

    def _append(self, conversation_id: str, message: Message) -> Message:
        stored = self.messages.append(conversation_id, message)
        self.registry.touch(conversation_id, stored.timestamp, stored.sender)
        self.fanout.notify(self.registry.get(conversation_id), stored.sender, stored.text)
        self._refresh_active(conversation_id)

        self._persist(CONVERSATIONS, NOTIFICATIONS)
        return stored

    def send_message(self, conversation_id: str, text: str, sender_role: Role) -> Message:
        """
        Send a text message.

        Args:
            conversation_id: Target conversation
            text: Message text (must not be blank)
            sender_role: "customer" or "seller"

        Returns:
            The stored message

        Raises:
            ValidationError: Blank text or unknown role
            ConversationNotFoundError: Unknown conversation
            PersistenceError: Saved in memory but the write failed
        """
        _require_role(sender_role, "sender_role")
        if is_blank(text):
            raise ValidationError("Message text cannot be empty", field="text")

        stored = self._append(conversation_id, TextMessage(sender=sender_role, text=text))
        logger.info(f"{sender_role} sent message {stored.id} in {conversation_id}")
        return stored

    def send_offer(self, conversation_id: str, offer_price: float, sender_role: Role) -> OfferMessage:
        """Send an offer message with a pending payload."""
        _require_role(sender_role, "sender_role")
        price = validate_price(offer_price, "offer_price")

        stored = self._append(
            conversation_id,
            OfferMessage(
                sender=sender_role,
                text=offer_text(price),
                payload=OfferPayload(offer_price=price),
            )
        )
        logger.info(f"{sender_role} offered {price} in {conversation_id} (message {stored.id})")
        return stored

    def respond_to_offer(
        self,
        conversation_id: str,
        message_id: int,
        response: str,
        counter_price: float | None = None,
        responder_role: Role | None = None
    ) -> OfferMessage:
        """
        Accept, reject or counter an offer.

        Updates the offer payload and appends the outcome message together.

        Args:
            conversation_id: Conversation holding the offer
            message_id: Offer message id
            response: "accepted", "rejected" or "countered"
            counter_price: Required for "countered"
            responder_role: Role of the participant responding; defaults to
                the party the offer is waiting on

        Returns:
            The updated offer message

        Raises:
            ValidationError: Unknown response/role or bad counter price
            NotFoundError: Unknown conversation or offer message
            InvalidStateError: Offer already accepted or rejected
            PersistenceError: Saved in memory but the write failed
        """
        if responder_role is not None:
            _require_role(responder_role, "responder_role")
        if not self.registry.exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        updated, outcome = self.negotiator.respond(
            conversation_id, message_id, response, responder_role, counter_price
        )
        self.registry.touch(conversation_id, outcome.timestamp, outcome.sender)
        self.fanout.notify(self.registry.get(conversation_id), outcome.sender, outcome.text)
        self._refresh_active(conversation_id)

        self._persist(CONVERSATIONS, NOTIFICATIONS)
        return updated

    def mark_read(self, conversation_id: str, reader_role: Role) -> None:
        """
        Mark the other party's messages read for `reader_role`.

        No notification is created.
        """
        _require_role(reader_role, "reader_role")

        changed = self.messages.mark_all_read(conversation_id, reader_role)
        self.registry.mark_read_by(conversation_id, reader_role)
        self._refresh_active(conversation_id)

        logger.debug(f"{reader_role} marked {conversation_id} read ({changed} messages)")
        self._persist(CONVERSATIONS)

    # ========== Typing ==========

    def set_typing(self, conversation_id: str, role: Role, is_typing: bool) -> None:
        """Update the ephemeral typing indicator (not persisted, not notified)."""
        _require_role(role, "role")
        if not self.registry.exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)
        self.typing.set(conversation_id, role, is_typing)

    def typing_status(self) -> TypingStatus | None:
        return self.typing.current()

    # ========== Moderation ==========

    def flag_conversation(self, conversation_id: str, reason: str) -> Conversation:
        """Report a conversation for admin review."""
        if is_blank(reason):
            raise ValidationError("A reason is required to flag a conversation", field="reason")

        flagged_at: datetime = self._clock()
        self.registry.set_flag(conversation_id, reason.strip(), flagged_at)
        self._refresh_active(conversation_id)
        logger.info(f"Conversation {conversation_id} flagged: {reason.strip()}")

        self._persist(CONVERSATIONS)
        return self.registry.get(conversation_id)

    def resolve_flag(self, conversation_id: str) -> Conversation:
        self.registry.clear_flag(conversation_id)
        self._refresh_active(conversation_id)
        logger.info(f"Flag on conversation {conversation_id} resolved")

        self._persist(CONVERSATIONS)
        return self.registry.get(conversation_id)

    # ========== Notifications ==========

    def notifications_for(self, recipient_email: str, unread_only: bool = False) -> list[Notification]:
        return self.notification_center.for_recipient(recipient_email, unread_only)

    def mark_notifications_read(self, notification_ids: list[int]) -> int:
        changed = self.notification_center.mark_read(notification_ids)
        if changed:
            self._persist(NOTIFICATIONS)
        return changed

    def mark_all_notifications_read(self, recipient_email: str) -> int:
        changed = self.notification_center.mark_all_read(recipient_email)
        if changed:
            self._persist(NOTIFICATIONS)
        return changed
