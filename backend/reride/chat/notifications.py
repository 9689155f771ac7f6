"""
Notification fan-out and notification centre.

WHAT: Derive one notification per conversation event and keep the inbox
WHY: The other participant must hear about new messages and offer responses
HOW: Recipient is the participant whose role differs from the actor;
     previews are truncated; records live in an in-memory list that is
     persisted independently of conversations
"""

from ..models.conversation import Conversation, Notification, NotificationTarget
from ..models.message import ROLES, Role, other_role
from ..utils.clock import Clock, epoch_millis, utc_now
from ..utils.logger import get_logger
from ..utils.text import is_blank, truncate_preview

logger = get_logger(__name__)


class NotificationCenter:
    """Stored notifications with per-recipient reads and read marking."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._notifications: list[Notification] = []

    def __len__(self) -> int:
        return len(self._notifications)

    def hydrate(self, notifications: list[Notification]) -> int:
        self._notifications = [n.model_copy(deep=True) for n in notifications]
        logger.info(f"Notification centre hydrated with {len(self._notifications)} notifications")
        return len(self._notifications)

    def snapshot(self) -> list[Notification]:
        return [n.model_copy(deep=True) for n in self._notifications]

    def add(
        self,
        recipient_email: str,
        message: str,
        target_id: str | int,
        target_type: NotificationTarget = "conversation"
    ) -> Notification:
        """Create and store a notification."""
        now = self._clock()
        last_id = max((n.id for n in self._notifications), default=0)
        notification = Notification(
            id=max(epoch_millis(now), last_id + 1),
            recipient_email=recipient_email,
            message=message,
            target_id=target_id,
            target_type=target_type,
            is_read=False,
            timestamp=now,
        )
        self._notifications.append(notification)
        return notification.model_copy(deep=True)

    def for_recipient(self, recipient_email: str, unread_only: bool = False) -> list[Notification]:
        """Notifications addressed to a participant, oldest first."""
        return [
            n.model_copy(deep=True)
            for n in self._notifications
            if n.recipient_email == recipient_email and not (unread_only and n.is_read)
        ]

    def unread_count(self, recipient_email: str) -> int:
        return sum(
            1 for n in self._notifications
            if n.recipient_email == recipient_email and not n.is_read
        )

    def mark_read(self, notification_ids: list[int]) -> int:
        """Mark the given notifications read; unknown ids are ignored."""
        wanted = set(notification_ids)
        changed = 0
        for notification in self._notifications:
            if notification.id in wanted and not notification.is_read:
                notification.is_read = True
                changed += 1
        return changed

    def mark_all_read(self, recipient_email: str) -> int:
        return self.mark_read([
            n.id for n in self._notifications
            if n.recipient_email == recipient_email and not n.is_read
        ])


class NotificationFanout:
    """
    Turn conversation events into notifications.

    WHAT: One notification for the non-acting participant per event
    WHY: Reading and own actions never notify; everything else does
    HOW: Resolve actor and recipient from the conversation, store preview
    """

    def __init__(self, center: NotificationCenter):
        self._center = center

    def notify(self, conversation: Conversation, actor_role: Role, text: str) -> Notification | None:
        """
        Notify the counter-party of a conversation event.

        Args:
            conversation: Conversation the event happened in
            actor_role: Role of the participant who acted
            text: Text of the message that triggered the event

        Returns:
            The created notification, or None for app status lines and when
            the actor or recipient cannot be resolved
        """
        if actor_role not in ROLES:
            logger.debug(f"No notification for {actor_role} line in {conversation.id}")
            return None

        actor = conversation.participant(actor_role)
        if is_blank(actor):
            logger.warning(
                f"No {actor_role} identity on conversation {conversation.id}; notification skipped"
            )
            return None

        recipient_role = other_role(actor_role)
        recipient = conversation.participant(recipient_role)
        if is_blank(recipient):
            logger.warning(
                f"No {recipient_role} identity on conversation {conversation.id}; notification skipped"
            )
            return None

        notification = self._center.add(
            recipient_email=recipient,
            message=truncate_preview(text),
            target_id=conversation.id,
            target_type="conversation",
        )
        logger.debug(f"Notified {recipient} about conversation {conversation.id}")
        return notification
