"""Conversation and offer negotiation core."""

from .registry import ConversationRegistry, ConversationView
from .message_store import MessageStore
from .offer_negotiation import OfferNegotiator, default_responder, next_payload
from .notifications import NotificationCenter, NotificationFanout
from .typing_indicator import TypingIndicator, TypingStatus
from .persistence import (
    ConversationRepository,
    NotificationRepository,
    InMemoryConversationRepository,
    InMemoryNotificationRepository,
    JsonFileConversationRepository,
    JsonFileNotificationRepository,
    SqlAlchemyConversationRepository,
    SqlAlchemyNotificationRepository,
)
from .conversation_service import ConversationService
from .service_factory import (
    build_conversation_service,
    get_conversation_service,
    reset_conversation_service,
)

__all__ = [
    "ConversationRegistry",
    "ConversationView",
    "MessageStore",
    "OfferNegotiator",
    "default_responder",
    "next_payload",
    "NotificationCenter",
    "NotificationFanout",
    "TypingIndicator",
    "TypingStatus",
    "ConversationRepository",
    "NotificationRepository",
    "InMemoryConversationRepository",
    "InMemoryNotificationRepository",
    "JsonFileConversationRepository",
    "JsonFileNotificationRepository",
    "SqlAlchemyConversationRepository",
    "SqlAlchemyNotificationRepository",
    "ConversationService",
    "build_conversation_service",
    "get_conversation_service",
    "reset_conversation_service",
]
