"""
Conversation service factory with singleton pattern.

WHAT: Factory to get the configured ConversationService
WHY: One registry per process; it is the only shared mutable resource
HOW: Read PERSISTENCE_BACKEND from config, build repositories, hydrate, cache
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .conversation_service import ConversationService

# Singleton instance
_service_instance: "ConversationService | None" = None


def build_conversation_service(backend: str | None = None) -> "ConversationService":
    """
    Build and hydrate a ConversationService for a persistence backend.

    Args:
        backend: "sqlite", "json" or "memory" (defaults to settings)

    Raises:
        ValueError: If the backend name is unknown
    """
    from ..core.config import settings
    from ..utils.logger import get_logger
    from .conversation_service import ConversationService
    from . import persistence

    logger = get_logger(__name__)
    backend = backend or settings.PERSISTENCE_BACKEND

    if backend == "sqlite":
        from ..core.database import init_db
        init_db()
        conversations = persistence.SqlAlchemyConversationRepository()
        notifications = persistence.SqlAlchemyNotificationRepository()
    elif backend == "json":
        conversations = persistence.JsonFileConversationRepository(settings.CONVERSATIONS_FILE)
        notifications = persistence.JsonFileNotificationRepository(settings.NOTIFICATIONS_FILE)
    elif backend == "memory":
        conversations = persistence.InMemoryConversationRepository()
        notifications = persistence.InMemoryNotificationRepository()
    else:
        raise ValueError(f"Unknown persistence backend: {backend}")

    service = ConversationService(conversations, notifications)
    service.load()
    logger.info(f"Conversation service initialized (backend={backend})")
    return service


def get_conversation_service() -> "ConversationService":
    """Get the process-wide ConversationService singleton."""
    global _service_instance

    if _service_instance is None:
        _service_instance = build_conversation_service()

    return _service_instance


def reset_conversation_service() -> None:
    """Reset the service singleton (useful for testing)."""
    global _service_instance
    _service_instance = None
