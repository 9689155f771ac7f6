"""
Status and health check endpoints.

WHAT: Health monitoring for storage and the conversation service
WHY: Quick diagnostics for frontend and ops
HOW: FastAPI endpoints calling database ping and service counters
"""

from fastapi import APIRouter, Depends

from ....chat.conversation_service import ConversationService
from ....chat.service_factory import get_conversation_service
from ....core.config import settings
from ....core.database import ping_database

router = APIRouter()


@router.get("/health")
async def health_check(service: ConversationService = Depends(get_conversation_service)):
    """
    Overall application health check.

    Returns:
        JSON with storage status, counters and app metadata
    """
    if settings.PERSISTENCE_BACKEND == "sqlite":
        storage = ping_database()
    else:
        storage = {"available": True, "backend": settings.PERSISTENCE_BACKEND, "error": None}

    healthy = storage["available"] and not service.has_unsaved_changes

    return {
        "status": "healthy" if healthy else "degraded",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "storage": storage,
        "conversations": len(service.registry),
        "notifications": len(service.notification_center),
        "unsaved_changes": service.has_unsaved_changes,
        "unsaved_collections": service.unsaved_collections
    }
