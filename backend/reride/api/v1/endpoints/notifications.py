"""
Notification endpoints.

WHAT: Notification bell listing and read marking
WHY: Participants see new messages and offer responses addressed to them
HOW: FastAPI router over the service's notification centre
"""

from fastapi import APIRouter, Depends, Query

from ....chat.conversation_service import ConversationService
from ....chat.service_factory import get_conversation_service
from ....models.api_schemas import (
    MarkAllNotificationsReadRequest,
    MarkedReadResponse,
    MarkNotificationsReadRequest,
    NotificationListResponse,
)

router = APIRouter()


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    recipient: str = Query(..., min_length=1, description="Recipient email"),
    unread_only: bool = False,
    service: ConversationService = Depends(get_conversation_service)
):
    return NotificationListResponse(
        notifications=service.notifications_for(recipient, unread_only),
        unread=service.notification_center.unread_count(recipient)
    )


@router.post("/notifications/read", response_model=MarkedReadResponse)
async def mark_notifications_read(
    request: MarkNotificationsReadRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    return MarkedReadResponse(updated=service.mark_notifications_read(request.ids))


@router.post("/notifications/read-all", response_model=MarkedReadResponse)
async def mark_all_notifications_read(
    request: MarkAllNotificationsReadRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    return MarkedReadResponse(updated=service.mark_all_notifications_read(request.recipient_email))
