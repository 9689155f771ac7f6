"""
Pydantic API schemas for the conversation endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation and serialization matching the web client
HOW: Pydantic v2 models; responses reuse the camelCase domain models
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .conversation import Conversation, Notification
from .message import Role


# ========== Requests ==========

class StartConversationRequest(BaseModel):
    """Customer opens a chat about a vehicle."""
    customer_id: str = Field(..., min_length=1, max_length=255, description="Customer email")
    customer_name: str = Field(default="", max_length=100)
    seller_id: str = Field(..., min_length=1, max_length=255, description="Seller email")
    vehicle_id: int | str
    vehicle_name: str = Field(default="", max_length=200)
    vehicle_price: Optional[float] = Field(default=None, gt=0)


class SendMessageRequest(BaseModel):
    text: str = Field(..., max_length=5000)
    sender_role: Role


class SendOfferRequest(BaseModel):
    offer_price: float = Field(..., description="Proposed price in rupees")
    sender_role: Role


class OfferResponseRequest(BaseModel):
    response: Literal["accepted", "rejected", "countered"]
    responder_role: Optional[Role] = None
    counter_price: Optional[float] = None


class MarkReadRequest(BaseModel):
    reader_role: Role


class TypingRequest(BaseModel):
    role: Role
    is_typing: bool = True


class FlagRequest(BaseModel):
    reason: str = Field(..., max_length=500)


class MarkNotificationsReadRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


class MarkAllNotificationsReadRequest(BaseModel):
    recipient_email: str = Field(..., min_length=1)


# ========== Responses ==========

class ConversationListResponse(BaseModel):
    conversations: List[Conversation]
    total: int
    unread: int


class TypingStatusResponse(BaseModel):
    conversation_id: Optional[str] = None
    user_role: Optional[Role] = None
    is_typing: bool = False


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
    unread: int


class MarkedReadResponse(BaseModel):
    updated: int


class SyncResponse(BaseModel):
    synced: bool
