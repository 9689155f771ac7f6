"""
Conversation endpoints.

WHAT: HTTP surface over the ConversationService facade
WHY: Inbox, chat widget and seller dashboard call these for every action
HOW: FastAPI router; business errors propagate to the global handlers
"""

from fastapi import APIRouter, Depends, Query

from ....chat.conversation_service import ConversationService
from ....chat.persistence import to_document
from ....chat.service_factory import get_conversation_service
from ....models.api_schemas import (
    ConversationListResponse,
    FlagRequest,
    MarkReadRequest,
    OfferResponseRequest,
    SendMessageRequest,
    SendOfferRequest,
    StartConversationRequest,
    SyncResponse,
    TypingRequest,
    TypingStatusResponse,
)
from ....models.conversation import Conversation
from ....models.message import Role
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    role: Role = Query(..., description="Role of the participant"),
    identity: str = Query(..., min_length=1, description="Participant email"),
    service: ConversationService = Depends(get_conversation_service)
):
    """
    List a participant's conversations.

    WHAT: Customer inbox or seller dashboard listing
    WHY: Dashboards filter threads by participant
    HOW: Registry participant view plus unread badge count
    """
    conversations = list(service.conversations_for(role, identity))
    return ConversationListResponse(
        conversations=conversations,
        total=len(conversations),
        unread=sum(1 for c in conversations if not c.is_read_by(role))
    )


@router.get("/conversations/flagged", response_model=list[Conversation])
async def list_flagged_conversations(
    service: ConversationService = Depends(get_conversation_service)
):
    """Conversations awaiting moderation (admin panel)."""
    return list(service.flagged_conversations())


@router.post("/conversations", response_model=Conversation)
async def start_conversation(
    request: StartConversationRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    """Open (or reopen) the chat about a vehicle."""
    return service.start_conversation(
        customer_id=request.customer_id,
        seller_id=request.seller_id,
        vehicle_id=request.vehicle_id,
        customer_name=request.customer_name,
        vehicle_name=request.vehicle_name,
        vehicle_price=request.vehicle_price
    )


@router.get("/conversations/{conversation_id}", response_model=Conversation)
async def get_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service)
):
    return service.get_conversation(conversation_id)


@router.post("/conversations/{conversation_id}/messages")
async def send_message(
    conversation_id: str,
    request: SendMessageRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    """Send a text message; returns the stored message."""
    message = service.send_message(conversation_id, request.text, request.sender_role)
    return to_document(message)


@router.post("/conversations/{conversation_id}/offers")
async def send_offer(
    conversation_id: str,
    request: SendOfferRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    """Send an offer message with a pending payload."""
    message = service.send_offer(conversation_id, request.offer_price, request.sender_role)
    return to_document(message)


@router.post("/conversations/{conversation_id}/offers/{message_id}/respond")
async def respond_to_offer(
    conversation_id: str,
    message_id: int,
    request: OfferResponseRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    """
    Accept, reject or counter an offer.

    Returns the updated offer message; the outcome message is visible in
    the conversation.
    """
    offer = service.respond_to_offer(
        conversation_id,
        message_id,
        request.response,
        request.counter_price,
        responder_role=request.responder_role
    )
    return to_document(offer)


@router.post("/conversations/{conversation_id}/read", response_model=Conversation)
async def mark_read(
    conversation_id: str,
    request: MarkReadRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    service.mark_read(conversation_id, request.reader_role)
    return service.get_conversation(conversation_id)


@router.put("/conversations/{conversation_id}/typing", response_model=TypingStatusResponse)
async def set_typing(
    conversation_id: str,
    request: TypingRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    service.set_typing(conversation_id, request.role, request.is_typing)
    return _typing_response(service)


@router.get("/typing", response_model=TypingStatusResponse)
async def get_typing(service: ConversationService = Depends(get_conversation_service)):
    """Current typing indicator (polled by the chat widget)."""
    return _typing_response(service)


def _typing_response(service: ConversationService) -> TypingStatusResponse:
    status = service.typing_status()
    if status is None:
        return TypingStatusResponse()
    return TypingStatusResponse(
        conversation_id=status.conversation_id,
        user_role=status.user_role,
        is_typing=True
    )


@router.post("/conversations/{conversation_id}/flag", response_model=Conversation)
async def flag_conversation(
    conversation_id: str,
    request: FlagRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    return service.flag_conversation(conversation_id, request.reason)


@router.delete("/conversations/{conversation_id}/flag", response_model=Conversation)
async def resolve_flag(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service)
):
    return service.resolve_flag(conversation_id)


@router.post("/sync", response_model=SyncResponse)
async def sync(service: ConversationService = Depends(get_conversation_service)):
    """Retry writing unsaved snapshots after a persistence failure."""
    service.sync()
    return SyncResponse(synced=True)
