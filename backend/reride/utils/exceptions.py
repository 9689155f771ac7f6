"""
Custom business exceptions for the conversation core.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error handling across facade, components and endpoints
HOW: Exception classes carrying an error code, message and details
"""

from typing import Optional, Any


class ReRideError(Exception):
    """Base class for conversation core exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ValidationError(ReRideError):
    """Raised when a caller-supplied argument fails a precondition."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field": field} if field else None
        )


class NotFoundError(ReRideError):
    """Raised when a referenced record does not exist."""


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation is not found."""

    def __init__(self, conversation_id: str):
        super().__init__(
            message=f"Conversation not found: {conversation_id}",
            code="CONVERSATION_NOT_FOUND",
            details={"conversation_id": conversation_id}
        )


class OfferMessageNotFoundError(NotFoundError):
    """Raised when no offer message with the given id exists in a conversation."""

    def __init__(self, conversation_id: str, message_id: int):
        super().__init__(
            message=f"Offer message {message_id} not found in conversation {conversation_id}",
            code="OFFER_NOT_FOUND",
            details={"conversation_id": conversation_id, "message_id": message_id}
        )


class InvalidStateError(ReRideError):
    """Raised when an offer that is already resolved is transitioned again."""

    def __init__(self, message_id: int, current_status: str, attempted: str):
        super().__init__(
            message=f"Offer {message_id} is already {current_status}; cannot mark it {attempted}",
            code="OFFER_ALREADY_RESOLVED",
            details={
                "message_id": message_id,
                "current_status": current_status,
                "attempted": attempted
            }
        )


class PersistenceError(ReRideError):
    """
    Raised when the backing store cannot be read or written.

    On a failed save the in-memory mutation has already been applied;
    callers retry the save, not the original action.
    """

    def __init__(self, collection: str, reason: str):
        super().__init__(
            message=f"Failed to persist {collection}: {reason}",
            code="PERSISTENCE_FAILED",
            details={"collection": collection}
        )
