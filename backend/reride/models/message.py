"""
Message models for conversation history.

WHAT: Chat message as a tagged variant over text and offer messages
WHY: Only offer messages may carry a negotiation payload
HOW: Pydantic v2 discriminated union on the `type` field, camelCase JSON
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["customer", "seller"]
ROLES: tuple[str, ...] = ("customer", "seller")

# Status lines written by the app itself (e.g. "Offer accepted.")
SYSTEM_SENDER = "system"
Sender = Literal["customer", "seller", "system"]

# Older ReRide clients stored the customer side as "user"
LEGACY_SENDER_ALIASES = {"user": "customer"}


def other_role(role: str) -> Role:
    """Return the counter-party role."""
    if role == "customer":
        return "seller"
    if role == "seller":
        return "customer"
    raise ValueError(f"Unknown role: {role}")


class CamelModel(BaseModel):
    """Base model serialising to the camelCase shape the web client stores."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class OfferStatus(str, Enum):
    """Negotiation state of an offer message."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"


TERMINAL_OFFER_STATUSES = frozenset({OfferStatus.ACCEPTED, OfferStatus.REJECTED})


class OfferPayload(CamelModel):
    """Price proposal carried by an offer message."""

    offer_price: float = Field(gt=0.0)
    status: OfferStatus = OfferStatus.PENDING
    counter_price: float | None = Field(default=None, gt=0.0)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_OFFER_STATUSES

    @property
    def reference_price(self) -> float:
        """Price currently on the table: the counter price once countered."""
        return self.counter_price if self.counter_price is not None else self.offer_price


class MessageBase(CamelModel):
    """Fields shared by every message variant."""

    id: int | None = None
    sender: Sender
    text: str
    timestamp: datetime | None = None
    is_read: bool = False

    @field_validator("sender", mode="before")
    @classmethod
    def normalize_legacy_sender(cls, v):
        """Map legacy sender names onto roles."""
        if isinstance(v, str):
            return LEGACY_SENDER_ALIASES.get(v, v)
        return v


class TextMessage(MessageBase):
    """Plain chat message."""
    type: Literal["text"] = "text"


class OfferMessage(MessageBase):
    """Message carrying a negotiable price proposal."""
    type: Literal["offer"] = "offer"
    payload: OfferPayload


class DriveRequestStatus(str, Enum):
    """Seller's answer to a test drive request."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class DriveRequestPayload(CamelModel):
    """Requested slot; date and time are kept as the client entered them."""

    date: str | None = None
    time: str | None = None
    status: DriveRequestStatus = DriveRequestStatus.PENDING


class DriveRequestMessage(MessageBase):
    """Customer request to see the vehicle in person."""
    type: Literal["test_drive_request"] = "test_drive_request"
    payload: DriveRequestPayload = Field(default_factory=DriveRequestPayload)


Message = Annotated[
    Union[TextMessage, OfferMessage, DriveRequestMessage],
    Field(discriminator="type")
]

message_adapter: TypeAdapter = TypeAdapter(Message)
