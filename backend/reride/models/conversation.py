"""
Conversation and notification domain models.

WHAT: Conversation thread and notification records
WHY: Shared typing between registry, facade, persistence and API
HOW: Pydantic v2 models using the camelCase JSON shape of the web client
"""

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from .message import CamelModel, Message, Role


class Conversation(CamelModel):
    """A thread between one customer and one seller about one vehicle."""

    id: str = Field(min_length=1)
    customer_id: str
    customer_name: str = ""
    seller_id: str
    vehicle_id: int | str
    vehicle_name: str = ""
    vehicle_price: float | None = None
    messages: list[Message] = Field(default_factory=list)
    last_message_at: datetime
    is_read_by_customer: bool = True
    is_read_by_seller: bool = True
    is_flagged: bool = False
    flag_reason: str | None = None
    flagged_at: datetime | None = None

    @field_validator("messages", mode="before")
    @classmethod
    def default_message_type(cls, v):
        """Messages written before offers existed have no `type`."""
        if isinstance(v, list):
            return [
                {**item, "type": "text"} if isinstance(item, dict) and "type" not in item else item
                for item in v
            ]
        return v

    def participant(self, role: Role) -> str:
        """Identity of the participant holding `role`."""
        return self.customer_id if role == "customer" else self.seller_id

    def is_read_by(self, role: Role) -> bool:
        return self.is_read_by_customer if role == "customer" else self.is_read_by_seller

    def find_message(self, message_id: int) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None


NotificationTarget = Literal[
    "vehicle", "conversation", "price_drop", "insurance_expiry", "general_admin"
]


class Notification(CamelModel):
    """Notification addressed to one participant."""

    id: int
    recipient_email: str
    message: str
    target_id: str | int
    target_type: NotificationTarget = "conversation"
    is_read: bool = False
    timestamp: datetime
