"""
ORM models for conversation persistence.

WHAT: SQLAlchemy tables holding conversation and notification documents
WHY: Snapshots are written whole, so each record is stored as its JSON shape
HOW: One row per record, key columns indexed for participant lookups
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, JSON, String

from .database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationRecord(Base):
    """
    Conversation table.

    WHAT: A conversation with its messages as one JSON document
    WHY: Messages are only ever read together with their conversation
    HOW: Primary key on conversation id, participant columns for filtering
    """
    __tablename__ = "conversations"

    conversation_id = Column(String(255), primary_key=True)
    position = Column(Integer, nullable=False)  # registry order
    customer_id = Column(String(255), nullable=False, index=True)
    seller_id = Column(String(255), nullable=False, index=True)
    is_flagged = Column(Boolean, nullable=False, default=False)
    last_message_at = Column(DateTime(timezone=True), nullable=False)
    document = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now, onupdate=_utc_now)

    def __repr__(self):
        return f"<ConversationRecord(id={self.conversation_id}, seller={self.seller_id})>"


class NotificationRecord(Base):
    """Notification table."""
    __tablename__ = "notifications"

    notification_id = Column(BigInteger, primary_key=True, autoincrement=False)
    recipient_email = Column(String(255), nullable=False, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    document = Column(JSON, nullable=False)

    def __repr__(self):
        return f"<NotificationRecord(id={self.notification_id}, recipient={self.recipient_email})>"
