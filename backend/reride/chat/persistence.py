"""
Persistence collaborators for conversations and notifications.

WHAT: Load-at-startup / save-full-snapshot repositories
WHY: Keep the chat core testable without a browser store or database
HOW: Abstract repositories with SQLAlchemy, JSON file and in-memory
     implementations; backend failures surface as PersistenceError
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.database import get_db
from ..core.models import ConversationRecord, NotificationRecord
from ..models.conversation import Conversation, Notification
from ..utils.exceptions import PersistenceError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def to_document(record: BaseModel) -> dict[str, Any]:
    """JSON-compatible camelCase shape of a conversation or notification."""
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


def conversations_from_documents(documents: Iterable[dict]) -> list[Conversation]:
    """
    Validate stored conversation documents.

    Raises:
        PersistenceError: If any document does not match the model
    """
    try:
        return [Conversation.model_validate(doc) for doc in documents]
    except PydanticValidationError as e:
        logger.error(f"Invalid stored conversation: {e}")
        raise PersistenceError("conversations", f"invalid stored conversation: {e}") from e


def notifications_from_documents(documents: Iterable[dict]) -> list[Notification]:
    try:
        return [Notification.model_validate(doc) for doc in documents]
    except PydanticValidationError as e:
        logger.error(f"Invalid stored notification: {e}")
        raise PersistenceError("notifications", f"invalid stored notification: {e}") from e


class ConversationRepository(ABC):
    """Persistence contract for the conversation collection."""

    @abstractmethod
    def load_conversations(self) -> list[Conversation]:
        """Load every stored conversation (called once at startup)."""

    @abstractmethod
    def save_conversations(self, conversations: list[Conversation]) -> None:
        """Replace the stored collection with a full snapshot."""


class NotificationRepository(ABC):
    """Persistence contract for notifications."""

    @abstractmethod
    def load_notifications(self) -> list[Notification]:
        """Load every stored notification."""

    @abstractmethod
    def save_notifications(self, notifications: list[Notification]) -> None:
        """Replace the stored notifications with a full snapshot."""


# ========== In-memory ==========

class InMemoryConversationRepository(ConversationRepository):
    """Keeps serialized snapshots in memory; used by tests and the memory backend."""

    def __init__(self, documents: list[dict] | None = None):
        self.documents: list[dict] = list(documents or [])
        self.save_count = 0

    def load_conversations(self) -> list[Conversation]:
        return conversations_from_documents(self.documents)

    def save_conversations(self, conversations: list[Conversation]) -> None:
        self.documents = [to_document(c) for c in conversations]
        self.save_count += 1


class InMemoryNotificationRepository(NotificationRepository):
    def __init__(self, documents: list[dict] | None = None):
        self.documents: list[dict] = list(documents or [])
        self.save_count = 0

    def load_notifications(self) -> list[Notification]:
        return notifications_from_documents(self.documents)

    def save_notifications(self, notifications: list[Notification]) -> None:
        self.documents = [to_document(n) for n in notifications]
        self.save_count += 1


# ========== JSON file ==========

class _JsonFileStore:
    """A JSON array on disk, written atomically via a temp file."""

    def __init__(self, path: str | Path, collection: str):
        self.path = Path(path)
        self.collection = collection

    def read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {self.collection} from {self.path}: {e}")
            raise PersistenceError(self.collection, str(e)) from e

        if not isinstance(data, list):
            raise PersistenceError(self.collection, f"{self.path} does not hold a JSON array")
        return data

    def write(self, documents: list[dict]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(documents, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to write {self.collection} to {self.path}: {e}")
            raise PersistenceError(self.collection, str(e)) from e


class JsonFileConversationRepository(ConversationRepository):
    """Conversations stored as the web client's `reRideConversations` array."""

    def __init__(self, path: str | Path):
        self._store = _JsonFileStore(path, "conversations")

    def load_conversations(self) -> list[Conversation]:
        return conversations_from_documents(self._store.read())

    def save_conversations(self, conversations: list[Conversation]) -> None:
        self._store.write([to_document(c) for c in conversations])


class JsonFileNotificationRepository(NotificationRepository):
    """Notifications stored as the web client's `reRideNotifications` array."""

    def __init__(self, path: str | Path):
        self._store = _JsonFileStore(path, "notifications")

    def load_notifications(self) -> list[Notification]:
        return notifications_from_documents(self._store.read())

    def save_notifications(self, notifications: list[Notification]) -> None:
        self._store.write([to_document(n) for n in notifications])


# ========== SQLAlchemy ==========

class _SqlRepository:
    def __init__(self, db_engine: Engine | None = None):
        self._session_factory = (
            sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False)
            if db_engine is not None else None
        )


class SqlAlchemyConversationRepository(_SqlRepository, ConversationRepository):
    """
    Conversations in the `conversations` table.

    WHAT: Full-snapshot replace inside one transaction
    WHY: Matches the write-the-whole-collection contract
    HOW: Delete all rows, insert one document row per conversation
    """

    def load_conversations(self) -> list[Conversation]:
        try:
            with get_db(self._session_factory) as db:
                rows = db.execute(
                    select(ConversationRecord.document).order_by(ConversationRecord.position)
                ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load conversations: {e}")
            raise PersistenceError("conversations", str(e)) from e

        return conversations_from_documents(rows)

    def save_conversations(self, conversations: list[Conversation]) -> None:
        try:
            with get_db(self._session_factory) as db:
                db.execute(delete(ConversationRecord))
                db.add_all([
                    ConversationRecord(
                        conversation_id=c.id,
                        position=position,
                        customer_id=c.customer_id,
                        seller_id=c.seller_id,
                        is_flagged=c.is_flagged,
                        last_message_at=c.last_message_at,
                        document=to_document(c),
                    )
                    for position, c in enumerate(conversations)
                ])
        except SQLAlchemyError as e:
            logger.error(f"Failed to save conversations: {e}")
            raise PersistenceError("conversations", str(e)) from e

        logger.debug(f"Saved snapshot of {len(conversations)} conversations")


class SqlAlchemyNotificationRepository(_SqlRepository, NotificationRepository):
    """Notifications in the `notifications` table."""

    def load_notifications(self) -> list[Notification]:
        try:
            with get_db(self._session_factory) as db:
                rows = db.execute(
                    select(NotificationRecord.document).order_by(NotificationRecord.notification_id)
                ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load notifications: {e}")
            raise PersistenceError("notifications", str(e)) from e

        return notifications_from_documents(rows)

    def save_notifications(self, notifications: list[Notification]) -> None:
        try:
            with get_db(self._session_factory) as db:
                db.execute(delete(NotificationRecord))
                db.add_all([
                    NotificationRecord(
                        notification_id=n.id,
                        recipient_email=n.recipient_email,
                        is_read=n.is_read,
                        document=to_document(n),
                    )
                    for n in notifications
                ])
        except SQLAlchemyError as e:
            logger.error(f"Failed to save notifications: {e}")
            raise PersistenceError("notifications", str(e)) from e

        logger.debug(f"Saved snapshot of {len(notifications)} notifications")
