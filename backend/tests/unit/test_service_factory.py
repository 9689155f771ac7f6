"""
Unit tests for the conversation service factory.

WHAT: Test backend selection and the singleton
WHY: The registry must be shared by every request in the process
HOW: Memory and JSON backends via settings overrides
"""

import pytest

from reride.chat.persistence import JsonFileConversationRepository
from reride.chat.service_factory import (
    build_conversation_service,
    get_conversation_service,
    reset_conversation_service,
)
from reride.core.config import settings


@pytest.mark.unit
class TestServiceFactory:

    def test_memory_backend(self):
        service = build_conversation_service("memory")

        assert len(service.registry) == 0
        assert service.has_unsaved_changes is False

    def test_json_backend(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "CONVERSATIONS_FILE", str(tmp_path / "conversations.json"))
        monkeypatch.setattr(settings, "NOTIFICATIONS_FILE", str(tmp_path / "notifications.json"))

        service = build_conversation_service("json")
        service.start_conversation("buyer@test.com", "seller@test.com", 3)

        repo = JsonFileConversationRepository(tmp_path / "conversations.json")
        assert [c.id for c in repo.load_conversations()] == ["buyer@test.com-3"]

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_conversation_service("redis")

    def test_singleton(self, monkeypatch):
        monkeypatch.setattr(settings, "PERSISTENCE_BACKEND", "memory")

        first = get_conversation_service()

        assert get_conversation_service() is first

        reset_conversation_service()

        assert get_conversation_service() is not first
