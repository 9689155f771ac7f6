"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers and shared fixtures
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers, fake clocks, in-memory repositories and a
     ready-to-use ConversationService
"""

import pytest

from reride.chat.conversation_service import ConversationService
from reride.chat.persistence import (
    InMemoryConversationRepository,
    InMemoryNotificationRepository,
)
from reride.chat.service_factory import reset_conversation_service
from reride.chat.typing_indicator import TypingIndicator
from tests.fixtures.chat import FakeClock, FakeMonotonic, make_conversation


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (storage backends, HTTP layer)"
    )


@pytest.fixture(autouse=True)
def reset_service_singleton():
    """
    Reset the service singleton before each test.

    WHAT: Clear the cached ConversationService between tests
    WHY: Prevent test pollution and ensure clean state
    HOW: Call reset_conversation_service() before and after each test
    """
    reset_conversation_service()
    yield
    reset_conversation_service()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def conversation_repo() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()


@pytest.fixture
def notification_repo() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture
def service(clock, monotonic, conversation_repo, notification_repo) -> ConversationService:
    """
    ConversationService holding one empty conversation "conv_1".

    WHAT: Facade wired to in-memory storage and fake clocks
    WHY: Deterministic ids, timestamps and typing expiry
    HOW: Seed the repository and hydrate through load()
    """
    conversation_repo.save_conversations([make_conversation()])
    conversation_repo.save_count = 0
    svc = ConversationService(
        conversation_repo,
        notification_repo,
        clock=clock,
        typing_indicator=TypingIndicator(timeout_seconds=2.0, monotonic=monotonic)
    )
    svc.load()
    return svc
