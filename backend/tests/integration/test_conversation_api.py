"""
Integration tests for the conversation API.

WHAT: Test HTTP endpoints end to end
WHY: Verify routing, request validation and error mapping
HOW: FastAPI TestClient with the service dependency overridden
"""

import pytest
from fastapi.testclient import TestClient

from reride.chat.service_factory import get_conversation_service
from reride.core.config import settings
from reride.main import app
from reride.utils.exceptions import PersistenceError
from tests.fixtures.chat import CUSTOMER, SELLER


@pytest.fixture
def client(service):
    """TestClient bound to the in-memory service (lifespan not started)."""
    app.dependency_overrides[get_conversation_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _send_offer(client, price=600000):
    response = client.post(
        "/api/v1/conversations/conv_1/offers",
        json={"offer_price": price, "sender_role": "seller"}
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.integration
class TestConversationEndpoints:
    """Test conversation routes."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_list_for_seller(self, client):
        response = client.get(
            "/api/v1/conversations", params={"role": "seller", "identity": SELLER}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["unread"] == 0
        assert data["conversations"][0]["sellerId"] == SELLER

    def test_list_invalid_role(self, client):
        response = client.get(
            "/api/v1/conversations", params={"role": "admin", "identity": SELLER}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_get_conversation(self, client):
        response = client.get("/api/v1/conversations/conv_1")

        assert response.status_code == 200
        assert response.json()["vehicleName"] == "2025 Toyota Fortuner"

    def test_get_unknown(self, client):
        response = client.get("/api/v1/conversations/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "CONVERSATION_NOT_FOUND"

    def test_start_conversation(self, client):
        response = client.post("/api/v1/conversations", json={
            "customer_id": "buyer@test.com",
            "seller_id": SELLER,
            "vehicle_id": 9,
            "vehicle_name": "2020 Hyundai Creta",
        })

        assert response.status_code == 200
        assert response.json()["id"] == "buyer@test.com-9"

    def test_send_message(self, client):
        response = client.post(
            "/api/v1/conversations/conv_1/messages",
            json={"text": "Is this still available?", "sender_role": "customer"}
        )

        assert response.status_code == 200
        message = response.json()
        assert message["type"] == "text"
        assert message["sender"] == "customer"
        assert message["isRead"] is False

        conversation = client.get("/api/v1/conversations/conv_1").json()
        assert conversation["isReadBySeller"] is False
        assert conversation["lastMessageAt"] == message["timestamp"]

    def test_blank_message(self, client):
        response = client.post(
            "/api/v1/conversations/conv_1/messages",
            json={"text": "   ", "sender_role": "customer"}
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "text"}

    def test_counter_offer(self, client):
        offer = _send_offer(client)

        response = client.post(
            f"/api/v1/conversations/conv_1/offers/{offer['id']}/respond",
            json={"response": "countered", "responder_role": "customer", "counter_price": 550000}
        )

        assert response.status_code == 200
        assert response.json()["payload"] == {
            "offerPrice": 600000.0,
            "status": "countered",
            "counterPrice": 550000.0,
        }
        messages = client.get("/api/v1/conversations/conv_1").json()["messages"]
        assert messages[-1]["text"] == "💰 Counter-offer made: ₹5,50,000"

    def test_respond_twice(self, client):
        offer = _send_offer(client)
        url = f"/api/v1/conversations/conv_1/offers/{offer['id']}/respond"
        client.post(url, json={"response": "rejected", "responder_role": "customer"})

        response = client.post(url, json={"response": "accepted", "responder_role": "customer"})

        assert response.status_code == 409
        assert response.json()["error"] == "OFFER_ALREADY_RESOLVED"

    def test_respond_unknown_offer(self, client):
        response = client.post(
            "/api/v1/conversations/conv_1/offers/12345/respond",
            json={"response": "accepted", "responder_role": "customer"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "OFFER_NOT_FOUND"

    def test_counter_without_price(self, client):
        offer = _send_offer(client)

        response = client.post(
            f"/api/v1/conversations/conv_1/offers/{offer['id']}/respond",
            json={"response": "countered", "responder_role": "customer"}
        )

        assert response.status_code == 400

    def test_mark_read(self, client):
        client.post(
            "/api/v1/conversations/conv_1/messages",
            json={"text": "Hello", "sender_role": "seller"}
        )

        response = client.post("/api/v1/conversations/conv_1/read", json={"reader_role": "customer"})

        assert response.status_code == 200
        assert response.json()["isReadByCustomer"] is True
        assert response.json()["messages"][0]["isRead"] is True

    def test_typing(self, client):
        response = client.put(
            "/api/v1/conversations/conv_1/typing", json={"role": "seller", "is_typing": True}
        )

        assert response.status_code == 200
        assert response.json() == {
            "conversation_id": "conv_1",
            "user_role": "seller",
            "is_typing": True,
        }

        client.put("/api/v1/conversations/conv_1/typing", json={"role": "seller", "is_typing": False})
        assert client.get("/api/v1/typing").json()["is_typing"] is False

    def test_flag_flow(self, client):
        response = client.post("/api/v1/conversations/conv_1/flag", json={"reason": "Spam"})

        assert response.status_code == 200
        assert response.json()["isFlagged"] is True
        assert len(client.get("/api/v1/conversations/flagged").json()) == 1

        response = client.delete("/api/v1/conversations/conv_1/flag")

        assert response.json()["isFlagged"] is False
        assert client.get("/api/v1/conversations/flagged").json() == []

    def test_sync(self, client):
        response = client.post("/api/v1/sync")

        assert response.status_code == 200
        assert response.json() == {"synced": True}


@pytest.mark.integration
class TestNotificationEndpoints:
    """Test notification routes."""

    def test_list_and_mark_read(self, client):
        client.post(
            "/api/v1/conversations/conv_1/messages",
            json={"text": "Is this still available?", "sender_role": "customer"}
        )

        data = client.get("/api/v1/notifications", params={"recipient": SELLER}).json()
        assert data["unread"] == 1
        notification = data["notifications"][0]
        assert notification["recipientEmail"] == SELLER
        assert notification["targetId"] == "conv_1"

        response = client.post("/api/v1/notifications/read", json={"ids": [notification["id"]]})

        assert response.json() == {"updated": 1}
        data = client.get(
            "/api/v1/notifications", params={"recipient": SELLER, "unread_only": True}
        ).json()
        assert data == {"notifications": [], "unread": 0}

    def test_mark_all_read(self, client):
        for text in ("one", "two"):
            client.post(
                "/api/v1/conversations/conv_1/messages",
                json={"text": text, "sender_role": "seller"}
            )

        response = client.post("/api/v1/notifications/read-all", json={"recipient_email": CUSTOMER})

        assert response.json() == {"updated": 2}


@pytest.mark.integration
class TestHealthEndpoint:

    def test_health(self, client, monkeypatch):
        monkeypatch.setattr(settings, "PERSISTENCE_BACKEND", "memory")

        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["conversations"] == 1
        assert data["unsaved_changes"] is False
        assert data["unsaved_collections"] == []

    def test_health_lists_unsaved_collections(self, client, conversation_repo, monkeypatch):
        monkeypatch.setattr(settings, "PERSISTENCE_BACKEND", "memory")

        def fail_save(conversations):
            raise PersistenceError("conversations", "disk full")

        monkeypatch.setattr(conversation_repo, "save_conversations", fail_save)
        response = client.post(
            "/api/v1/conversations/conv_1/messages",
            json={"text": "Hi", "sender_role": "customer"}
        )
        assert response.status_code == 503

        data = client.get("/api/v1/health").json()

        assert data["status"] == "degraded"
        assert data["unsaved_collections"] == ["conversations"]
