"""
Integration tests for Chat API endpoints

Tests:
- /api/v1/chats list and create
- /api/v1/chats/{id} conversation fetch per branch
- /api/v1/chats/messages and /api/v1/chats/{id}/messages send
- /api/v1/chats/{id}/messages/{id}/edit branching edit
- Caller identification
- Error mapping
"""

import pytest
from uuid import uuid4
from fastapi.testclient import TestClient

from branchchat.main import app
from branchchat.api.deps import get_db, get_llm_service
from branchchat.core.exceptions import UpstreamGenerationError

HEADERS = {"X-User-Id": "user-1"}


@pytest.mark.integration
class TestChatAPI:
    """Integration tests for Chat API"""

    @pytest.fixture
    def client(self, db_session, mock_llm):
        """Create test client with mocked dependencies"""

        def override_get_db():
            try:
                yield db_session
            finally:
                pass

        def override_get_llm_service():
            return mock_llm

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_llm_service] = override_get_llm_service

        client = TestClient(app)
        yield client

        app.dependency_overrides.clear()

    def _send(self, client, message, chat_id=None, **extra):
        url = f"/api/v1/chats/{chat_id}/messages" if chat_id else "/api/v1/chats/messages"
        return client.post(url, json={"message": message, **extra}, headers=HEADERS)

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_user_header(self, client):
        """Requests without a caller id are rejected"""
        response = client.get("/api/v1/chats")

        assert response.status_code == 401

    def test_create_and_list_chats(self, client):
        response = client.post("/api/v1/chats", json={"title": "Groceries"}, headers=HEADERS)

        assert response.status_code == 201
        created = response.json()
        assert created["title"] == "Groceries"
        assert created["message_count"] == 0

        response = client.get("/api/v1/chats", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert [c["chat_id"] for c in data] == [created["chat_id"]]

        other = client.get("/api/v1/chats", headers={"X-User-Id": "user-2"})
        assert other.json() == []

    def test_send_creates_chat(self, client, mock_llm):
        response = self._send(client, "How do I bake bread?")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Generated Title"
        assert data["user_message"]["role"] == "user"
        assert data["user_message"]["content"] == "How do I bake bread?"
        assert data["user_message"]["branch_index"] == 1
        assert data["assistant_message"]["role"] == "assistant"
        assert data["assistant_message"]["content"] == "Assistant reply"
        assert data["assistant_message"]["reply_to"] == data["user_message"]["id"]

    def test_send_metadata(self, client):
        response = self._send(
            client,
            "Remind me",
            related_events=[{"id": "evt-1"}],
            trigger="schedule",
            trigger_source="calendar",
        )

        user_message = response.json()["user_message"]
        assert user_message["related_events"] == [{"id": "evt-1"}]
        assert user_message["trigger"] == "schedule"
        assert user_message["trigger_source"] == "calendar"

    def test_get_conversation(self, client):
        sent = self._send(client, "Hello").json()
        chat_id = sent["chat_id"]

        response = client.get(f"/api/v1/chats/{chat_id}", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["branch_index"] == 1
        assert [m["id"] for m in data["messages"]] == [
            sent["user_message"]["id"],
            sent["assistant_message"]["id"],
        ]
        assert data["branch_info"] == {}

    def test_edit_creates_branch(self, client):
        """Editing forks branch 2; both branches stay loadable"""
        sent = self._send(client, "Q").json()
        chat_id = sent["chat_id"]
        q_id = sent["user_message"]["id"]

        response = client.post(
            f"/api/v1/chats/{chat_id}/messages/{q_id}/edit",
            json={"new_message": "Q'"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        edit = response.json()
        assert edit["branch_index"] == 2
        assert edit["edited_message"]["parent_message_id"] == q_id
        assert edit["assistant_message"]["parent_message_id"] == sent["assistant_message"]["id"]

        branch = client.get(f"/api/v1/chats/{chat_id}?branch_index=2", headers=HEADERS).json()
        assert [m["content"] for m in branch["messages"]] == ["Q'", "Assistant reply"]
        assert branch["branch_info"][q_id] == {"branch_count": 2, "current_branch": 2}

        main = client.get(f"/api/v1/chats/{chat_id}", headers=HEADERS).json()
        assert [m["content"] for m in main["messages"]] == ["Q", "Assistant reply"]

    def test_edit_assistant_message_rejected(self, client):
        sent = self._send(client, "Q").json()

        response = client.post(
            f"/api/v1/chats/{sent['chat_id']}/messages/{sent['assistant_message']['id']}/edit",
            json={"new_message": "nope"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_edit_unknown_message(self, client):
        sent = self._send(client, "Q").json()

        response = client.post(
            f"/api/v1/chats/{sent['chat_id']}/messages/{uuid4()}/edit",
            json={"new_message": "Q'"},
            headers=HEADERS,
        )

        assert response.status_code == 404

    def test_other_users_chat_not_found(self, client):
        sent = self._send(client, "Private").json()

        response = client.get(
            f"/api/v1/chats/{sent['chat_id']}",
            headers={"X-User-Id": "user-2"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_invalid_branch_index(self, client):
        sent = self._send(client, "Q").json()

        response = client.get(f"/api/v1/chats/{sent['chat_id']}?branch_index=0", headers=HEADERS)

        assert response.status_code == 400

    def test_empty_message_rejected(self, client):
        response = self._send(client, "   ")

        assert response.status_code == 400

    def test_generation_failure_returns_502(self, client, mock_llm):
        """The user message survives a failed generation"""
        created = client.post("/api/v1/chats", json={"title": "Chat"}, headers=HEADERS).json()
        mock_llm.generate.side_effect = UpstreamGenerationError("provider down")

        response = self._send(client, "Hello", chat_id=created["chat_id"])

        assert response.status_code == 502
        assert response.json()["error"] == "generation_error"

        conversation = client.get(f"/api/v1/chats/{created['chat_id']}", headers=HEADERS).json()
        assert [m["content"] for m in conversation["messages"]] == ["Hello"]
