"""Tests for the HTTP API wired to a session controller."""

import uuid

import pytest
from conftest import DAY_MS, make_chat, make_status
from fastapi.testclient import TestClient

from db import AuthError
from dependencies import get_auth_service, get_firestore_service, get_session_registry
from main import app
from state import SessionRegistry


@pytest.fixture
def registry(controller):
    return SessionRegistry(factory=lambda: controller)


@pytest.fixture
def session_id(registry):
    """A session the registry already knows, as after a first sign-in call."""
    session_id = str(uuid.uuid4())
    registry.get(session_id)
    return session_id


@pytest.fixture
def client(registry, session_id, fake_firestore, mock_auth_service):
    """Test client with backend services replaced by doubles.

    Each test gets its own session cookie so rate limits do not carry over.
    """
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_firestore_service] = lambda: fake_firestore
    app.dependency_overrides[get_auth_service] = lambda: mock_auth_service
    yield TestClient(app, cookies={"session_id": session_id})
    app.dependency_overrides.clear()


class TestHealth:
    """Tests for GET /api/health."""

    def test_healthy(self, client):
        """Test health reports Firestore and session counts."""
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["active_sessions"] == 1
        assert body["services"][0]["name"] == "firestore"

    def test_root(self, client):
        """Test the root endpoint lists the API entry points."""
        assert client.get("/").json()["events"] == "/api/events"


class TestSessions:
    """Tests for session lifetime in the registry."""

    def test_anonymous_requests_do_not_create_sessions(self, client, registry):
        """Test cookie-less requests to protected routes allocate nothing."""
        anonymous = TestClient(app)
        before = len(registry)

        codes = {anonymous.get("/api/chats").status_code for _ in range(200)}

        assert codes == {401}
        assert len(registry) == before

    def test_events_require_session(self, client):
        """Test the event stream rejects unknown sessions."""
        response = TestClient(app).get("/api/events")

        assert response.status_code == 401
        assert response.json()["code"] == "1001"

    def test_failed_login_is_not_kept(self, client, registry, mock_auth_service):
        """Test a rejected login does not leave a session behind."""
        mock_auth_service.sign_in_with_password.side_effect = AuthError("bad password")
        before = len(registry)

        response = TestClient(app).post(
            "/api/auth/login", json={"email": "me@test.dev", "password": "nope"}
        )

        assert response.status_code == 400
        assert len(registry) == before

    def test_logout_without_session(self, client, registry):
        """Test logging out an unknown session succeeds without creating one."""
        before = len(registry)

        response = TestClient(app).post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out"
        assert len(registry) == before


class TestAuth:
    """Tests for /api/auth."""

    def test_signup_missing_fields(self, client):
        """Test empty fields are reported through the rejected-request envelope."""
        response = client.post("/api/auth/signup", json={"name": "Me"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "1007"
        assert body["message"] == "Please fill in all fields"
        assert body["error_details"]["state"]["signed_in"] is False

    def test_signup(self, client, registry):
        """Test signup creates the account and returns the new state."""
        response = client.post(
            "/api/auth/signup",
            json={
                "name": "Me",
                "number": "111",
                "email": "me@test.dev",
                "password": "secret",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["user_id"] == "uid-me"
        assert body["data"]["state"]["signed_in"] is True
        assert "session_id" in response.cookies
        assert len(registry) == 1

    def test_login_failure(self, client, mock_auth_service):
        """Test a rejected login surfaces the provider message."""
        mock_auth_service.sign_in_with_password.side_effect = AuthError(
            "The password is invalid"
        )

        response = client.post(
            "/api/auth/login", json={"email": "me@test.dev", "password": "nope"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Login failed: The password is invalid"

    def test_logout(self, client, signed_in, fake_firestore, registry, session_id):
        """Test logout succeeds with an informational message and ends the session."""
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out"
        assert all(l.removed for l in fake_firestore.listeners)
        assert session_id not in registry

    def test_restore_requires_bearer_token(self, client):
        """Test restore without a token is unauthenticated."""
        response = client.post("/api/auth/restore")

        assert response.status_code == 401
        assert response.json()["code"] == "1001"

    def test_restore(self, client, controller, fake_firestore):
        """Test a verified token signs the session in."""
        response = client.post(
            "/api/auth/restore", headers={"Authorization": "Bearer id-token"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["user_id"] == "uid-me"
        assert controller.signed_in.value is True
        assert [l.key for l in fake_firestore.of("user")] == ["uid-me"]

    def test_restore_invalid_token(self, client, mock_auth_service):
        """Test an invalid token is rejected."""
        mock_auth_service.verify_id_token.side_effect = AuthError(
            "Invalid ID token", "INVALID_ID_TOKEN"
        )

        response = client.post(
            "/api/auth/restore", headers={"Authorization": "Bearer expired"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid ID token"

    def test_restore_provider_failure(self, client, mock_auth_service):
        """Test a provider outage is reported as an upstream failure."""
        mock_auth_service.verify_id_token.side_effect = AuthError(
            "certificate fetch failed", "UNKNOWN"
        )

        response = client.post(
            "/api/auth/restore", headers={"Authorization": "Bearer id-token"}
        )

        assert response.status_code == 502
        assert response.json()["code"] == "3001"


class TestChats:
    """Tests for /api/chats."""

    def test_requires_sign_in(self, client):
        """Test chat endpoints reject anonymous sessions."""
        response = client.get("/api/chats")

        assert response.status_code == 401
        assert response.json()["code"] == "1001"

    def test_list_chats(self, client, signed_in, fake_firestore, me, alice):
        """Test chats are listed with the partner resolved."""
        fake_firestore.of("chats")[0].emit([make_chat("c1", me, alice)])

        response = client.get("/api/chats")

        assert response.status_code == 200
        [chat] = response.json()["data"]["chats"]
        assert chat["partner"]["name"] == "Alice"

    def test_add_chat(self, client, signed_in, fake_firestore, alice):
        """Test adding a registered number creates a chat."""
        fake_firestore.find_users_by_number.return_value = [alice]

        response = client.post("/api/chats", json={"number": "222"})

        assert response.status_code == 201
        chat = response.json()["data"]["chat"]
        assert chat["chat_id"] == "chat-new"
        assert chat["user2"]["user_id"] == "uid-alice"

    def test_add_own_number(self, client, signed_in):
        """Test adding my own number is rejected."""
        response = client.post("/api/chats", json={"number": "111"})

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot add your own number"

    def test_open_unknown_chat(self, client, signed_in, fake_firestore):
        """Test opening a chat that is not mine is not found."""
        fake_firestore.of("chats")[0].emit([])

        response = client.get("/api/chats/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "1002"

    def test_open_and_close_chat(self, client, signed_in, fake_firestore, me, alice):
        """Test opening starts the message stream and closing releases it."""
        fake_firestore.of("chats")[0].emit([make_chat("c1", me, alice)])

        response = client.get("/api/chats/c1")

        assert response.status_code == 200
        assert response.json()["data"]["partner"]["name"] == "Alice"
        [listener] = fake_firestore.of("messages")

        # Reopening the same chat keeps the listener
        client.get("/api/chats/c1")
        assert fake_firestore.of("messages") == [listener]

        assert client.delete("/api/chats/c1/open").status_code == 200
        assert listener.removed

    def test_send_reply(self, client, signed_in, fake_firestore, me, alice):
        """Test a reply is written to the chat's messages."""
        fake_firestore.of("chats")[0].emit([make_chat("c1", me, alice)])

        response = client.post("/api/chats/c1/messages", json={"message": "hello"})

        assert response.status_code == 200
        chat_id, message = fake_firestore.add_message.await_args.args
        assert (chat_id, message.message) == ("c1", "hello")

    def test_open_chat_while_list_loads(self, client, signed_in, fake_firestore):
        """Test a chat opened before the chat list arrives answers as loading."""
        response = client.get("/api/chats/c1")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["loading"] is True
        assert data["messages"] == []
        assert fake_firestore.of("messages") == []

    def test_open_just_created_chat(self, client, signed_in, fake_firestore, alice):
        """Test a chat created here opens before its snapshot arrives."""
        fake_firestore.of("chats")[0].emit([])
        fake_firestore.find_users_by_number.return_value = [alice]
        assert client.post("/api/chats", json={"number": "222"}).status_code == 201

        response = client.get("/api/chats/chat-new")

        assert response.status_code == 200
        assert response.json()["data"]["partner"]["name"] == "Alice"
        assert [l.key for l in fake_firestore.of("messages")] == ["chat-new"]

    def test_send_reply_while_list_loads(self, client, signed_in, fake_firestore):
        """Test a reply sent before the chat list arrives is written."""
        response = client.post("/api/chats/c1/messages", json={"message": "hello"})

        assert response.status_code == 200
        fake_firestore.add_message.assert_awaited_once()

    def test_send_reply_unknown_chat(self, client, signed_in, fake_firestore):
        """Test replies to unknown chats are not written."""
        fake_firestore.of("chats")[0].emit([])

        response = client.post("/api/chats/c9/messages", json={"message": "hello"})

        assert response.status_code == 404
        fake_firestore.add_message.assert_not_awaited()


class TestStatuses:
    """Tests for /api/statuses."""

    def test_overview(self, client, signed_in, fake_firestore, me, alice):
        """Test the status list separates my entry from contacts."""
        fake_firestore.of("chats")[1].emit([make_chat("c1", me, alice)])
        fake_firestore.of("status")[0].emit(
            [make_status(alice, signed_in._clock() - 1000)]
        )

        response = client.get("/api/statuses")

        assert response.status_code == 200
        assert "session_id" in response.cookies
        data = response.json()["data"]
        assert data["loading"] is False
        assert data["mine"] is None
        assert [a["name"] for a in data["others"]] == ["Alice"]

    def test_overview_drops_expired_statuses(
        self, client, signed_in, fake_firestore, clock, me, alice
    ):
        """Test statuses past the TTL disappear without a new snapshot."""
        fake_firestore.of("chats")[1].emit([make_chat("c1", me, alice)])
        fake_firestore.of("status")[0].emit([make_status(alice, clock() - 1000)])

        clock.advance(DAY_MS)

        data = client.get("/api/statuses").json()["data"]
        assert data["empty"] is True
        assert client.get("/api/statuses/uid-alice").status_code == 404

    def test_author_without_statuses(self, client, signed_in):
        """Test an author with no fresh statuses is not found."""
        response = client.get("/api/statuses/uid-alice")

        assert response.status_code == 404

    def test_upload_status(self, client, signed_in, fake_firestore):
        """Test an uploaded image is posted as a status."""
        response = client.post(
            "/api/statuses", files={"file": ("sunset.png", b"img", "image/png")}
        )

        assert response.status_code == 201
        fake_firestore.add_status.assert_awaited_once()

    def test_upload_rejects_non_image(self, client, signed_in, fake_firestore):
        """Test non-image uploads are rejected before they are read."""
        response = client.post(
            "/api/statuses", files={"file": ("notes.txt", b"text", "text/plain")}
        )

        assert response.status_code == 415
        assert response.json()["code"] == "1005"
        fake_firestore.add_status.assert_not_awaited()


class TestRateLimit:
    """Tests for write rate limiting."""

    def test_burst_rejected(self, client, signed_in):
        """Test rapid writes beyond the burst limit get 429."""
        codes = [
            client.post("/api/chats", json={"number": "111"}).status_code
            for _ in range(12)
        ]

        assert 429 in codes
        assert codes[0] == 400
