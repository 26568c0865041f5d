"""Pytest configuration and fixtures for Chatline tests."""

import os
import sys

# Set required env vars BEFORE any imports that might trigger Settings
os.environ.setdefault(
    "FIREBASE_CREDENTIALS", '{"type":"service_account","project_id":"test"}'
)
os.environ.setdefault("FIREBASE_WEB_API_KEY", "test-web-api-key")

from unittest.mock import AsyncMock, MagicMock

import pytest

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from db import AuthSession  # noqa: E402
from models import ChatData, ChatUser, Message, Status, UserData  # noqa: E402
from state import ChatController  # noqa: E402

NOW_MS = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    """Millisecond clock that only moves when advanced."""

    def __init__(self, now: int = NOW_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeListener:
    """Stands in for a ListenerRegistration; emit() plays a pushed snapshot."""

    def __init__(self, kind: str, key, callback) -> None:
        self.kind = kind
        self.key = key
        self.callback = callback
        self.removed = False

    @property
    def active(self) -> bool:
        return not self.removed

    def remove(self) -> None:
        self.removed = True

    def emit(self, value, error=None) -> None:
        if not self.removed:
            self.callback(value, error)


class FakeFirestore:
    """FirestoreService double with recorded listeners."""

    def __init__(self) -> None:
        self.get_user = AsyncMock(return_value=None)
        self.create_user = AsyncMock()
        self.update_user = AsyncMock()
        self.find_users_by_number = AsyncMock(return_value=[])
        self.find_chat_between = AsyncMock(return_value=[])
        self.create_chat = AsyncMock()
        self.add_message = AsyncMock(return_value="msg-1")
        self.add_status = AsyncMock(return_value="status-1")
        self.new_chat_id = MagicMock(return_value="chat-new")
        self.health_check = AsyncMock(
            return_value={"status": "healthy", "latency_ms": 3.2}
        )
        self.listeners: list[FakeListener] = []

    def _listen(self, kind: str, key, callback) -> FakeListener:
        listener = FakeListener(kind, key, callback)
        self.listeners.append(listener)
        return listener

    def listen_user(self, uid, callback):
        return self._listen("user", uid, callback)

    def listen_chats_for_user(self, uid, callback):
        return self._listen("chats", uid, callback)

    def listen_messages(self, chat_id, callback):
        return self._listen("messages", chat_id, callback)

    def listen_statuses(self, author_ids, cutoff_ms, callback):
        return self._listen("status", (tuple(author_ids), cutoff_ms), callback)

    def of(self, kind: str, active_only: bool = True) -> list[FakeListener]:
        return [
            l for l in self.listeners if l.kind == kind and (l.active or not active_only)
        ]


@pytest.fixture
def mock_settings():
    """Mock application settings."""
    settings = MagicMock()
    settings.firebase_web_api_key = "test-web-api-key"
    settings.auth_rest_base_url = "https://identitytoolkit.test/v1"
    settings.auth_timeout_seconds = 5.0
    settings.environment = "test"
    settings.debug = True
    settings.status_ttl_hours = 24
    settings.status_query_chunk_size = 30
    settings.max_image_size_mb = 1
    settings.max_image_size_bytes = 1024 * 1024
    settings.session_ttl_hours = 24
    return settings


@pytest.fixture
def fake_firestore():
    return FakeFirestore()


@pytest.fixture
def mock_auth_service():
    """Mock auth service."""
    service = AsyncMock()
    service.create_user.return_value = "uid-me"
    service.sign_in_with_password.return_value = AuthSession(
        uid="uid-me", id_token="id-token", refresh_token="refresh-token"
    )
    service.verify_id_token.return_value = "uid-me"
    return service


@pytest.fixture
def mock_storage_service():
    """Mock storage service."""
    service = AsyncMock()
    service.upload_image.return_value = "https://files.test/image/abc"
    return service


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(
    fake_firestore, mock_auth_service, mock_storage_service, mock_settings, clock
):
    """Controller wired to test doubles with a manual clock."""
    return ChatController(
        firestore=fake_firestore,
        auth=mock_auth_service,
        storage=mock_storage_service,
        settings=mock_settings,
        clock=clock,
    )


@pytest.fixture
def me():
    return UserData(user_id="uid-me", name="Me", number="111", image_url="me.png")


@pytest.fixture
def alice():
    return UserData(user_id="uid-alice", name="Alice", number="222", image_url="a.png")


@pytest.fixture
def bob():
    return UserData(user_id="uid-bob", name="Bob", number="333")


@pytest.fixture
def signed_in(controller, fake_firestore, me):
    """Controller after login with the profile snapshot delivered."""
    controller.restore("uid-me")
    fake_firestore.of("user")[0].emit(me)
    return controller


def make_chat(chat_id: str, user1: UserData, user2: UserData) -> ChatData:
    return ChatData(
        chat_id=chat_id,
        user1=ChatUser.from_user(user1),
        user2=ChatUser.from_user(user2),
    )


def make_status(user: UserData, timestamp: int, image_url: str = "s.png") -> Status:
    return Status(user=ChatUser.from_user(user), image_url=image_url, timestamp=timestamp)


def make_message(sent_by: str, text: str, timestamp: str) -> Message:
    return Message(sent_by=sent_by, message=text, timestamp=timestamp)
