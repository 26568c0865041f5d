"""Session state controller.

One ChatController per client session. It validates user intents, runs
backend calls, and mirrors pushed Firestore snapshots into observable cells
that the presentation layer renders.

Every failure ends in handle_exception: logged, then surfaced to the user as
a one-shot Event. Nothing here raises to the caller.

Listener handles are owned by the controller. A listener is removed when it
is replaced, when the chat view closes, on logout, and on close().
"""

import asyncio
import logging
import time
from datetime import UTC, datetime
from functools import partial
from typing import Any

from pydantic import BaseModel

from config import Settings
from db import AuthService, FirestoreService, StorageError, StorageService
from db.listeners import ListenerRegistration
from db.storage import validate_image
from models import ChatData, ChatUser, Message, Status, UserData
from state.derive import (
    StatusOverview,
    chat_partner,
    chunked,
    current_connections,
    fresh_statuses,
    is_digits_only,
    sort_messages,
    status_cutoff_ms,
    status_overview,
    statuses_by_author,
)
from state.observable import CellGroup, Event, ObservableCell

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def jsonable(value: Any) -> Any:
    """Convert cell values to JSON-compatible data.

    Events are consumed here, so each message is delivered once.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Event):
        return value.get_content_if_not_handled()
    if isinstance(value, list):
        return [jsonable(v) for v in value]
    return value


class ChatController:
    """Holds a session's observable state and orchestrates backend calls."""

    def __init__(
        self,
        firestore: FirestoreService,
        auth: AuthService,
        storage: StorageService,
        settings: Settings,
        clock=now_ms,
    ) -> None:
        self.firestore = firestore
        self.auth = auth
        self.storage = storage
        self.settings = settings
        self._clock = clock

        self.in_progress = ObservableCell("in_progress", False)
        self.event: ObservableCell[Event[str] | None] = ObservableCell("event", None)
        self.signed_in = ObservableCell("signed_in", False)
        self.user_data: ObservableCell[UserData | None] = ObservableCell(
            "user_data", None
        )

        self.chats: ObservableCell[list[ChatData]] = ObservableCell("chats", [])
        self.in_progress_chats = ObservableCell("in_progress_chats", False)

        self.chat_messages: ObservableCell[list[Message]] = ObservableCell(
            "chat_messages", []
        )
        self.in_progress_chat_messages = ObservableCell(
            "in_progress_chat_messages", False
        )

        self.status: ObservableCell[list[Status]] = ObservableCell("status", [])
        self.in_progress_status = ObservableCell("in_progress_status", False)

        self.cells = CellGroup(
            [
                self.in_progress,
                self.event,
                self.signed_in,
                self.user_data,
                self.chats,
                self.in_progress_chats,
                self.chat_messages,
                self.in_progress_chat_messages,
                self.status,
                self.in_progress_status,
            ]
        )

        self.uid: str | None = None
        self.current_chat_id: str | None = None
        self._add_chat_lock = asyncio.Lock()

        self._user_listener: ListenerRegistration | None = None
        self._chats_listener: ListenerRegistration | None = None
        self._messages_listener: ListenerRegistration | None = None
        self._status_chats_listener: ListenerRegistration | None = None
        self._status_listeners: list[ListenerRegistration] = []
        self._status_connections: list[str] | None = None
        self._status_chunks: dict[int, list[Status]] = {}
        self._pending_status_chunks: set[int] = set()
        self._populated_for: str | None = None
        self._created_chats: dict[str, ChatData] = {}

    # --- Helpers ---

    @property
    def my_id(self) -> str | None:
        user = self.user_data.value
        return user.user_id if user else self.uid

    def _status_cutoff(self) -> int:
        return status_cutoff_ms(self._clock(), self.settings.status_ttl_hours)

    @staticmethod
    def _remove(listener: ListenerRegistration | None) -> None:
        if listener is not None:
            listener.remove()

    def handle_exception(
        self, exception: Exception | None = None, custom_message: str = ""
    ) -> None:
        """Log a failure and surface it to the user as a one-shot event."""
        logger.error(
            "Chat app exception: %s", custom_message or exception, exc_info=exception
        )
        error_msg = str(exception) if exception is not None else ""
        if custom_message and error_msg:
            message = f"{custom_message}: {error_msg}"
        else:
            message = custom_message or error_msg
        self.event.value = Event(message)
        self.in_progress.value = False

    # --- Session ---

    def _reset(self) -> None:
        """Release listeners and clear everything owned by the previous user."""
        self.close()
        self.uid = None
        self.signed_in.value = False
        self.user_data.value = None
        self.chats.value = []
        self.in_progress_chats.value = False
        self.chat_messages.value = []
        self.in_progress_chat_messages.value = False
        self.status.value = []
        self.in_progress_status.value = False

    def restore(self, uid: str | None) -> None:
        """Resume a session for an already authenticated user."""
        if uid != self.uid:
            self._reset()
        self.uid = uid
        self.signed_in.value = uid is not None
        if uid is not None:
            self.get_user_data(uid)

    async def on_signup(self, name: str, number: str, email: str, password: str) -> None:
        if not (name and number and email and password):
            self.handle_exception(custom_message="Please fill in all fields")
            return

        self.in_progress.value = True
        try:
            existing = await self.firestore.find_users_by_number(number)
        except Exception as e:
            self.handle_exception(e)
            return

        if existing:
            self.handle_exception(custom_message="number already exists")
            return

        try:
            uid = await self.auth.create_user(email, password)
        except Exception as e:
            self.handle_exception(e, "Signup failed")
            return

        if uid != self.uid:
            self._reset()
        self.uid = uid
        self.signed_in.value = True
        await self.create_or_update_profile(name=name, number=number)

    async def on_login(self, email: str, password: str) -> None:
        if not (email and password):
            self.handle_exception(custom_message="Please fill in all fields")
            return

        self.in_progress.value = True
        try:
            session = await self.auth.sign_in_with_password(email, password)
        except Exception as e:
            self.handle_exception(e, "Login failed")
            return

        if session.uid != self.uid:
            self._reset()
        self.uid = session.uid
        self.signed_in.value = True
        self.in_progress.value = False
        self.get_user_data(session.uid)

    def on_logout(self) -> None:
        """Drop the local session and release every listener."""
        logger.info("Logging out %s", self.uid)
        self._reset()
        self.event.value = Event("Logged out")

    # --- Profile ---

    async def create_or_update_profile(
        self,
        name: str | None = None,
        number: str | None = None,
        image_url: str | None = None,
    ) -> None:
        uid = self.uid
        if uid is None:
            return

        current = self.user_data.value
        user = UserData(
            user_id=uid,
            name=name if name is not None else (current.name if current else None),
            number=number if number is not None else (current.number if current else None),
            image_url=(
                image_url
                if image_url is not None
                else (current.image_url if current else None)
            ),
        )

        self.in_progress.value = True
        try:
            existing = await self.firestore.get_user(uid)
        except Exception as e:
            self.handle_exception(e, "Cannot retrieve user")
            return

        if existing is not None:
            try:
                await self.firestore.update_user(uid, user)
            except Exception as e:
                self.handle_exception(e, "Cannot update user")
                return
            self.in_progress.value = False
        else:
            try:
                await self.firestore.create_user(user)
            except Exception as e:
                self.handle_exception(e, "Cannot create user")
                return
            self.in_progress.value = False
            self.get_user_data(uid)

    async def update_profile_data(self, name: str, number: str) -> None:
        await self.create_or_update_profile(name=name, number=number)

    def get_user_data(self, uid: str) -> None:
        """Subscribe to the user's profile; replaces any previous subscription."""
        self.in_progress.value = True
        self._remove(self._user_listener)
        self._user_listener = self.firestore.listen_user(uid, self._on_user_snapshot)

    def _on_user_snapshot(self, user: UserData | None, error: Exception | None) -> None:
        if error is not None:
            self.handle_exception(error, "Cannot retrieve user data")
            return

        self.user_data.value = user
        self.in_progress.value = False
        if user is not None and self._populated_for != user.user_id:
            self._populated_for = user.user_id
            self.populate_chats()
            self.populate_statuses()

    async def _upload_image(
        self, data: bytes, content_type: str | None, filename: str | None
    ) -> str | None:
        try:
            content_type = validate_image(
                filename, content_type, len(data), self.settings.max_image_size_bytes
            )
        except StorageError as e:
            self.handle_exception(e, "Invalid image")
            return None

        self.in_progress.value = True
        try:
            url = await self.storage.upload_image(data, content_type)
        except Exception as e:
            self.handle_exception(e)
            return None

        self.in_progress.value = False
        return url

    async def upload_profile_image(
        self, data: bytes, content_type: str | None, filename: str | None = None
    ) -> None:
        url = await self._upload_image(data, content_type, filename)
        if url is not None:
            await self.create_or_update_profile(image_url=url)

    # --- Chats ---

    async def on_add_chat(self, number: str) -> ChatData | None:
        """Start a chat with the user registered under number."""
        if not is_digits_only(number):
            self.handle_exception(custom_message="Number must contain only digits")
            return None

        me = self.user_data.value
        my_number = me.number if me else None
        if number == my_number:
            self.handle_exception(custom_message="Cannot add your own number")
            return None

        async with self._add_chat_lock:
            try:
                existing = await self.firestore.find_chat_between(number, my_number)
            except Exception as e:
                self.handle_exception(e)
                return None

            if existing:
                self.handle_exception(custom_message="Chat already exists")
                return None

            try:
                partners = await self.firestore.find_users_by_number(number)
            except Exception as e:
                self.handle_exception(e)
                return None

            if not partners:
                self.handle_exception(
                    custom_message=f"Cannot retrieve user with number {number}"
                )
                return None

            chat = ChatData(
                chat_id=self.firestore.new_chat_id(),
                user1=ChatUser.from_user(me),
                user2=ChatUser.from_user(partners[0]),
            )
            try:
                await self.firestore.create_chat(chat)
            except Exception as e:
                self.handle_exception(e, "Cannot create chat")
                return None

            self._created_chats[chat.chat_id] = chat

        logger.info("Chat %s created for %s", chat.chat_id, self.my_id)
        return chat

    def populate_chats(self) -> None:
        self.in_progress_chats.value = True
        self._remove(self._chats_listener)
        self._chats_listener = self.firestore.listen_chats_for_user(
            self.my_id, self._on_chats_snapshot
        )

    def _on_chats_snapshot(
        self, chats: list[ChatData] | None, error: Exception | None
    ) -> None:
        if error is not None:
            self.handle_exception(error)
        if chats is not None:
            self.chats.value = chats
            for chat in chats:
                self._created_chats.pop(chat.chat_id, None)
        self.in_progress_chats.value = False

    # --- Messages ---

    async def on_send_reply(self, chat_id: str, message: str) -> None:
        if not message or not message.strip():
            return

        msg = Message(
            sent_by=self.my_id,
            message=message,
            timestamp=datetime.now(UTC).isoformat(timespec="milliseconds"),
        )
        try:
            await self.firestore.add_message(chat_id, msg)
        except Exception as e:
            self.handle_exception(e, "Cannot send message")

    def populate_chat(self, chat_id: str) -> None:
        """Open a chat: stream its messages into chat_messages."""
        self.in_progress_chat_messages.value = True
        self._remove(self._messages_listener)
        self.current_chat_id = chat_id
        self._messages_listener = self.firestore.listen_messages(
            chat_id, self._on_messages_snapshot
        )

    def _on_messages_snapshot(
        self, messages: list[Message] | None, error: Exception | None
    ) -> None:
        if error is not None:
            self.handle_exception(error)
        if messages is not None:
            self.chat_messages.value = sort_messages(messages)
        self.in_progress_chat_messages.value = False

    def depopulate_chat(self) -> None:
        """Close the open chat and release its listener."""
        self.chat_messages.value = []
        self._remove(self._messages_listener)
        self._messages_listener = None
        self.current_chat_id = None

    # --- Statuses ---

    async def create_status(self, image_url: str) -> None:
        status = Status(
            user=ChatUser.from_user(self.user_data.value),
            image_url=image_url,
            timestamp=self._clock(),
        )
        try:
            await self.firestore.add_status(status)
        except Exception as e:
            self.handle_exception(e, "Cannot create status")

    async def upload_status(
        self, data: bytes, content_type: str | None, filename: str | None = None
    ) -> None:
        url = await self._upload_image(data, content_type, filename)
        if url is not None:
            await self.create_status(url)

    def populate_statuses(self) -> None:
        """Follow my chats and keep status listeners on my connections."""
        self.in_progress_status.value = True
        self._remove(self._status_chats_listener)
        self._status_connections = None
        self._status_chats_listener = self.firestore.listen_chats_for_user(
            self.my_id, self._on_status_chats_snapshot
        )

    def _on_status_chats_snapshot(
        self, chats: list[ChatData] | None, error: Exception | None
    ) -> None:
        if error is not None:
            self.handle_exception(error)
        if chats is None:
            self.in_progress_status.value = False
            return

        connections = current_connections(chats, self.my_id)
        if connections == self._status_connections:
            return
        self._status_connections = connections
        self._subscribe_statuses(connections)

    def _clear_status_listeners(self) -> None:
        for listener in self._status_listeners:
            listener.remove()
        self._status_listeners = []
        self._status_chunks = {}
        self._pending_status_chunks = set()

    def _subscribe_statuses(self, connections: list[str]) -> None:
        self._clear_status_listeners()

        chunks = chunked(connections, self.settings.status_query_chunk_size)
        if not chunks:
            self.status.value = []
            self.in_progress_status.value = False
            return

        cutoff = self._status_cutoff()
        self._pending_status_chunks = set(range(len(chunks)))
        for index, author_ids in enumerate(chunks):
            self._status_listeners.append(
                self.firestore.listen_statuses(
                    author_ids, cutoff, partial(self._on_status_snapshot, index)
                )
            )

    def _on_status_snapshot(
        self, index: int, statuses: list[Status] | None, error: Exception | None
    ) -> None:
        if error is not None:
            self.handle_exception(error)
        if statuses is not None:
            self._status_chunks[index] = statuses
            self._pending_status_chunks.discard(index)
            merged = [s for i in sorted(self._status_chunks) for s in self._status_chunks[i]]
            self.status.value = fresh_statuses(merged, self._status_cutoff())
        if not self._pending_status_chunks or error is not None:
            self.in_progress_status.value = False

    # --- Views ---

    def find_chat(self, chat_id: str) -> ChatData | None:
        """One of my chats, including ones created here but not yet streamed back."""
        chat = next((c for c in self.chats.value if c.chat_id == chat_id), None)
        return chat or self._created_chats.get(chat_id)

    def is_chat_pending(self, chat_id: str) -> bool:
        """True while the chat list is still loading and chat_id may be in it."""
        return self.find_chat(chat_id) is None and self.in_progress_chats.value

    def chat_list(self) -> list[dict[str, Any]]:
        """Chats with the partner resolved for the current user."""
        return [
            {
                "chat_id": chat.chat_id,
                "partner": jsonable(chat_partner(chat, self.my_id)),
            }
            for chat in self.chats.value
        ]

    def chat_view(self, chat_id: str) -> dict[str, Any] | None:
        """Open chat screen data, or None if the chat is not one of mine."""
        chat = self.find_chat(chat_id)
        if chat is None:
            return None
        my_id = self.my_id
        return {
            "chat_id": chat_id,
            "partner": jsonable(chat_partner(chat, my_id)),
            "loading": self.in_progress_chat_messages.value,
            "messages": [
                {**jsonable(m), "mine": m.sent_by == my_id}
                for m in self.chat_messages.value
            ],
        }

    def visible_statuses(self) -> list[Status]:
        """Statuses still inside the TTL window at the time of reading."""
        return fresh_statuses(self.status.value, self._status_cutoff())

    def status_overview(self) -> StatusOverview:
        return status_overview(self.visible_statuses(), self.my_id)

    def statuses_for(self, user_id: str) -> list[Status]:
        return statuses_by_author(self.visible_statuses(), user_id)

    def snapshot(self) -> dict[str, Any]:
        """All cells as JSON-compatible data; consumes a pending event."""
        values = self.cells.values()
        values["status"] = self.visible_statuses()
        return {name: jsonable(value) for name, value in values.items()}

    # --- Teardown ---

    def close(self) -> None:
        """Remove every listener this controller owns."""
        self._remove(self._user_listener)
        self._remove(self._chats_listener)
        self._remove(self._messages_listener)
        self._remove(self._status_chats_listener)
        self._clear_status_listeners()
        self._user_listener = None
        self._chats_listener = None
        self._messages_listener = None
        self._status_chats_listener = None
        self._status_connections = None
        self._populated_for = None
        self._created_chats = {}
        self.current_chat_id = None
