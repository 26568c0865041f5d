"""Firestore service for users, chats, messages and statuses.

Collections:
- `user/{uid}` - User profiles
- `chats/{chat_id}` - Chat threads with two participant snapshots
- `chats/{chat_id}/message/...` - Messages per chat
- `status/...` - Image statuses

CRUD goes through the AsyncClient. Realtime listeners need the sync Client,
since only it exposes on_snapshot; see db.listeners for the loop bridge.
"""

import base64
import json
import logging
import os
import time
from collections.abc import Callable
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

import firebase_admin
from firebase_admin import credentials
from google.cloud.firestore_v1 import AsyncClient, Client
from google.cloud.firestore_v1.base_query import And, FieldFilter, Or
from google.oauth2 import service_account

from config import get_settings
from db.listeners import ListenerRegistration, SnapshotCallback, watch
from models import ChatData, Message, Status, UserData

logger = logging.getLogger(__name__)

COLLECTION_USER = "user"
COLLECTION_CHAT = "chats"
COLLECTION_MESSAGES = "message"
COLLECTION_STATUS = "status"


def load_firebase_credentials(creds_value: str) -> dict:
    """Load Firebase credentials from JSON string, file path, or base64."""
    if os.path.isfile(creds_value):
        with open(creds_value) as f:
            return json.load(f)

    try:
        return json.loads(creds_value)
    except json.JSONDecodeError:
        pass

    try:
        decoded = base64.b64decode(creds_value, validate=True).decode("utf-8")
        return json.loads(decoded)
    except (ValueError, UnicodeDecodeError):
        pass

    raise ValueError("FIREBASE_CREDENTIALS is not valid JSON, file path, or base64")


@lru_cache
def init_firebase_app() -> dict:
    """Initialize the default firebase_admin app once and return the creds dict."""
    settings = get_settings()
    creds_dict = load_firebase_credentials(settings.firebase_credentials)

    if not firebase_admin._apps:
        options = {}
        if settings.firebase_storage_bucket:
            options["storageBucket"] = settings.firebase_storage_bucket
        firebase_admin.initialize_app(credentials.Certificate(creds_dict), options)

    return creds_dict


def _parse_many(model: type) -> Callable[[list[Any]], list]:
    """Map query snapshots to records, skipping documents that map to None."""

    def parse(snapshots: list[Any]) -> list:
        records = []
        for snapshot in snapshots:
            record = model.from_snapshot(snapshot)
            if record is not None:
                records.append(record)
        return records

    return parse


def _parse_user(snapshots: list[Any]) -> UserData | None:
    return UserData.from_snapshot(snapshots[0]) if snapshots else None


class FirestoreService:
    """Service for chat data in Firestore."""

    _initialized: bool = False
    _db: AsyncClient | None = None
    _watch_db: Client | None = None

    def __init__(self) -> None:
        """Initialize Firestore clients (singleton pattern)."""
        if FirestoreService._initialized:
            self.db = FirestoreService._db
            self.watch_db = FirestoreService._watch_db
            return

        try:
            creds_dict = init_firebase_app()
            gcp_credentials = service_account.Credentials.from_service_account_info(
                creds_dict
            )
            project = creds_dict.get("project_id")

            FirestoreService._db = AsyncClient(
                project=project, credentials=gcp_credentials
            )
            FirestoreService._watch_db = Client(
                project=project, credentials=gcp_credentials
            )
            self.db = FirestoreService._db
            self.watch_db = FirestoreService._watch_db

            FirestoreService._initialized = True
            logger.info("Firestore clients initialized successfully")
        except Exception as e:
            logger.error("Failed to initialize Firestore: %s", e)
            raise

    # --- User Methods ---

    async def get_user(self, uid: str) -> UserData | None:
        """Get a user profile, or None if it does not exist."""
        try:
            doc = await self.db.collection(COLLECTION_USER).document(uid).get()
            return UserData.from_snapshot(doc)
        except Exception as e:
            logger.error("Failed to get user %s: %s", uid, e)
            raise

    async def create_user(self, user: UserData) -> None:
        """Create a user profile document keyed by uid."""
        try:
            await (
                self.db.collection(COLLECTION_USER)
                .document(user.user_id)
                .set(user.to_firestore())
            )
            logger.info("Created user %s", user.user_id)
        except Exception as e:
            logger.error("Failed to create user %s: %s", user.user_id, e)
            raise

    async def update_user(self, uid: str, user: UserData) -> None:
        """Overwrite the profile fields of an existing user."""
        try:
            await (
                self.db.collection(COLLECTION_USER)
                .document(uid)
                .update(user.to_firestore())
            )
            logger.debug("Updated user %s", uid)
        except Exception as e:
            logger.error("Failed to update user %s: %s", uid, e)
            raise

    async def find_users_by_number(self, number: str, limit: int = 1) -> list[UserData]:
        """Find user profiles registered with a phone number."""
        try:
            query = (
                self.db.collection(COLLECTION_USER)
                .where(filter=FieldFilter("number", "==", number))
                .limit(limit)
            )
            docs = await query.get()
            return _parse_many(UserData)(docs)
        except Exception as e:
            logger.error("Failed to look up number %s: %s", number, e)
            raise

    # --- Chat Methods ---

    def new_chat_id(self) -> str:
        """Allocate a fresh auto-generated chat document ID."""
        return self.db.collection(COLLECTION_CHAT).document().id

    async def find_chat_between(self, number_a: str, number_b: str | None) -> list[ChatData]:
        """Find chats between two numbers, in either participant order."""
        try:
            query = self.db.collection(COLLECTION_CHAT).where(
                filter=Or(
                    [
                        And(
                            [
                                FieldFilter("user1.number", "==", number_a),
                                FieldFilter("user2.number", "==", number_b),
                            ]
                        ),
                        And(
                            [
                                FieldFilter("user1.number", "==", number_b),
                                FieldFilter("user2.number", "==", number_a),
                            ]
                        ),
                    ]
                )
            )
            docs = await query.get()
            return _parse_many(ChatData)(docs)
        except Exception as e:
            logger.error("Failed to check chat %s <-> %s: %s", number_a, number_b, e)
            raise

    async def create_chat(self, chat: ChatData) -> None:
        """Create a chat thread document."""
        try:
            await (
                self.db.collection(COLLECTION_CHAT)
                .document(chat.chat_id)
                .set(chat.to_firestore())
            )
            logger.info("Created chat %s", chat.chat_id)
        except Exception as e:
            logger.error("Failed to create chat %s: %s", chat.chat_id, e)
            raise

    # --- Message Methods ---

    async def add_message(self, chat_id: str, message: Message) -> str:
        """Append a message to a chat."""
        try:
            doc_ref = (
                self.db.collection(COLLECTION_CHAT)
                .document(chat_id)
                .collection(COLLECTION_MESSAGES)
                .document()
            )
            await doc_ref.set(message.to_firestore())
            logger.debug("Added message to chat %s", chat_id)
            return doc_ref.id
        except Exception as e:
            logger.error("Failed to add message to chat %s: %s", chat_id, e)
            raise

    # --- Status Methods ---

    async def add_status(self, status: Status) -> str:
        """Create a status document."""
        try:
            doc_ref = self.db.collection(COLLECTION_STATUS).document()
            await doc_ref.set(status.to_firestore())
            logger.info("Added status %s for %s", doc_ref.id, status.user.user_id)
            return doc_ref.id
        except Exception as e:
            logger.error("Failed to add status: %s", e)
            raise

    # --- Realtime Listeners ---

    def listen_user(
        self, uid: str, callback: SnapshotCallback
    ) -> ListenerRegistration:
        """Listen to a single user profile document."""
        ref = self.watch_db.collection(COLLECTION_USER).document(uid)
        return watch(ref, f"user:{uid}", _parse_user, callback)

    def listen_chats_for_user(
        self, uid: str | None, callback: SnapshotCallback
    ) -> ListenerRegistration:
        """Listen to every chat the user takes part in."""
        query = self.watch_db.collection(COLLECTION_CHAT).where(
            filter=Or(
                [
                    FieldFilter("user1.userId", "==", uid),
                    FieldFilter("user2.userId", "==", uid),
                ]
            )
        )
        return watch(query, f"chats:{uid}", _parse_many(ChatData), callback)

    def listen_messages(
        self, chat_id: str, callback: SnapshotCallback
    ) -> ListenerRegistration:
        """Listen to all messages of a chat (unordered)."""
        ref = (
            self.watch_db.collection(COLLECTION_CHAT)
            .document(chat_id)
            .collection(COLLECTION_MESSAGES)
        )
        return watch(ref, f"messages:{chat_id}", _parse_many(Message), callback)

    def listen_statuses(
        self,
        author_ids: list[str],
        cutoff_ms: int,
        callback: SnapshotCallback,
    ) -> ListenerRegistration:
        """Listen to statuses newer than cutoff_ms posted by any of author_ids.

        author_ids must respect Firestore's limit on 'in' filter values.
        """
        query = (
            self.watch_db.collection(COLLECTION_STATUS)
            .where(filter=FieldFilter("timestamp", ">", cutoff_ms))
            .where(filter=FieldFilter("user.userId", "in", author_ids))
        )
        name = f"status:{len(author_ids)}-authors"
        return watch(query, name, _parse_many(Status), callback)

    # --- Health ---

    async def health_check(self) -> dict[str, Any]:
        """Check Firestore connection health."""
        start = time.time()
        try:
            test_ref = self.db.collection("_health_check").document("test")
            await test_ref.set({"timestamp": datetime.now(UTC)})
            await test_ref.get()

            latency = (time.time() - start) * 1000
            return {"status": "healthy", "latency_ms": round(latency, 2)}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}
