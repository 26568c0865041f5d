"""Firebase backend clients: auth, document store and blob storage."""

from db.auth import AuthError, AuthService, AuthSession
from db.firestore import FirestoreService
from db.listeners import ListenerRegistration, ListenerStoppedError
from db.storage import (
    ImageTooLargeError,
    StorageError,
    StorageService,
    UnsupportedImageError,
    validate_image,
)

__all__ = [
    "AuthError",
    "AuthService",
    "AuthSession",
    "FirestoreService",
    "ListenerRegistration",
    "ListenerStoppedError",
    "StorageError",
    "StorageService",
    "ImageTooLargeError",
    "UnsupportedImageError",
    "validate_image",
]
