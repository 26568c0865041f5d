"""FastAPI dependency injection for services and session state.

Backend clients and the session registry are cached with @lru_cache()
so they are created once and reused across all requests.
"""

import uuid
from functools import lru_cache

from fastapi import Cookie, Depends, HTTPException

from config import get_settings
from db import AuthService, FirestoreService, StorageService
from responses import ResponseCode, error_dict
from state import ChatController, SessionRegistry

# --- Cached Singletons ---


@lru_cache
def get_firestore_service() -> FirestoreService:
    """Get cached Firestore service (expensive - holds two gRPC clients)."""
    return FirestoreService()


@lru_cache
def get_auth_service() -> AuthService:
    """Get cached auth service (holds an HTTP client)."""
    return AuthService()


@lru_cache
def get_storage_service() -> StorageService:
    """Get cached storage service."""
    return StorageService()


def create_controller() -> ChatController:
    """Build a controller wired to the shared backend clients."""
    return ChatController(
        firestore=get_firestore_service(),
        auth=get_auth_service(),
        storage=get_storage_service(),
        settings=get_settings(),
    )


@lru_cache
def get_session_registry() -> SessionRegistry:
    """Get the process-wide session registry; idle sessions expire with the cookie."""
    return SessionRegistry(
        factory=create_controller,
        ttl_seconds=get_settings().session_ttl_hours * 3600,
    )


# --- Per-request ---


def get_session_id(session_id: str | None = Cookie(default=None)) -> str:
    """Get existing session ID from cookie or create new one."""
    if session_id:
        return session_id
    return str(uuid.uuid4())


def get_controller(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ChatController:
    """Get the controller for the caller's session, creating it if needed.

    Only the sign-in endpoints use this; every other route looks up an
    existing session so anonymous traffic does not allocate controllers.
    """
    return registry.get(session_id)


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=error_dict(ResponseCode.UNAUTHENTICATED),
    )


def require_session(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ChatController:
    """Get the caller's existing controller, rejecting unknown sessions."""
    controller = registry.peek(session_id)
    if controller is None:
        raise _unauthenticated()
    return controller


def require_signed_in(
    controller: ChatController = Depends(require_session),
) -> ChatController:
    """Get the session controller, rejecting sessions that are not signed in."""
    if not controller.signed_in.value:
        raise _unauthenticated()
    return controller
