"""POST /auth/restore - Resume a session from a Firebase ID token."""

import logging

from fastapi import Depends, Header
from fastapi.responses import JSONResponse

from apps.helpers import intent_response, new_request_id, set_session_cookie
from db import AuthError, AuthService
from dependencies import get_auth_service, get_session_id, get_session_registry
from responses import ResponseCode, error_response
from state import SessionRegistry

logger = logging.getLogger(__name__)


async def restore(
    authorization: str | None = Header(default=None),
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_session_registry),
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Restore a signed-in session for a client that already holds an ID token."""
    request_id = new_request_id()

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        resp = error_response(
            ResponseCode.UNAUTHENTICATED, "Bearer ID token required", request_id
        )
        return set_session_cookie(resp, session_id)

    try:
        uid = await auth_service.verify_id_token(token.strip())
    except AuthError as e:
        logger.warning("[%s] Restore rejected: %s", request_id, e)
        code = (
            ResponseCode.UNAUTHENTICATED
            if e.code == "INVALID_ID_TOKEN"
            else ResponseCode.AUTH_PROVIDER_ERROR
        )
        resp = error_response(code, str(e), request_id)
        return set_session_cookie(resp, session_id)

    controller = registry.get(session_id)
    event_before = controller.event.value
    if controller.uid != uid:
        controller.restore(uid)
    logger.info("[%s] Restored session for %s", request_id, uid)

    return intent_response(
        controller, event_before, session_id, request_id, data={"user_id": uid}
    )
