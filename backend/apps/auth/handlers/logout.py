"""POST /auth/logout - Sign out the current session."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.helpers import intent_response, new_request_id, set_session_cookie
from dependencies import get_session_id, get_session_registry
from responses import ResponseCode, success_response
from state import SessionRegistry

logger = logging.getLogger(__name__)


async def logout(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_session_registry),
) -> JSONResponse:
    """Sign out, release every realtime listener and forget the session."""
    request_id = new_request_id()

    controller = registry.peek(session_id)
    if controller is None:
        resp = success_response(ResponseCode.SUCCESS, None, request_id, "Logged out")
        return set_session_cookie(resp, session_id)

    logger.info("[%s] Logout: %s", request_id, controller.uid)
    event_before = controller.event.value
    controller.on_logout()
    resp = intent_response(
        controller, event_before, session_id, request_id, informational=True
    )
    registry.evict(session_id)
    return resp
