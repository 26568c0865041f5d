"""POST /auth/login - Sign in with email and password."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.helpers import intent_response, new_request_id
from dependencies import get_controller, get_session_id, get_session_registry
from state import ChatController, SessionRegistry

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    """Request body for login."""

    email: str = Field(default="", max_length=254, description="Login email")
    password: str = Field(default="", max_length=128, description="Login password")


async def login(
    request: LoginRequest,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(get_controller),
    registry: SessionRegistry = Depends(get_session_registry),
) -> JSONResponse:
    """Sign in and start syncing the user's profile, chats and statuses."""
    request_id = new_request_id()
    logger.info("[%s] Login: %s", request_id, request.email)

    event_before = controller.event.value
    await controller.on_login(request.email, request.password)

    resp = intent_response(
        controller,
        event_before,
        session_id,
        request_id,
        data={"user_id": controller.uid},
    )
    if not controller.signed_in.value:
        registry.evict(session_id)
    return resp
