"""POST /auth/signup - Create an account and its profile."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.helpers import intent_response, new_request_id
from dependencies import get_controller, get_session_id, get_session_registry
from responses import ResponseCode
from state import ChatController, SessionRegistry

logger = logging.getLogger(__name__)


class SignupRequest(BaseModel):
    """Request body for signup.

    Empty fields are allowed through so the controller can report them.
    """

    name: str = Field(default="", max_length=100, description="Display name")
    number: str = Field(default="", max_length=20, description="Phone number")
    email: str = Field(default="", max_length=254, description="Login email")
    password: str = Field(default="", max_length=128, description="Login password")


async def signup(
    request: SignupRequest,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(get_controller),
    registry: SessionRegistry = Depends(get_session_registry),
) -> JSONResponse:
    """Create an email/password account with a unique phone number."""
    request_id = new_request_id()
    logger.info("[%s] Signup: %s", request_id, request.email)

    event_before = controller.event.value
    await controller.on_signup(
        request.name, request.number, request.email, request.password
    )

    resp = intent_response(
        controller,
        event_before,
        session_id,
        request_id,
        code=ResponseCode.CREATED,
        data={"user_id": controller.uid},
    )
    if not controller.signed_in.value:
        registry.evict(session_id)
    return resp
