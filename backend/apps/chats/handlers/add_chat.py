"""POST /chats - Add a contact by phone number."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.helpers import intent_response, new_request_id
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode
from state import ChatController
from state.controller import jsonable

logger = logging.getLogger(__name__)


class AddChatRequest(BaseModel):
    """Request body for adding a contact."""

    number: str = Field(default="", max_length=20, description="Contact phone number")


async def add_chat(
    request: AddChatRequest,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Create a chat with the user registered under the given number."""
    request_id = new_request_id()
    logger.info("[%s] Add chat: %s", request_id, request.number)

    event_before = controller.event.value
    chat = await controller.on_add_chat(request.number)

    return intent_response(
        controller,
        event_before,
        session_id,
        request_id,
        code=ResponseCode.CREATED,
        data={"chat": jsonable(chat)},
    )
