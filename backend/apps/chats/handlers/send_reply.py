"""POST /chats/{chat_id}/messages - Send a message."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.helpers import intent_response, new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode, error_response
from state import ChatController

logger = logging.getLogger(__name__)


class SendReplyRequest(BaseModel):
    """Request body for sending a message."""

    message: str = Field(..., max_length=4000, description="Message text")


async def send_reply(
    chat_id: str,
    request: SendReplyRequest,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Append a message to one of the user's chats; blank text is ignored.

    Chats are only known once the chat list has loaded, so a reply sent
    while it is loading is written without the membership check.
    """
    request_id = new_request_id()

    if controller.find_chat(chat_id) is None and not controller.in_progress_chats.value:
        resp = error_response(
            ResponseCode.NOT_FOUND, f"Chat {chat_id} not found", request_id
        )
        return set_session_cookie(resp, session_id)

    logger.debug("[%s] Reply in %s (%d chars)", request_id, chat_id, len(request.message))
    event_before = controller.event.value
    await controller.on_send_reply(chat_id, request.message)

    return intent_response(
        controller, event_before, session_id, request_id, data={"chat_id": chat_id}
    )
