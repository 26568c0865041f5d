"""GET /chats/{chat_id} - Open a chat."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode, error_response, success_response
from state import ChatController

logger = logging.getLogger(__name__)


async def open_chat(
    chat_id: str,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Open a chat view.

    Starts the message listener on first open; messages then arrive on the
    event stream as chat_messages changes. While the chat list is still
    loading an unknown chat answers with an empty loading view.
    """
    request_id = new_request_id()

    if controller.is_chat_pending(chat_id):
        # Chat list not loaded yet
        resp = success_response(
            ResponseCode.SUCCESS,
            {"chat_id": chat_id, "partner": None, "loading": True, "messages": []},
            request_id,
        )
        return set_session_cookie(resp, session_id)

    if controller.find_chat(chat_id) is None:
        resp = error_response(
            ResponseCode.NOT_FOUND, f"Chat {chat_id} not found", request_id
        )
        return set_session_cookie(resp, session_id)

    if controller.current_chat_id != chat_id:
        logger.info("[%s] Open chat %s", request_id, chat_id)
        controller.populate_chat(chat_id)

    resp = success_response(
        ResponseCode.SUCCESS, controller.chat_view(chat_id), request_id
    )
    return set_session_cookie(resp, session_id)
