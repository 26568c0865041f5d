"""DELETE /chats/{chat_id}/open - Close a chat view."""

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode, success_response
from state import ChatController


async def close_chat(
    chat_id: str,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Stop streaming messages for the open chat."""
    closed = controller.current_chat_id == chat_id
    if closed:
        controller.depopulate_chat()

    resp = success_response(
        ResponseCode.SUCCESS, {"chat_id": chat_id, "closed": closed}, new_request_id()
    )
    return set_session_cookie(resp, session_id)
