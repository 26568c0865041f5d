"""GET /chats - List the signed-in user's chats."""

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode, success_response
from state import ChatController


async def list_chats(
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """List chats with the partner resolved for the current user."""
    resp = success_response(
        ResponseCode.SUCCESS,
        {
            "chats": controller.chat_list(),
            "loading": controller.in_progress_chats.value,
        },
        new_request_id(),
    )
    return set_session_cookie(resp, session_id)
