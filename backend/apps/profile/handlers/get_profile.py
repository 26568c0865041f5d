"""GET /profile - Get the signed-in user's profile."""

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode, success_response
from state import ChatController
from state.controller import jsonable


async def get_profile(
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Return the profile as last pushed by the realtime listener."""
    resp = success_response(
        ResponseCode.SUCCESS,
        {
            "profile": jsonable(controller.user_data.value),
            "loading": controller.in_progress.value,
        },
        new_request_id(),
    )
    return set_session_cookie(resp, session_id)
