"""GET /statuses/{user_id} - Statuses of one author."""

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from responses import ResponseCode, error_response, success_response
from state import ChatController
from state.controller import jsonable


async def get_user_statuses(
    user_id: str,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Return one author's fresh statuses, oldest first."""
    request_id = new_request_id()
    statuses = controller.statuses_for(user_id)

    if not statuses:
        resp = error_response(
            ResponseCode.NOT_FOUND, f"No statuses for user {user_id}", request_id
        )
    else:
        resp = success_response(
            ResponseCode.SUCCESS,
            {"user": jsonable(statuses[0].user), "statuses": jsonable(statuses)},
            request_id,
        )
    return set_session_cookie(resp, session_id)
