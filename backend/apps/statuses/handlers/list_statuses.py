"""GET /statuses - Status overview for the signed-in user."""

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_signed_in
from models import ChatUser
from responses import ResponseCode, success_response
from state import ChatController

# --- Response Schemas ---


class StatusAuthor(BaseModel):
    """Author row in the status list."""

    user_id: str | None = Field(None, description="Author uid")
    name: str | None = Field(None, description="Author display name")
    image_url: str | None = Field(None, description="Author avatar URL")

    @classmethod
    def from_chat_user(cls, user: ChatUser) -> "StatusAuthor":
        return cls(user_id=user.user_id, name=user.name, image_url=user.image_url)


class StatusOverviewResponse(BaseModel):
    """Response for the status list."""

    loading: bool = Field(..., description="Whether the first load is pending")
    empty: bool = Field(..., description="No statuses available")
    mine: StatusAuthor | None = Field(None, description="Me, if I posted a status")
    others: list[StatusAuthor] = Field(
        default_factory=list, description="Contacts with statuses, first seen first"
    )


# --- Handler ---


async def list_statuses(
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """List status authors: my own entry first, then distinct contacts."""
    overview = controller.status_overview()
    result = StatusOverviewResponse(
        loading=controller.in_progress_status.value,
        empty=overview.empty,
        mine=StatusAuthor.from_chat_user(overview.mine) if overview.mine else None,
        others=[StatusAuthor.from_chat_user(u) for u in overview.others],
    )
    resp = success_response(
        ResponseCode.SUCCESS, result.model_dump(mode="json"), new_request_id()
    )
    return set_session_cookie(resp, session_id)
