"""PUT /profile - Update display name and phone number."""

import logging

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.helpers import intent_response, new_request_id
from dependencies import get_session_id, require_signed_in
from state import ChatController

logger = logging.getLogger(__name__)


class UpdateProfileRequest(BaseModel):
    """Request body for profile updates."""

    name: str = Field(..., max_length=100, description="Display name")
    number: str = Field(..., max_length=20, description="Phone number")


async def update_profile(
    request: UpdateProfileRequest,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Update the profile; existing chat snapshots keep the old values."""
    request_id = new_request_id()
    logger.info("[%s] Update profile: %s", request_id, controller.uid)

    event_before = controller.event.value
    await controller.update_profile_data(request.name, request.number)

    return intent_response(controller, event_before, session_id, request_id)
