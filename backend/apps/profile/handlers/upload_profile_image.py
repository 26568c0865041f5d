"""POST /profile/image - Upload a new avatar."""

import logging

from fastapi import Depends, File, UploadFile
from fastapi.responses import JSONResponse

from apps.helpers import (
    intent_response,
    new_request_id,
    reject_upload,
    set_session_cookie,
)
from dependencies import get_session_id, require_signed_in
from state import ChatController

logger = logging.getLogger(__name__)


async def upload_profile_image(
    file: UploadFile = File(...),
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_signed_in),
) -> JSONResponse:
    """Upload an image and set it as the profile avatar."""
    request_id = new_request_id()
    logger.info("[%s] Avatar upload: %s (%s bytes)", request_id, file.filename, file.size)

    rejected = reject_upload(file, request_id)
    if rejected is not None:
        return set_session_cookie(rejected, session_id)

    data = await file.read()
    event_before = controller.event.value
    await controller.upload_profile_image(data, file.content_type, file.filename)

    return intent_response(controller, event_before, session_id, request_id)
