"""Shared handler utilities: session cookie, upload checks and intent responses."""

import logging
import uuid
from typing import Any

from fastapi import UploadFile
from fastapi.responses import JSONResponse, Response

from config import get_settings
from db.storage import ImageTooLargeError, UnsupportedImageError, validate_image
from responses import ResponseCode, error_response, success_response
from state import ChatController, Event

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    return str(uuid.uuid4())[:8]


def set_session_cookie(response: Response, session_id: str) -> Response:
    """Set session cookie on response."""
    settings = get_settings()
    response.set_cookie(
        key="session_id",
        value=session_id,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )
    return response


def intent_response(
    controller: ChatController,
    event_before: Event | None,
    session_id: str,
    request_id: str,
    code: ResponseCode = ResponseCode.SUCCESS,
    data: dict[str, Any] | None = None,
    informational: bool = False,
) -> JSONResponse:
    """Build the response for an intent handled by the controller.

    If the intent published a new event it was rejected (validation or
    backend failure) unless informational is set, in which case the event
    text becomes the success message.
    """
    event = controller.event.value
    message = None
    if event is not None and event is not event_before:
        message = event.get_content_if_not_handled()

    state = controller.snapshot()
    if message and not informational:
        resp = error_response(
            ResponseCode.REQUEST_REJECTED,
            message,
            request_id,
            error_details={"state": state},
        )
    else:
        resp = success_response(
            code,
            {**(data or {}), "state": state},
            request_id,
            custom_message=message,
        )
    return set_session_cookie(resp, session_id)


UPLOAD_ERROR_MAP = {
    UnsupportedImageError: ResponseCode.UNSUPPORTED_FILE_TYPE,
    ImageTooLargeError: ResponseCode.FILE_TOO_LARGE,
}


def reject_upload(file: UploadFile, request_id: str) -> JSONResponse | None:
    """Check an upload's declared type and size before reading it.

    Returns:
        Error response if the upload is rejected, None otherwise
    """
    try:
        validate_image(
            file.filename,
            file.content_type,
            file.size if file.size is not None else 1,
            get_settings().max_image_size_bytes,
        )
    except tuple(UPLOAD_ERROR_MAP.keys()) as e:
        logger.warning("[%s] %s: %s", request_id, type(e).__name__, e)
        return error_response(UPLOAD_ERROR_MAP[type(e)], str(e), request_id)
    return None
