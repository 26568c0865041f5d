"""Standardized response infrastructure for API endpoints.

Provides consistent response format with structured codes and messages.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi.responses import JSONResponse


class ResponseCode(str, Enum):
    """Response codes for API responses.

    Ranges: 0xxx=Success, 1xxx=Client Error, 2xxx=Server Error, 3xxx=External Service
    """

    # Success codes
    SUCCESS = "0000"
    CREATED = "0001"

    # Client errors
    VALIDATION_ERROR = "1000"
    UNAUTHENTICATED = "1001"
    NOT_FOUND = "1002"
    FILE_TOO_LARGE = "1004"
    UNSUPPORTED_FILE_TYPE = "1005"
    RATE_LIMITED = "1006"
    REQUEST_REJECTED = "1007"

    # Server errors
    INTERNAL_ERROR = "2000"

    # External service errors
    AUTH_PROVIDER_ERROR = "3001"


# Response messages mapped to codes
RESPONSE_MESSAGES: dict[ResponseCode, str] = {
    ResponseCode.SUCCESS: "Operation completed successfully",
    ResponseCode.CREATED: "Resource created successfully",
    ResponseCode.VALIDATION_ERROR: "Request validation failed",
    ResponseCode.UNAUTHENTICATED: "Sign in required",
    ResponseCode.NOT_FOUND: "Resource not found",
    ResponseCode.FILE_TOO_LARGE: "Image exceeds maximum allowed size",
    ResponseCode.UNSUPPORTED_FILE_TYPE: "Unsupported file type. Images only",
    ResponseCode.RATE_LIMITED: "Rate limit exceeded. Please wait and retry",
    ResponseCode.REQUEST_REJECTED: "Request could not be completed",
    ResponseCode.INTERNAL_ERROR: "An internal error occurred",
    ResponseCode.AUTH_PROVIDER_ERROR: "Authentication provider rejected the request",
}

# HTTP status codes for each response code
HTTP_STATUS_MAP: dict[ResponseCode, int] = {
    ResponseCode.SUCCESS: 200,
    ResponseCode.CREATED: 201,
    ResponseCode.VALIDATION_ERROR: 422,
    ResponseCode.UNAUTHENTICATED: 401,
    ResponseCode.NOT_FOUND: 404,
    ResponseCode.FILE_TOO_LARGE: 413,
    ResponseCode.UNSUPPORTED_FILE_TYPE: 415,
    ResponseCode.RATE_LIMITED: 429,
    ResponseCode.REQUEST_REJECTED: 400,
    ResponseCode.INTERNAL_ERROR: 500,
    ResponseCode.AUTH_PROVIDER_ERROR: 502,
}


def get_message(code: ResponseCode) -> str:
    """Get the message for a response code."""
    return RESPONSE_MESSAGES.get(code, "Unknown error")


def get_http_status(code: ResponseCode) -> int:
    """Get HTTP status code for a response code."""
    return HTTP_STATUS_MAP.get(code, 500)


def success_dict(
    code: ResponseCode,
    data: Any = None,
    custom_message: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Build a standardized success response dictionary."""
    return {
        "code": code.value,
        "success": True,
        "message": custom_message or get_message(code),
        "timestamp": datetime.now(UTC).isoformat(),
        "request_id": request_id,
        "data": data,
    }


def error_dict(
    code: ResponseCode,
    custom_message: str | None = None,
    error_details: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Build a standardized error response dictionary."""
    return {
        "code": code.value,
        "success": False,
        "message": custom_message or get_message(code),
        "timestamp": datetime.now(UTC).isoformat(),
        "request_id": request_id,
        "error_details": error_details,
    }


# --- JSONResponse helpers ---


def success_response(
    code: ResponseCode,
    data: Any = None,
    request_id: str | None = None,
    custom_message: str | None = None,
) -> JSONResponse:
    """Create a JSONResponse with success format."""
    return JSONResponse(
        content=success_dict(code, data, custom_message, request_id=request_id),
        status_code=get_http_status(code),
    )


def error_response(
    code: ResponseCode,
    custom_message: str | None = None,
    request_id: str | None = None,
    error_details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a JSONResponse with error format."""
    return JSONResponse(
        content=error_dict(code, custom_message, error_details, request_id=request_id),
        status_code=get_http_status(code),
    )
