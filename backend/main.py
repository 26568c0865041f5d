"""Main FastAPI application for Chatline.

Entry point for the application. Configures:
- FastAPI app with settings
- CORS and rate limiting middleware
- Exception handlers
- Route registration
- Session teardown on shutdown
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_app_config, get_cors_config, get_settings, setup_logging
from dependencies import get_auth_service, get_firestore_service, get_session_registry
from middleware import RateLimitConfig, RateLimitMiddleware
from responses import ResponseCode, error_dict
from router import router as api_router

# Setup logging
setup_logging(get_settings().log_level)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    logger.info("Starting Chatline...")

    try:
        settings = get_settings()
        logger.info("Environment: %s", settings.environment)
        logger.info("Status TTL: %sh", settings.status_ttl_hours)

        # Test Firestore connection
        firestore = get_firestore_service()
        firestore_health = await firestore.health_check()
        if firestore_health.get("status") != "healthy":
            logger.error("Firestore unhealthy: %s", firestore_health)
            raise RuntimeError(f"Firestore health check failed: {firestore_health}")
        logger.info(
            "✓ Firestore connected (latency: %sms)", firestore_health.get("latency_ms")
        )

        logger.info("Chatline started successfully")

    except Exception as e:
        logger.error("Startup validation failed: %s", e)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Chatline...")
    registry = get_session_registry()
    logger.info("Closing %d sessions", len(registry))
    registry.close_all()
    await get_auth_service().close()


# Create FastAPI app with lifespan
app_config = get_app_config()
app = FastAPI(lifespan=lifespan, **app_config)

# Add CORS middleware
cors_config = get_cors_config()
app.add_middleware(CORSMiddleware, **cors_config)

# Add rate limiting middleware (protects write endpoints)
_settings = get_settings()
app.add_middleware(
    RateLimitMiddleware,
    config=RateLimitConfig(
        requests_per_minute=_settings.rate_limit_per_minute,
        burst_limit=_settings.rate_limit_burst,
    ),
)


# =============================================================================
# Middleware
# =============================================================================


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests for tracing."""
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers.setdefault("X-Request-ID", request_id)

    return response


# =============================================================================
# Exception Handlers
# =============================================================================

HTTP_ERROR_CODES = {
    401: ResponseCode.UNAUTHENTICATED,
    404: ResponseCode.NOT_FOUND,
    405: ResponseCode.VALIDATION_ERROR,
    413: ResponseCode.FILE_TOO_LARGE,
    415: ResponseCode.UNSUPPORTED_FILE_TYPE,
    429: ResponseCode.RATE_LIMITED,
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    request_id = getattr(request.state, "request_id", None)

    first_error = exc.errors()[0] if exc.errors() else {}
    field_name = first_error.get("loc", ["unknown"])[-1]

    error_response = error_dict(
        code=ResponseCode.VALIDATION_ERROR,
        custom_message=f"Validation failed for field '{field_name}'",
        error_details={"validation_errors": exc.errors()},
        request_id=request_id,
    )

    return JSONResponse(status_code=422, content=error_response)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions."""
    request_id = getattr(request.state, "request_id", None)

    # require_signed_in raises with a ready envelope
    if isinstance(exc.detail, dict) and "code" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    response_code = HTTP_ERROR_CODES.get(exc.status_code, ResponseCode.INTERNAL_ERROR)

    error_response = error_dict(
        code=response_code,
        custom_message=str(exc.detail),
        request_id=request_id,
    )

    return JSONResponse(status_code=exc.status_code, content=error_response)


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unhandled exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception("Unhandled exception: %s", exc)

    error_response = error_dict(
        code=ResponseCode.INTERNAL_ERROR,
        custom_message="An unexpected error occurred",
        error_details={"exception_type": type(exc).__name__},
        request_id=request_id,
    )

    return JSONResponse(status_code=500, content=error_response)


# =============================================================================
# Routes
# =============================================================================

app.include_router(api_router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - shows API info."""
    return {
        "name": "Chatline",
        "description": "Realtime chat backend on Firebase",
        "docs": "/api/docs",
        "health": "/api/health",
        "events": "/api/events",
    }


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
