"""GET /health - Check health of all services."""

from datetime import UTC, datetime

from fastapi import Depends
from pydantic import BaseModel, Field

from config import APP_CONFIG, get_settings
from db import FirestoreService
from dependencies import get_firestore_service, get_session_registry
from state import SessionRegistry

# --- Response Schemas ---


class ServiceStatus(BaseModel):
    """Status of an individual service."""

    name: str
    status: str = Field(..., description="healthy, degraded, or unhealthy")
    latency_ms: float | None = Field(None, description="Response time in ms")
    error: str | None = Field(None, description="Error message if unhealthy")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    active_sessions: int = Field(..., description="Sessions with a live controller")
    services: list[ServiceStatus] = Field(
        ..., description="Individual service statuses"
    )
    timestamp: datetime


# --- Handler ---


async def check_health(
    firestore: FirestoreService = Depends(get_firestore_service),
    registry: SessionRegistry = Depends(get_session_registry),
) -> HealthResponse:
    """Check health of all services."""
    settings = get_settings()
    firestore_health = await firestore.health_check()

    services = [
        ServiceStatus(
            name="firestore",
            status=firestore_health["status"],
            latency_ms=firestore_health.get("latency_ms"),
            error=firestore_health.get("error"),
        ),
    ]

    statuses = [s.status for s in services]
    if all(s == "healthy" for s in statuses):
        overall = "healthy"
    elif any(s == "unhealthy" for s in statuses):
        overall = "unhealthy"
    else:
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=APP_CONFIG["version"],
        environment=settings.environment,
        active_sessions=len(registry),
        services=services,
        timestamp=datetime.now(UTC),
    )
