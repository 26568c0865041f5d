"""Health routes - liveness of Firestore and the session registry."""

from fastapi import APIRouter

from apps.health.handlers import check_health
from apps.health.handlers.check_health import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])

# GET /health - Firestore round-trip and live session count
router.get("", response_model=HealthResponse)(check_health)
