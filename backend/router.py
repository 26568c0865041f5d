"""Main API router that registers all sub-routers.

This module aggregates all domain-specific routers into a single router
that gets mounted in main.py.
"""

from fastapi import APIRouter

from apps.auth import router as auth_router
from apps.chats import router as chats_router
from apps.events import router as events_router
from apps.health import router as health_router
from apps.profile import router as profile_router
from apps.statuses import router as statuses_router

# Create main API router
router = APIRouter()

# Register all domain routers
router.include_router(health_router)
router.include_router(auth_router)
router.include_router(profile_router)
router.include_router(chats_router)
router.include_router(statuses_router)
router.include_router(events_router)
