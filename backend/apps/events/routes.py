"""Event routes - registers the state stream endpoint."""

from fastapi import APIRouter

from apps.events.handlers import stream_events

router = APIRouter(prefix="/events", tags=["Events"])

# GET /events - Server-Sent Events stream of cell changes
router.get("")(stream_events)
