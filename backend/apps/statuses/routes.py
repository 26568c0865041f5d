"""Status routes - registers all status endpoints."""

from fastapi import APIRouter

from apps.statuses.handlers import get_user_statuses, list_statuses, upload_status

router = APIRouter(prefix="/statuses", tags=["Statuses"])

# GET /statuses - My status and contacts with fresh statuses
router.get("")(list_statuses)

# GET /statuses/{user_id} - One author's statuses
router.get("/{user_id}")(get_user_statuses)

# POST /statuses - Post an image status
router.post("")(upload_status)
