"""Profile routes - registers all profile endpoints."""

from fastapi import APIRouter

from apps.profile.handlers import get_profile, update_profile, upload_profile_image

router = APIRouter(prefix="/profile", tags=["Profile"])

# GET /profile - Current profile
router.get("")(get_profile)

# PUT /profile - Update name and number
router.put("")(update_profile)

# POST /profile/image - Upload avatar
router.post("/image")(upload_profile_image)
