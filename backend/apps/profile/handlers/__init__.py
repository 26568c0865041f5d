"""Profile handlers."""

from apps.profile.handlers.get_profile import get_profile
from apps.profile.handlers.update_profile import update_profile
from apps.profile.handlers.upload_profile_image import upload_profile_image

__all__ = [
    "get_profile",
    "update_profile",
    "upload_profile_image",
]
