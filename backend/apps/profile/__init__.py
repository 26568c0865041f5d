"""Profile module - current user's profile."""

from apps.profile.routes import router

__all__ = ["router"]
