"""Auth module - sign up, log in, log out, restore."""

from apps.auth.routes import router

__all__ = ["router"]
