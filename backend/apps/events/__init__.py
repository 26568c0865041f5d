"""Events module - realtime session state stream."""

from apps.events.routes import router

__all__ = ["router"]
