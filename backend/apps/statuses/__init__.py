"""Statuses module - 24-hour image statuses."""

from apps.statuses.routes import router

__all__ = ["router"]
