"""Event stream handlers."""

from apps.events.handlers.stream_events import stream_events

__all__ = ["stream_events"]
