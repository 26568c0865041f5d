"""Per-session controller registry."""

import logging
import time
from collections.abc import Callable

from state.controller import ChatController

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 60.0


class SessionRegistry:
    """Maps session cookie ids to their ChatController.

    Controllers are created lazily and live until logout, idle expiry or app
    shutdown. Idle sessions are swept on access, at most once per
    sweep_interval_seconds.
    """

    def __init__(
        self,
        factory: Callable[[], ChatController],
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._factory = factory
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._sweep_interval_seconds = sweep_interval_seconds
        self._sessions: dict[str, ChatController] = {}
        self._last_seen: dict[str, float] = {}
        self._last_sweep = clock()

    def get(self, session_id: str) -> ChatController:
        """Get the session's controller, creating it on first use."""
        self._sweep()
        controller = self._sessions.get(session_id)
        if controller is None:
            controller = self._factory()
            self._sessions[session_id] = controller
            logger.debug("Created controller for session %s", session_id[:8])
        self._last_seen[session_id] = self._clock()
        return controller

    def peek(self, session_id: str) -> ChatController | None:
        """Get the session's controller without creating one."""
        self._sweep()
        controller = self._sessions.get(session_id)
        if controller is not None:
            self._last_seen[session_id] = self._clock()
        return controller

    def evict(self, session_id: str) -> bool:
        """Close and forget a session's controller."""
        self._last_seen.pop(session_id, None)
        controller = self._sessions.pop(session_id, None)
        if controller is None:
            return False
        controller.close()
        logger.info("Evicted session %s", session_id[:8])
        return True

    def _sweep(self) -> None:
        """Evict sessions idle for longer than the TTL."""
        if self._ttl_seconds is None:
            return
        now = self._clock()
        if now - self._last_sweep < self._sweep_interval_seconds:
            return
        self._last_sweep = now

        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if now - seen > self._ttl_seconds
        ]
        for session_id in expired:
            self.evict(session_id)
        if expired:
            logger.info("Swept %d idle sessions", len(expired))

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.evict(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
