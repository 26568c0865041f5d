"""Rate limiting middleware for write endpoints.

Bounds how fast one client can send messages, add contacts and upload
images. Reads and the event stream are not limited. Uses an in-memory
sliding window per client.
"""

import logging
import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from responses import ResponseCode, error_response

logger = logging.getLogger(__name__)

WRITE_METHODS = frozenset({"POST", "PUT", "DELETE"})


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    requests_per_minute: int = 60
    burst_limit: int = 10  # Max requests in 10 seconds


class RateLimiter:
    """Sliding-window limiter keyed by session cookie or client IP."""

    def __init__(self, config: RateLimitConfig | None = None, clock=time.monotonic) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._requests: dict[str, deque[float]] = defaultdict(deque)

    @staticmethod
    def client_id(request: Request) -> str:
        """Extract client identifier from request."""
        session_id = request.cookies.get("session_id")
        if session_id:
            return f"session:{session_id}"

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return f"ip:{forwarded.split(',')[0].strip()}"

        if request.client:
            return f"ip:{request.client.host}"

        return "unknown"

    def check(self, client_id: str) -> tuple[bool, int]:
        """Record a request if allowed.

        Returns:
            Tuple of (allowed, retry_after_seconds).
        """
        now = self._clock()
        window = self._requests[client_id]
        while window and window[0] <= now - 60:
            window.popleft()

        recent = sum(1 for ts in window if ts > now - 10)
        if recent >= self.config.burst_limit:
            return False, 10
        if len(window) >= self.config.requests_per_minute:
            return False, max(1, int(window[0] + 60 - now) + 1)

        window.append(now)
        return True, 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies rate limiting to write requests under /api."""

    def __init__(self, app, config: RateLimitConfig | None = None) -> None:
        super().__init__(app)
        self.limiter = RateLimiter(config)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with rate limiting."""
        if request.method not in WRITE_METHODS or not request.url.path.startswith("/api/"):
            return await call_next(request)

        client_id = self.limiter.client_id(request)
        allowed, retry_after = self.limiter.check(client_id)

        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", client_id, request.url.path)
            response = error_response(ResponseCode.RATE_LIMITED)
            response.headers["Retry-After"] = str(retry_after)
            return response

        return await call_next(request)
