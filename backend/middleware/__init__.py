"""HTTP middleware for the Chatline API."""

from middleware.rate_limit import RateLimitConfig, RateLimiter, RateLimitMiddleware

__all__ = ["RateLimitConfig", "RateLimiter", "RateLimitMiddleware"]
