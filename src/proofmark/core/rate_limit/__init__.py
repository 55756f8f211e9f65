"""Rate limiting for signing requests."""

from proofmark.core.rate_limit.limiter import RateLimiter
from proofmark.core.rate_limit.registry import NoOpLimiter, RateLimitRegistry

__all__ = ["NoOpLimiter", "RateLimitRegistry", "RateLimiter"]
