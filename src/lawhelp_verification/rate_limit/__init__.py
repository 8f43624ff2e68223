"""Per-subject rate limiting.

``InMemoryRateLimiter`` serves single-process deployments and tests.
``RedisRateLimiter`` (``lawhelp_verification.rate_limit.redis_limiter``,
requires the ``redis`` extra) shares counters between processes.
"""

from .memory import MAX_ATTEMPTS, RATE_LIMIT_WINDOW_SECONDS, InMemoryRateLimiter

__all__: list[str] = [
    "MAX_ATTEMPTS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "InMemoryRateLimiter",
]
