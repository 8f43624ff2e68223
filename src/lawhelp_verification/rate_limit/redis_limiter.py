"""Redis-backed IRateLimiter shared by several processes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError

from ..exceptions import StorageError
from ..ports import IRateLimiter, VerificationAttempt, utc_now
from .memory import MAX_ATTEMPTS, RATE_LIMIT_WINDOW_SECONDS

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from ..ports import Clock

logger = logging.getLogger(__name__)

KEY_PREFIX = "lawhelp:verification:attempts:"

# KEYS[1] = counter hash
# ARGV[1] = now (ms), ARGV[2] = window (ms), ARGV[3] = max attempts
_ALLOW_SCRIPT = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local max_attempts = tonumber(ARGV[3])
local count = tonumber(redis.call('HGET', KEYS[1], 'count'))
local start = tonumber(redis.call('HGET', KEYS[1], 'start'))

if count == nil or start == nil or now - start > window then
    redis.call('HSET', KEYS[1], 'count', 1, 'start', now)
    redis.call('PEXPIRE', KEYS[1], window + 1000)
    return 1
end

if count >= max_attempts then
    return 0
end

redis.call('HINCRBY', KEYS[1], 'count', 1)
return 1
"""


def _to_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class RedisRateLimiter(IRateLimiter):
    """
    Fixed-window rate limiter stored in Redis.

    Same algorithm as :class:`InMemoryRateLimiter`, executed as one Lua
    script so check-and-increment is atomic across processes. The counter
    hash expires shortly after its window ends.

    Backend failures raise :class:`StorageError`; the limiter never lets an
    attempt through because Redis was unavailable.

    Example:
        ```python
        from redis.asyncio import Redis

        limiter = RedisRateLimiter(Redis.from_url("redis://localhost:6379/0"))
        ```
    """

    def __init__(
        self,
        redis_client: Redis[bytes],
        *,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
        key_prefix: str = KEY_PREFIX,
        clock: Clock = utc_now,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._redis = redis_client
        self._window_ms = window_seconds * 1000
        self._max_attempts = max_attempts
        self._key_prefix = key_prefix
        self._clock = clock

    def _key(self, subject: str) -> str:
        return f"{self._key_prefix}{subject}"

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    async def allow(self, subject: str) -> bool:
        try:
            result = await self._redis.eval(
                _ALLOW_SCRIPT,
                1,
                self._key(subject),
                self._now_ms(),
                self._window_ms,
                self._max_attempts,
            )
        except RedisError as e:
            logger.error("Redis rate limit check failed: %s", e)
            raise StorageError("Rate limit backend unavailable") from e
        return int(result) == 1

    async def clear(self, subject: str) -> None:
        try:
            await self._redis.delete(self._key(subject))
        except RedisError as e:
            logger.error("Redis rate limit clear failed: %s", e)
            raise StorageError("Rate limit backend unavailable") from e

    async def get_attempt(self, subject: str) -> VerificationAttempt | None:
        try:
            raw = await self._redis.hgetall(self._key(subject))
        except RedisError as e:
            logger.error("Redis rate limit read failed: %s", e)
            raise StorageError("Rate limit backend unavailable") from e
        if not raw:
            return None

        data = {_to_text(k): _to_text(v) for k, v in raw.items()}
        if "count" not in data or "start" not in data:
            return None
        return VerificationAttempt(
            subject=subject,
            attempt_count=int(data["count"]),
            window_start=datetime.fromtimestamp(
                int(data["start"]) / 1000, tz=timezone.utc
            ),
        )


__all__: list[str] = ["KEY_PREFIX", "RedisRateLimiter"]
