"""Single-process implementation of IRateLimiter."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING

from ..ports import IRateLimiter, VerificationAttempt, utc_now

if TYPE_CHECKING:
    from ..ports import Clock

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 15 * 60
MAX_ATTEMPTS = 5


class InMemoryRateLimiter(IRateLimiter):
    """
    Fixed-window attempt counter keyed by subject.

    The window starts at the first attempt and lasts ``window_seconds``.
    Within it, at most ``max_attempts`` attempts are allowed; further attempts
    are denied without being counted. A single ``asyncio.Lock`` serializes
    check-and-increment across coroutines, so two concurrent requests can
    never both take the last slot.

    The limiter is owned by whoever constructs it and is injected into the
    service. Counters live for the lifetime of the instance.

    Example:
        ```python
        limiter = InMemoryRateLimiter(window_seconds=900, max_attempts=5)
        if not await limiter.allow("user-123"):
            raise RateLimitError()
        ```
    """

    def __init__(
        self,
        *,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
        clock: Clock = utc_now,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._window = timedelta(seconds=window_seconds)
        self._max_attempts = max_attempts
        self._clock = clock
        self._attempts: dict[str, VerificationAttempt] = {}
        self._lock = asyncio.Lock()

    @property
    def window_seconds(self) -> float:
        return self._window.total_seconds()

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def allow(self, subject: str) -> bool:
        async with self._lock:
            now = self._clock()
            attempt = self._attempts.get(subject)

            if attempt is None or now - attempt.window_start > self._window:
                self._attempts[subject] = VerificationAttempt(
                    subject=subject, attempt_count=1, window_start=now
                )
                return True

            if attempt.attempt_count >= self._max_attempts:
                logger.debug(
                    "Rate limit reached (%d/%d)",
                    attempt.attempt_count,
                    self._max_attempts,
                )
                return False

            self._attempts[subject] = replace(
                attempt, attempt_count=attempt.attempt_count + 1
            )
            return True

    async def clear(self, subject: str) -> None:
        async with self._lock:
            self._attempts.pop(subject, None)

    async def get_attempt(self, subject: str) -> VerificationAttempt | None:
        async with self._lock:
            return self._attempts.get(subject)

    def clear_all(self) -> None:
        """Drop every counter. Useful for testing cleanup."""
        self._attempts.clear()


__all__: list[str] = [
    "RATE_LIMIT_WINDOW_SECONDS",
    "MAX_ATTEMPTS",
    "InMemoryRateLimiter",
]
