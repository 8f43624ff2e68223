"""Tests for RedisRateLimiter with a mocked client."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from lawhelp_verification.exceptions import StorageError
from lawhelp_verification.rate_limit.redis_limiter import KEY_PREFIX, RedisRateLimiter


@pytest.fixture
def mock_redis():
    client = MagicMock()
    client.eval = AsyncMock(return_value=1)
    client.delete = AsyncMock(return_value=1)
    client.hgetall = AsyncMock(return_value={})
    return client


@pytest.fixture
def limiter(mock_redis, clock):
    return RedisRateLimiter(mock_redis, window_seconds=900, max_attempts=5, clock=clock)


class TestRedisRateLimiter:
    @pytest.mark.asyncio
    async def test_allow_runs_script_with_policy(self, limiter, mock_redis, clock):
        assert await limiter.allow("u1") is True

        args = mock_redis.eval.call_args.args
        assert args[1] == 1
        assert args[2] == f"{KEY_PREFIX}u1"
        assert args[3] == int(clock.now.timestamp() * 1000)
        assert args[4] == 900_000
        assert args[5] == 5

    @pytest.mark.asyncio
    async def test_denied_when_script_returns_zero(self, limiter, mock_redis):
        mock_redis.eval.return_value = 0

        assert await limiter.allow("u1") is False

    @pytest.mark.asyncio
    async def test_clear_deletes_key(self, limiter, mock_redis):
        await limiter.clear("u1")

        mock_redis.delete.assert_awaited_once_with(f"{KEY_PREFIX}u1")

    @pytest.mark.asyncio
    async def test_get_attempt_decodes_hash(self, limiter, mock_redis):
        start = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        mock_redis.hgetall.return_value = {
            b"count": b"3",
            b"start": str(int(start.timestamp() * 1000)).encode(),
        }

        attempt = await limiter.get_attempt("u1")

        assert attempt is not None
        assert attempt.subject == "u1"
        assert attempt.attempt_count == 3
        assert attempt.window_start == start

    @pytest.mark.asyncio
    async def test_get_attempt_missing(self, limiter):
        assert await limiter.get_attempt("u1") is None

    @pytest.mark.asyncio
    async def test_backend_errors_fail_closed(self, limiter, mock_redis):
        error = RedisConnectionError("connection refused")
        mock_redis.eval.side_effect = error
        mock_redis.delete.side_effect = error
        mock_redis.hgetall.side_effect = error

        with pytest.raises(StorageError):
            await limiter.allow("u1")
        with pytest.raises(StorageError):
            await limiter.clear("u1")
        with pytest.raises(StorageError):
            await limiter.get_attempt("u1")

    def test_custom_key_prefix(self, mock_redis):
        limiter = RedisRateLimiter(mock_redis, key_prefix="app:")
        assert limiter._key("u1") == "app:u1"
