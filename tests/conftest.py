"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from lawhelp_verification import (
    InMemoryCodeStore,
    InMemoryRateLimiter,
    VerificationConfig,
    VerificationService,
)
from lawhelp_verification.delivery import InMemoryEmailSender, InMemorySmsSender


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests that require external services",
    )


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def config() -> VerificationConfig:
    """Default verification policy."""
    return VerificationConfig()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> InMemoryRateLimiter:
    """Create an in-memory rate limiter driven by the fake clock."""
    return InMemoryRateLimiter(window_seconds=900, max_attempts=5, clock=clock)


@pytest.fixture
def code_store(clock: FakeClock) -> InMemoryCodeStore:
    """Create an in-memory code store driven by the fake clock."""
    return InMemoryCodeStore(clock=clock)


@pytest.fixture
def email_sender() -> InMemoryEmailSender:
    return InMemoryEmailSender()


@pytest.fixture
def sms_sender() -> InMemorySmsSender:
    return InMemorySmsSender()


@pytest.fixture
def service(
    config: VerificationConfig,
    code_store: InMemoryCodeStore,
    rate_limiter: InMemoryRateLimiter,
    email_sender: InMemoryEmailSender,
    sms_sender: InMemorySmsSender,
    clock: FakeClock,
) -> VerificationService:
    """Create a verification service wired to in-memory collaborators."""
    return VerificationService(
        code_store=code_store,
        rate_limiter=rate_limiter,
        email_sender=email_sender,
        sms_sender=sms_sender,
        config=config,
        clock=clock,
    )
