"""Verification ports (protocols) and the value objects they exchange.

The service depends only on these protocols. Applications plug in their own
code store, rate-limit backend and delivery channels, or use the adapters
shipped in :mod:`lawhelp_verification.store`,
:mod:`lawhelp_verification.rate_limit` and
:mod:`lawhelp_verification.delivery`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class VerificationAttempt:
    """Rate-limit state of one subject.

    Attributes:
        subject: Identity the counter is scoped to.
        attempt_count: Attempts recorded in the current window.
        window_start: Time of the first attempt of the current window.
    """

    subject: str
    attempt_count: int
    window_start: datetime


@dataclass(frozen=True)
class OneTimeCode:
    """An issued email/SMS verification code.

    Attributes:
        subject: Identity the code was issued for.
        code: Numeric code, zero-padded.
        expires_at: UTC instant after which the code no longer validates.
    """

    subject: str
    code: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class TotpEnrollment:
    """Data returned when enrolling an authenticator app.

    The core does not persist the secret; the caller stores it.

    Attributes:
        secret: Base32-encoded TOTP secret.
        provisioning_uri: ``otpauth://`` URI encoded in the QR image.
        qr_code: Displayable image payload (``data:`` URI).
        manual_key: Secret grouped for manual entry.
    """

    secret: str
    provisioning_uri: str
    qr_code: str
    manual_key: str


# ═══════════════════════════════════════════════════════════════
# RATE LIMITING
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IRateLimiter(Protocol):
    """Per-subject attempt counter with a fixed-length window.

    Check-and-increment must be atomic for a given subject.
    """

    async def allow(self, subject: str) -> bool:
        """Record an attempt and report whether it is permitted.

        Args:
            subject: Subject identifier.

        Returns:
            False once the subject exhausted its attempts in the window.
        """
        ...

    async def clear(self, subject: str) -> None:
        """Forget the subject's counter (after a successful verification).

        Args:
            subject: Subject identifier.
        """
        ...

    async def get_attempt(self, subject: str) -> VerificationAttempt | None:
        """Current counter of the subject, or None if none is tracked.

        Args:
            subject: Subject identifier.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# CODE STORAGE
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class ICodeStore(Protocol):
    """Storage for issued one-time codes.

    Example implementation:
        ```python
        class DatabaseCodeStore(ICodeStore):
            async def store(self, subject, code, ttl=600):
                await db.execute(
                    "INSERT INTO verification_codes (user_id, code, expires_at) "
                    "VALUES (?, ?, ?)",
                    (subject, code, now() + timedelta(seconds=ttl)),
                )
        ```
    """

    async def store(self, subject: str, code: str, ttl: int = 600) -> OneTimeCode:
        """Persist a code for the subject.

        Args:
            subject: Subject identifier.
            code: The code to store.
            ttl: Time-to-live in seconds (default 600 = 10 min).

        Raises:
            StorageError: If the backing store is unreachable.
        """
        ...

    async def is_valid(self, subject: str, code: str) -> bool:
        """Check for a matching, unexpired code.

        Args:
            subject: Subject identifier.
            code: Submitted code.

        Returns:
            True only if a row with exactly this code exists for the subject
            and its expiry is strictly in the future.
        """
        ...

    async def delete(self, subject: str) -> None:
        """Remove every code of the subject. Idempotent.

        Args:
            subject: Subject identifier.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# DELIVERY
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IEmailSender(Protocol):
    """Email delivery channel."""

    async def send(
        self,
        to_address: str,
        subject_line: str,
        body_text: str,
        body_html: str | None = None,
    ) -> None:
        """Send an email.

        Raises:
            DeliveryError: If the message could not be dispatched.
        """
        ...


@runtime_checkable
class ISmsSender(Protocol):
    """SMS delivery channel."""

    async def send(self, to_number: str, body_text: str) -> None:
        """Send a text message.

        Raises:
            DeliveryError: If the message could not be dispatched.
        """
        ...


__all__: list[str] = [
    "Clock",
    "utc_now",
    "VerificationAttempt",
    "OneTimeCode",
    "TotpEnrollment",
    "IRateLimiter",
    "ICodeStore",
    "IEmailSender",
    "ISmsSender",
]
