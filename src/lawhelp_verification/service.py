"""Verification service: one-time codes by email/SMS and authenticator-app TOTP.

The service orchestrates the rate limiter, code generator, code store and
delivery channels. It holds no per-subject state of its own; every
collaborator is injected.

Send flow:   rate limiter → generator → code store → delivery channel
Verify flow: rate limiter → code store lookup → result
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .codes import generate_numeric_code
from .config import VerificationConfig
from .delivery.messages import DeliveryChannel, render_email_code, render_sms_code
from .exceptions import DeliveryError, RateLimitError
from .observability import VerificationMetrics, mask_recipient
from .ports import utc_now
from .totp import TotpService

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from .ports import (
        Clock,
        ICodeStore,
        IEmailSender,
        IRateLimiter,
        ISmsSender,
        TotpEnrollment,
    )

logger = logging.getLogger(__name__)


class VerificationMethod(str, Enum):
    """Verification strategies offered to callers."""

    EMAIL_CODE = "email_code"
    SMS_CODE = "sms_code"
    TOTP = "totp"


class VerificationState(Enum):
    """Lifecycle of one verification cycle of a subject.

    ``IDLE → CODE_SENT → (VERIFIED | EXPIRED | RATE_LIMITED)``, and
    ``VERIFIED`` returns to ``IDLE``. A rejected code leaves the cycle in
    ``CODE_SENT``; whether the code was wrong or expired is not revealed.
    """

    IDLE = "idle"
    CODE_SENT = "code_sent"
    VERIFIED = "verified"
    EXPIRED = "expired"
    RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a send, verify or enrollment operation.

    Attributes:
        method: Strategy the operation used.
        success: Whether the operation succeeded.
        state: Cycle state after the operation.
        artifact: Generated artifact, e.g. the QR image data URI.
    """

    method: VerificationMethod
    success: bool
    state: VerificationState
    artifact: str | None = None

    @classmethod
    def succeeded(
        cls,
        method: VerificationMethod,
        state: VerificationState,
        artifact: str | None = None,
    ) -> VerificationResult:
        return cls(method=method, success=True, state=state, artifact=artifact)

    @classmethod
    def failed(cls, method: VerificationMethod) -> VerificationResult:
        """Rejected code or token. Identical for wrong and expired codes."""
        return cls(method=method, success=False, state=VerificationState.CODE_SENT)


_CODE_METHODS = frozenset({VerificationMethod.EMAIL_CODE, VerificationMethod.SMS_CODE})


class VerificationService:
    """Multi-factor verification over email codes, SMS codes and TOTP.

    Example:
        ```python
        config = VerificationConfig.from_env()
        service = VerificationService(
            config=config,
            code_store=SQLAlchemyCodeStore(session_factory),
            rate_limiter=InMemoryRateLimiter(),
            email_sender=SmtpEmailSender(
                SmtpSettings.from_env(), from_email=config.email_from
            ),
        )

        await service.send_email_code("user-123", "alice@example.com")
        result = await service.verify_code("user-123", "482913")
        if result.success:
            ...
        ```
    """

    def __init__(
        self,
        *,
        code_store: ICodeStore,
        rate_limiter: IRateLimiter,
        email_sender: IEmailSender | None = None,
        sms_sender: ISmsSender | None = None,
        totp_service: TotpService | None = None,
        config: VerificationConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the verification service.

        Args:
            code_store: Storage for issued codes.
            rate_limiter: Per-subject attempt counter, shared by all operations.
            email_sender: Email channel (required for email codes).
            sms_sender: SMS channel (required for SMS codes).
            totp_service: TOTP helper; built from ``config`` if omitted.
            config: Verification policy.
            clock: Time source used for ``RateLimitError.retry_after``.
        """
        self.config = config or VerificationConfig()
        self.code_store = code_store
        self.rate_limiter = rate_limiter
        self.email_sender = email_sender
        self.sms_sender = sms_sender
        self.totp = totp_service or TotpService(
            issuer=self.config.totp_issuer,
            digits=self.config.totp_digits,
            interval=self.config.totp_interval,
            valid_window=self.config.totp_valid_window,
        )
        self._clock = clock

    # ───────────────────────────────────────────────────────────
    # helpers
    # ───────────────────────────────────────────────────────────

    @staticmethod
    def _require_subject(subject: str) -> str:
        if not isinstance(subject, str) or not subject.strip():
            raise ValueError("subject must be a non-empty string")
        return subject

    @staticmethod
    def _require_destination(destination: str, kind: str) -> str:
        if not isinstance(destination, str) or not destination.strip():
            raise ValueError(f"{kind} must be a non-empty string")
        return destination.strip()

    async def _check_rate_limit(self, subject: str) -> None:
        if await self.rate_limiter.allow(subject):
            return
        retry_after = await self._retry_after(subject)
        logger.info("Verification rate limit exceeded for subject %s", subject)
        raise RateLimitError(subject=subject, retry_after=retry_after)

    async def _retry_after(self, subject: str) -> float | None:
        attempt = await self.rate_limiter.get_attempt(subject)
        if attempt is None:
            return None
        elapsed = (self._clock() - attempt.window_start).total_seconds()
        return max(0.0, self.config.rate_limit_window_seconds - elapsed)

    async def _issue_code(self, subject: str) -> str:
        code = generate_numeric_code(self.config.code_length)
        await self.code_store.store(subject, code, ttl=self.config.code_ttl_seconds)
        return code

    async def _deliver(
        self,
        channel: DeliveryChannel,
        recipient: str,
        send: Awaitable[None],
    ) -> None:
        timeout = self.config.delivery_timeout
        try:
            await asyncio.wait_for(send, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning(
                "Delivery via %s to %s timed out after %.1fs",
                channel.value,
                mask_recipient(recipient),
                timeout,
            )
            raise DeliveryError(
                channel.value, recipient, f"timed out after {timeout}s"
            ) from e

    # ───────────────────────────────────────────────────────────
    # email / SMS codes
    # ───────────────────────────────────────────────────────────

    async def send_email_code(self, subject: str, email: str) -> VerificationResult:
        """Issue a code and email it.

        Raises:
            RateLimitError: The subject exhausted its attempts.
            StorageError: The code could not be stored.
            DeliveryError: The email could not be sent; the stored code
                simply expires unused.
        """
        subject = self._require_subject(subject)
        email = self._require_destination(email, "email")
        if self.email_sender is None:
            raise ValueError("No email sender configured")
        method = VerificationMethod.EMAIL_CODE

        with VerificationMetrics.operation("send", method=method.value):
            await self._check_rate_limit(subject)
            code = await self._issue_code(subject)
            message = render_email_code(code, self.config.code_ttl_seconds)
            await self._deliver(
                DeliveryChannel.EMAIL,
                email,
                self.email_sender.send(
                    email,
                    message.subject or "",
                    message.body_text,
                    message.body_html,
                ),
            )

        logger.info("Verification code emailed to %s", mask_recipient(email))
        return VerificationResult.succeeded(method, VerificationState.CODE_SENT)

    async def send_sms_code(self, subject: str, phone: str) -> VerificationResult:
        """Issue a code and text it.

        Raises:
            RateLimitError: The subject exhausted its attempts.
            StorageError: The code could not be stored.
            DeliveryError: The SMS could not be sent.
        """
        subject = self._require_subject(subject)
        phone = self._require_destination(phone, "phone")
        if self.sms_sender is None:
            raise ValueError("No SMS sender configured")
        method = VerificationMethod.SMS_CODE

        with VerificationMetrics.operation("send", method=method.value):
            await self._check_rate_limit(subject)
            code = await self._issue_code(subject)
            message = render_sms_code(
                code, self.config.code_ttl_seconds, brand=self.config.brand
            )
            await self._deliver(
                DeliveryChannel.SMS,
                phone,
                self.sms_sender.send(phone, message.body_text),
            )

        logger.info("Verification code texted to %s", mask_recipient(phone))
        return VerificationResult.succeeded(method, VerificationState.CODE_SENT)

    async def send_code(
        self,
        method: VerificationMethod,
        subject: str,
        destination: str,
    ) -> VerificationResult:
        """Send a code over the channel selected by ``method``.

        Raises:
            ValueError: For ``TOTP``, which has nothing to send.
        """
        if method is VerificationMethod.EMAIL_CODE:
            return await self.send_email_code(subject, destination)
        if method is VerificationMethod.SMS_CODE:
            return await self.send_sms_code(subject, destination)
        raise ValueError(f"{method.value} codes are not delivered")

    async def verify_code(
        self,
        subject: str,
        code: str,
        *,
        method: VerificationMethod = VerificationMethod.EMAIL_CODE,
    ) -> VerificationResult:
        """Check a code previously sent by email or SMS.

        On success the subject's codes are deleted and its rate-limit counter
        is cleared. Wrong, expired and missing codes all give the same failed
        result.

        Raises:
            RateLimitError: The subject exhausted its attempts.
            StorageError: The code store is unreachable.
        """
        subject = self._require_subject(subject)
        if method not in _CODE_METHODS:
            raise ValueError(f"verify_code does not handle {method.value}")

        with VerificationMetrics.operation("verify", method=method.value) as outcome:
            await self._check_rate_limit(subject)

            clean_code = code.strip() if isinstance(code, str) else ""
            well_formed = clean_code.isascii() and clean_code.isdigit()
            if not well_formed or not await self.code_store.is_valid(
                subject, clean_code
            ):
                outcome.result = "failure"
                logger.info("Verification code rejected for subject %s", subject)
                return VerificationResult.failed(method)

            await self.code_store.delete(subject)
            await self.rate_limiter.clear(subject)

        logger.info("Subject %s verified via %s", subject, method.value)
        return VerificationResult.succeeded(method, VerificationState.VERIFIED)

    # ───────────────────────────────────────────────────────────
    # TOTP
    # ───────────────────────────────────────────────────────────

    def generate_totp_secret(self) -> str:
        """Generate a base32 secret for the caller to persist."""
        return self.totp.generate_secret()

    def generate_totp_qr_code(
        self, account_label: str, secret: str
    ) -> VerificationResult:
        """Render the provisioning QR code for a secret.

        Returns:
            Successful result whose ``artifact`` is the image data URI.

        Raises:
            QRGenerationError: The image could not be rendered.
        """
        method = VerificationMethod.TOTP
        with VerificationMetrics.operation("enroll", method=method.value):
            qr_code = self.totp.generate_qr_code(account_label, secret)
        return VerificationResult.succeeded(
            method, VerificationState.IDLE, artifact=qr_code
        )

    def enroll_totp(self, account_label: str) -> TotpEnrollment:
        """Generate secret, provisioning URI, QR image and manual key.

        Raises:
            QRGenerationError: The image could not be rendered.
        """
        with VerificationMetrics.operation(
            "enroll", method=VerificationMethod.TOTP.value
        ):
            return self.totp.enroll(account_label)

    async def verify_totp(
        self,
        token: str,
        secret: str,
        subject: str | None = None,
    ) -> VerificationResult:
        """Check an authenticator-app token against a secret.

        No code store is involved. When ``subject`` is given and
        ``config.rate_limit_totp`` is set, the attempt counts against the
        subject's rate limit and a success clears it.

        Raises:
            RateLimitError: The subject exhausted its attempts.
        """
        method = VerificationMethod.TOTP
        gated_subject: str | None = None
        if subject is not None and self.config.rate_limit_totp:
            gated_subject = self._require_subject(subject)

        with VerificationMetrics.operation("verify", method=method.value) as outcome:
            if gated_subject is not None:
                await self._check_rate_limit(gated_subject)

            if not self.totp.verify(token, secret):
                outcome.result = "failure"
                return VerificationResult.failed(method)

            if gated_subject is not None:
                await self.rate_limiter.clear(gated_subject)

        return VerificationResult.succeeded(method, VerificationState.VERIFIED)

    async def verify(
        self,
        method: VerificationMethod,
        subject: str,
        token: str,
        *,
        secret: str | None = None,
    ) -> VerificationResult:
        """Verify with the strategy selected by ``method``.

        Raises:
            ValueError: ``TOTP`` without a secret.
        """
        if method is VerificationMethod.TOTP:
            if not secret:
                raise ValueError("TOTP verification requires the enrolled secret")
            return await self.verify_totp(token, secret, subject=subject)
        return await self.verify_code(subject, token, method=method)


__all__: list[str] = [
    "VerificationMethod",
    "VerificationState",
    "VerificationResult",
    "VerificationService",
]
