"""Verification error hierarchy.

Domain errors (rate limiting, enrollment rendering) are recoverable by the
caller. Infrastructure errors wrap failures of the delivery channels and the
code store. An invalid code is never an exception: it is reported as a failed
:class:`~lawhelp_verification.service.VerificationResult`.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════
# BASE
# ═══════════════════════════════════════════════════════════════


class VerificationError(Exception):
    """Root exception for the verification toolkit."""


class VerificationInfrastructureError(VerificationError):
    """Base class for failures of external collaborators (channels, stores)."""


# ═══════════════════════════════════════════════════════════════
# DOMAIN ERRORS
# ═══════════════════════════════════════════════════════════════


class RateLimitError(VerificationError):
    """Raised when a subject exceeded its attempts within the current window.

    Recoverable by waiting. The message is safe to show to end users.

    Attributes:
        subject: The subject that was denied.
        retry_after: Seconds until the current window ends, when known.
    """

    def __init__(
        self,
        message: str = "Too many verification attempts. Please try again later.",
        *,
        subject: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.subject = subject
        self.retry_after = retry_after


class QRGenerationError(VerificationError):
    """Raised when a TOTP provisioning URI cannot be rendered to a QR image.

    The secret was generated, but the client cannot finish enrollment
    without the image. Callers should abort registration and offer a retry.
    """


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE ERRORS
# ═══════════════════════════════════════════════════════════════


class DeliveryError(VerificationInfrastructureError):
    """Raised when a delivery channel fails to dispatch a code.

    Recoverable by retry. The stored code is not invalidated.
    """

    def __init__(
        self,
        channel: str,
        recipient: str,
        reason: str,
    ) -> None:
        self.channel = channel
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Failed to deliver via {channel} to {recipient}: {reason}")


class StorageError(VerificationInfrastructureError):
    """Raised when the code store or the shared rate-limit backend is unreachable."""


__all__: list[str] = [
    "VerificationError",
    "VerificationInfrastructureError",
    "RateLimitError",
    "QRGenerationError",
    "DeliveryError",
    "StorageError",
]
