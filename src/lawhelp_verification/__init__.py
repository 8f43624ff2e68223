"""LawHelp Verification Package

Multi-factor verification: "Is it really you?"

Issues and validates time-limited one-time codes over email and SMS, and
authenticator-app (TOTP) tokens, behind a per-subject rate limiter.

Usage:
    ```python
    from lawhelp_verification import (
        RateLimitError,
        VerificationMethod,
        create_verification_service,
    )

    service = create_verification_service(email_sender=my_email_sender)

    try:
        await service.send_code(VerificationMethod.EMAIL_CODE, "user-123", "a@b.com")
    except RateLimitError as exc:
        print(exc)  # "Too many verification attempts. Please try again later."

    result = await service.verify_code("user-123", "482913")
    ```

Submodules:
    - `rate_limit`: In-memory and Redis rate limiters
    - `store`: In-memory and SQLAlchemy code stores
    - `delivery`: Message templates, SMTP/Twilio senders and test fakes
    - `totp`: Authenticator-app enrollment and verification
    - `observability`: Log masking and Prometheus metrics
"""

from __future__ import annotations

from .codes import format_manual_key, generate_numeric_code, generate_totp_secret
from .config import SmtpSettings, TwilioSettings, VerificationConfig
from .exceptions import (
    DeliveryError,
    QRGenerationError,
    RateLimitError,
    StorageError,
    VerificationError,
    VerificationInfrastructureError,
)
from .factory import create_verification_service
from .ports import (
    ICodeStore,
    IEmailSender,
    IRateLimiter,
    ISmsSender,
    OneTimeCode,
    TotpEnrollment,
    VerificationAttempt,
)
from .rate_limit import InMemoryRateLimiter
from .service import (
    VerificationMethod,
    VerificationResult,
    VerificationService,
    VerificationState,
)
from .store import InMemoryCodeStore
from .totp import TotpService

__all__: list[str] = [
    # Service
    "VerificationService",
    "VerificationMethod",
    "VerificationState",
    "VerificationResult",
    "create_verification_service",
    # Config
    "VerificationConfig",
    "SmtpSettings",
    "TwilioSettings",
    # Exceptions
    "VerificationError",
    "VerificationInfrastructureError",
    "RateLimitError",
    "QRGenerationError",
    "DeliveryError",
    "StorageError",
    # Ports
    "IRateLimiter",
    "ICodeStore",
    "IEmailSender",
    "ISmsSender",
    "VerificationAttempt",
    "OneTimeCode",
    "TotpEnrollment",
    # Adapters
    "InMemoryRateLimiter",
    "InMemoryCodeStore",
    "TotpService",
    # Codes
    "generate_numeric_code",
    "generate_totp_secret",
    "format_manual_key",
]

__version__ = "0.1.0"
