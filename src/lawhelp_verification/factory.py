"""Factory helpers wiring a VerificationService from its parts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import VerificationConfig
from .ports import utc_now
from .rate_limit import InMemoryRateLimiter
from .service import VerificationService
from .store import InMemoryCodeStore

if TYPE_CHECKING:
    from .config import SmtpSettings
    from .ports import Clock, ICodeStore, IEmailSender, IRateLimiter, ISmsSender


def create_verification_service(
    config: VerificationConfig | None = None,
    *,
    email_sender: IEmailSender | None = None,
    sms_sender: ISmsSender | None = None,
    code_store: ICodeStore | None = None,
    rate_limiter: IRateLimiter | None = None,
    smtp_settings: SmtpSettings | None = None,
    clock: Clock = utc_now,
) -> VerificationService:
    """Build a service, filling missing collaborators with in-memory defaults.

    The default rate limiter is sized from ``config``. The default code store
    is :class:`InMemoryCodeStore`, suitable for tests and single-process
    development only. Defaults share ``clock`` with the service.

    When no ``email_sender`` is given but ``smtp_settings`` is, an
    :class:`~lawhelp_verification.delivery.SmtpEmailSender` sending from
    ``config.email_from`` is built.

    Example:
        ```python
        service = create_verification_service(
            VerificationConfig.from_env(),
            smtp_settings=SmtpSettings.from_env(),
            code_store=SQLAlchemyCodeStore(session_factory),
        )
        ```
    """
    config = config or VerificationConfig()
    if rate_limiter is None:
        rate_limiter = InMemoryRateLimiter(
            window_seconds=config.rate_limit_window_seconds,
            max_attempts=config.max_attempts,
            clock=clock,
        )
    if email_sender is None and smtp_settings is not None:
        from .delivery.smtp import SmtpEmailSender

        email_sender = SmtpEmailSender(smtp_settings, from_email=config.email_from)
    return VerificationService(
        code_store=code_store or InMemoryCodeStore(clock=clock),
        rate_limiter=rate_limiter,
        email_sender=email_sender,
        sms_sender=sms_sender,
        config=config,
        clock=clock,
    )


__all__: list[str] = ["create_verification_service"]
