"""SMTP email implementation."""

from __future__ import annotations

import email.message
import email.policy
import logging

from ..config import SmtpSettings
from ..exceptions import DeliveryError
from ..observability import mask_recipient
from ..ports import IEmailSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(IEmailSender):
    """
    Async SMTP email sender using aiosmtplib.

    Requires the ``smtp`` extra:
    pip install 'lawhelp-verification[smtp]'
    """

    def __init__(
        self,
        settings: SmtpSettings,
        *,
        from_email: str = "noreply@lawhelp.com",
    ) -> None:
        self.settings = settings
        self.from_email = from_email

    def build_message(
        self,
        to_address: str,
        subject_line: str,
        body_text: str,
        body_html: str | None = None,
    ) -> email.message.EmailMessage:
        message = email.message.EmailMessage(policy=email.policy.default)
        message["To"] = to_address
        message["From"] = self.from_email
        message["Subject"] = subject_line

        if body_html:
            # Multipart with both text and HTML
            message.set_content(body_text, subtype="plain", charset="utf-8")
            message.add_alternative(body_html, subtype="html", charset="utf-8")
        else:
            message.set_content(body_text, charset="utf-8")
        return message

    async def send(
        self,
        to_address: str,
        subject_line: str,
        body_text: str,
        body_html: str | None = None,
    ) -> None:
        # Lazy import of aiosmtplib
        try:
            import aiosmtplib
        except ImportError as e:
            raise ImportError(
                "aiosmtplib is required for SmtpEmailSender. "
                "Install with: pip install 'lawhelp-verification[smtp]'"
            ) from e

        message = self.build_message(to_address, subject_line, body_text, body_html)
        settings = self.settings

        try:
            async with aiosmtplib.SMTP(
                hostname=settings.host,
                port=settings.port,
                timeout=settings.timeout,
                start_tls=settings.use_tls,
            ) as smtp:
                if settings.username and settings.password:
                    await smtp.login(settings.username, settings.password)
                await smtp.send_message(message)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send email to %s: %s", mask_recipient(to_address), e
            )
            raise DeliveryError("email", to_address, str(e)) from e

        logger.info("Email sent to %s via SMTP", mask_recipient(to_address))


__all__: list[str] = ["SmtpEmailSender"]
