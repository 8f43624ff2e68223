"""Message templates for verification codes.

Templates are plain ``str.format`` strings; no template engine is needed for
a single placeholder-driven message per channel.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DeliveryChannel(Enum):
    """Channels a code can be delivered through."""

    EMAIL = "email"
    SMS = "sms"


@dataclass(frozen=True)
class MessageTemplate:
    """Immutable template definition."""

    channel: DeliveryChannel
    body_template: str
    subject_template: str | None = None
    html_template: str | None = None


@dataclass(frozen=True)
class RenderedMessage:
    """Immutable rendered message ready for delivery."""

    body_text: str
    subject: str | None = None
    body_html: str | None = None


EMAIL_TEMPLATE = MessageTemplate(
    channel=DeliveryChannel.EMAIL,
    subject_template="Your Verification Code",
    body_template=(
        "Your verification code is: {code}. "
        "This code will expire in {minutes} minutes."
    ),
    html_template=(
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">\n'
        "  <h2>Your Verification Code</h2>\n"
        '  <p style="font-size: 24px; font-weight: bold; color: #43C59E;">{code}</p>\n'
        "  <p>This code will expire in {minutes} minutes.</p>\n"
        "  <p>If you didn't request this code, please ignore this email.</p>\n"
        "</div>\n"
    ),
)

SMS_TEMPLATE = MessageTemplate(
    channel=DeliveryChannel.SMS,
    body_template=(
        "Your {brand} verification code is: {code}. "
        "This code will expire in {minutes} minutes."
    ),
)


def ttl_minutes(ttl_seconds: int) -> int:
    """Whole minutes shown to the user, never below one."""
    return max(1, ttl_seconds // 60)


def render(template: MessageTemplate, **context: object) -> RenderedMessage:
    """Render a template with ``str.format`` placeholders.

    Raises:
        KeyError: If a placeholder has no value in ``context``.
    """
    subject = None
    if template.subject_template:
        subject = template.subject_template.format(**context)
    body_html = None
    if template.html_template:
        body_html = template.html_template.format(**context)
    return RenderedMessage(
        subject=subject,
        body_text=template.body_template.format(**context),
        body_html=body_html,
    )


def render_email_code(code: str, ttl_seconds: int) -> RenderedMessage:
    return render(EMAIL_TEMPLATE, code=code, minutes=ttl_minutes(ttl_seconds))


def render_sms_code(code: str, ttl_seconds: int, brand: str = "LawHelp") -> RenderedMessage:
    return render(
        SMS_TEMPLATE, code=code, minutes=ttl_minutes(ttl_seconds), brand=brand
    )


__all__: list[str] = [
    "DeliveryChannel",
    "MessageTemplate",
    "RenderedMessage",
    "EMAIL_TEMPLATE",
    "SMS_TEMPLATE",
    "ttl_minutes",
    "render",
    "render_email_code",
    "render_sms_code",
]
