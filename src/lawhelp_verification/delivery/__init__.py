"""Delivery channels for verification codes: email and SMS."""

from __future__ import annotations

from .memory import InMemoryEmailSender, InMemorySmsSender, SentMessage
from .messages import (
    EMAIL_TEMPLATE,
    SMS_TEMPLATE,
    DeliveryChannel,
    MessageTemplate,
    RenderedMessage,
    render,
    render_email_code,
    render_sms_code,
)
from .smtp import SmtpEmailSender
from .twilio import TwilioSmsSender

__all__ = [
    "DeliveryChannel",
    "MessageTemplate",
    "RenderedMessage",
    "EMAIL_TEMPLATE",
    "SMS_TEMPLATE",
    "render",
    "render_email_code",
    "render_sms_code",
    "SentMessage",
    "InMemoryEmailSender",
    "InMemorySmsSender",
    "SmtpEmailSender",
    "TwilioSmsSender",
]
