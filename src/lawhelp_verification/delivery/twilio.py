"""Twilio SMS implementation (optional)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..config import TwilioSettings
from ..exceptions import DeliveryError
from ..observability import mask_recipient
from ..ports import ISmsSender

logger = logging.getLogger(__name__)


class TwilioSmsSender(ISmsSender):
    """
    Twilio SMS implementation.

    The Twilio REST client is blocking, so each send runs in a worker thread.

    Requires the ``twilio`` extra:
    pip install 'lawhelp-verification[twilio]'
    """

    def __init__(self, settings: TwilioSettings, *, client: Any | None = None) -> None:
        if client is None and not settings.is_configured:
            raise ValueError("Twilio is not configured")
        self.settings = settings
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            # Lazy import of twilio
            try:
                from twilio.rest import Client as TwilioClient
            except ImportError as e:
                raise ImportError(
                    "twilio is required for TwilioSmsSender. "
                    "Install with: pip install 'lawhelp-verification[twilio]'"
                ) from e
            self._client = TwilioClient(
                self.settings.account_sid, self.settings.auth_token
            )
        return self._client

    def _create_message(self, to_number: str, body_text: str) -> Any:
        return self._get_client().messages.create(
            to=to_number,
            from_=self.settings.from_number,
            body=body_text,
        )

    async def send(self, to_number: str, body_text: str) -> None:
        try:
            from twilio.base.exceptions import TwilioException
        except ImportError as e:
            raise ImportError(
                "twilio is required for TwilioSmsSender. "
                "Install with: pip install 'lawhelp-verification[twilio]'"
            ) from e

        try:
            message = await asyncio.to_thread(
                self._create_message, to_number, body_text
            )
        except (TwilioException, OSError) as e:
            logger.error(
                "Failed to send SMS to %s via Twilio: %s", mask_recipient(to_number), e
            )
            raise DeliveryError("sms", to_number, str(e)) from e

        logger.info(
            "SMS sent via Twilio to %s (SID: %s)",
            mask_recipient(to_number),
            getattr(message, "sid", None),
        )


__all__: list[str] = ["TwilioSmsSender"]
