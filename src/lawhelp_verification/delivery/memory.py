"""In-memory senders for test assertions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import DeliveryError
from ..ports import IEmailSender, ISmsSender
from .messages import DeliveryChannel

logger = logging.getLogger(__name__)


@dataclass
class SentMessage:
    """Record of a sent message for test assertions."""

    recipient: str
    channel: DeliveryChannel
    body_text: str
    subject: str | None = None
    body_html: str | None = None


class _RecordingSender:
    channel: DeliveryChannel

    def __init__(self) -> None:
        self.sent_messages: list[SentMessage] = []
        self.fail_with: str | None = None

    def _record(self, message: SentMessage) -> None:
        if self.fail_with is not None:
            raise DeliveryError(self.channel.value, message.recipient, self.fail_with)
        self.sent_messages.append(message)

    def assert_sent(self, recipient: str, count: int = 1) -> None:
        """Helper for test assertions."""
        matches = [m for m in self.sent_messages if m.recipient == recipient]
        if len(matches) != count:
            raise AssertionError(
                f"Expected {count} messages to {recipient} via {self.channel.value}, "
                f"but found {len(matches)}."
            )

    def last_message(self) -> SentMessage:
        if not self.sent_messages:
            raise AssertionError(f"No messages sent via {self.channel.value}")
        return self.sent_messages[-1]

    def clear(self) -> None:
        """Clear all sent messages and the failure switch."""
        self.sent_messages.clear()
        self.fail_with = None


class InMemoryEmailSender(_RecordingSender, IEmailSender):
    """
    Test double (Fake) that stores emails in a list for assertions.

    Set ``fail_with`` to a reason to make every send raise DeliveryError.
    """

    channel = DeliveryChannel.EMAIL

    async def send(
        self,
        to_address: str,
        subject_line: str,
        body_text: str,
        body_html: str | None = None,
    ) -> None:
        self._record(
            SentMessage(
                recipient=to_address,
                channel=self.channel,
                body_text=body_text,
                subject=subject_line,
                body_html=body_html,
            )
        )


class InMemorySmsSender(_RecordingSender, ISmsSender):
    """
    Test double (Fake) that stores text messages in a list for assertions.

    Set ``fail_with`` to a reason to make every send raise DeliveryError.
    """

    channel = DeliveryChannel.SMS

    async def send(self, to_number: str, body_text: str) -> None:
        self._record(
            SentMessage(recipient=to_number, channel=self.channel, body_text=body_text)
        )


__all__: list[str] = ["SentMessage", "InMemoryEmailSender", "InMemorySmsSender"]
