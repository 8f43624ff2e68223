"""Logging helpers and optional Prometheus metrics for verification operations.

Metrics are recorded only when ``prometheus_client`` is installed (the
``metrics`` extra); otherwise every helper is a no-op. Exposing the metrics
over HTTP is left to the host application.

Usage:
    ```python
    from lawhelp_verification.observability import VerificationMetrics

    with VerificationMetrics.operation("send", method="email_code") as outcome:
        ...
        outcome.result = "success"
    ```
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import RateLimitError

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Generator


def mask_recipient(recipient: str) -> str:
    """Mask an email address or phone number for log output.

    ``alice@example.com`` becomes ``a***@example.com`` and ``+15551234567``
    becomes ``***4567``.
    """
    if not recipient:
        return "***"
    if "@" in recipient:
        local, _, domain = recipient.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"***{recipient[-4:]}" if len(recipient) > 4 else "***"


@dataclass
class OperationOutcome:
    """Mutable result label of an operation in progress."""

    result: str = "success"


class _VerificationMetricsRegistry:
    """Registry for verification Prometheus metrics.

    Lazily initializes Prometheus metrics on first use.
    """

    def __init__(self) -> None:
        self._histogram: Any = None
        self._counter: Any = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        try:
            from prometheus_client import Counter, Histogram

            self._histogram = Histogram(
                "verification_operation_duration_seconds",
                "Verification operation duration",
                ["method", "operation"],
            )
            self._counter = Counter(
                "verification_operations_total",
                "Verification operation count",
                ["method", "operation", "result"],
            )
        except ImportError:
            _logger.debug("prometheus_client not available, metrics disabled")

        self._initialized = True

    @property
    def histogram(self) -> Any:
        self._ensure_initialized()
        return self._histogram

    @property
    def counter(self) -> Any:
        self._ensure_initialized()
        return self._counter


# Global registry instance
_registry = _VerificationMetricsRegistry()


class VerificationMetrics:
    """Timing and outcome counters for verification operations."""

    @staticmethod
    @contextmanager
    def operation(
        operation: str,
        *,
        method: str,
    ) -> Generator[OperationOutcome, None, None]:
        """Context manager timing one operation.

        The yielded outcome defaults to ``success``; set ``outcome.result`` to
        ``failure`` for a rejected code. Exceptions are labelled
        ``rate_limited`` or ``error``.

        Args:
            operation: Operation name (send, verify, enroll).
            method: Verification method value (email_code, sms_code, totp).
        """
        outcome = OperationOutcome()
        start = time.monotonic()

        try:
            yield outcome
        except RateLimitError:
            outcome.result = "rate_limited"
            raise
        except Exception:
            outcome.result = "error"
            raise
        finally:
            duration = time.monotonic() - start

            if _registry.histogram:
                try:
                    _registry.histogram.labels(
                        method=method, operation=operation
                    ).observe(duration)
                except Exception:  # noqa: BLE001
                    _logger.debug("Failed to record histogram")

            if _registry.counter:
                try:
                    _registry.counter.labels(
                        method=method, operation=operation, result=outcome.result
                    ).inc()
                except Exception:  # noqa: BLE001
                    _logger.debug("Failed to record counter")


__all__: list[str] = [
    "mask_recipient",
    "OperationOutcome",
    "VerificationMetrics",
]
