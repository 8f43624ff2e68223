"""Configuration for the verification service and its delivery channels."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any

ENV_PREFIX = "LAWHELP_VERIFICATION_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})


def _env_bool(raw_value: str) -> bool:
    return raw_value.strip().lower() in _TRUE_VALUES


def _coerce(raw_value: str, current: Any) -> Any:
    if isinstance(current, bool):
        return _env_bool(raw_value)
    if isinstance(current, int):
        return int(raw_value)
    if isinstance(current, float):
        return float(raw_value)
    return raw_value


def _overrides_from_env(instance: Any, prefix: str) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for field in fields(instance):
        raw_value = os.getenv(f"{prefix}{field.name.upper()}")
        if raw_value is None:
            continue
        overrides[field.name] = _coerce(raw_value, getattr(instance, field.name))
    return overrides


@dataclass(frozen=True)
class VerificationConfig:
    """Verification policy.

    Attributes:
        code_length: Number of digits in email/SMS codes.
        code_ttl_seconds: Lifetime of an issued code.
        rate_limit_window_seconds: Length of a rate-limit window, anchored at
            the first attempt of the window.
        max_attempts: Attempts allowed per subject within one window.
        delivery_timeout: Upper bound in seconds for a single channel call.
        totp_issuer: Issuer shown by authenticator apps.
        totp_digits: Digits in a TOTP token.
        totp_interval: TOTP time step in seconds.
        totp_valid_window: Accepted clock drift in time steps (±N).
        rate_limit_totp: Gate ``verify_totp`` with the rate limiter when the
            caller supplies a subject.
        email_from: Sender address for verification emails.
        brand: Product name used in message bodies.
    """

    code_length: int = 6
    code_ttl_seconds: int = 600  # 10 minutes
    rate_limit_window_seconds: int = 900  # 15 minutes
    max_attempts: int = 5
    delivery_timeout: float = 10.0
    totp_issuer: str = "LawHelp"
    totp_digits: int = 6
    totp_interval: int = 30
    totp_valid_window: int = 1
    rate_limit_totp: bool = True
    email_from: str = "noreply@lawhelp.com"
    brand: str = "LawHelp"

    def __post_init__(self) -> None:
        if self.code_length < 4:
            raise ValueError("code_length must be at least 4")
        if self.code_ttl_seconds <= 0:
            raise ValueError("code_ttl_seconds must be positive")
        if self.rate_limit_window_seconds <= 0:
            raise ValueError("rate_limit_window_seconds must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delivery_timeout <= 0:
            raise ValueError("delivery_timeout must be positive")

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> VerificationConfig:
        """Build a config from ``<prefix><FIELD_NAME>`` environment variables.

        Unset variables keep their defaults.
        """
        defaults = cls()
        return replace(defaults, **_overrides_from_env(defaults, prefix))


@dataclass(frozen=True)
class SmtpSettings:
    """Connection settings for :class:`~lawhelp_verification.delivery.SmtpEmailSender`."""

    host: str = "localhost"
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    timeout: float = 10.0

    @classmethod
    def from_env(cls, prefix: str = f"{ENV_PREFIX}SMTP_") -> SmtpSettings:
        defaults = cls()
        return replace(defaults, **_overrides_from_env(defaults, prefix))


@dataclass(frozen=True)
class TwilioSettings:
    """Credentials for :class:`~lawhelp_verification.delivery.TwilioSmsSender`."""

    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @classmethod
    def from_env(cls, prefix: str = "TWILIO_") -> TwilioSettings:
        # Uses the variable names of the Twilio console by default
        # (TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_FROM_NUMBER).
        defaults = cls()
        overrides = _overrides_from_env(defaults, prefix)
        if "from_number" not in overrides and os.getenv(f"{prefix}PHONE_NUMBER"):
            overrides["from_number"] = os.environ[f"{prefix}PHONE_NUMBER"]
        return replace(defaults, **overrides)


__all__: list[str] = [
    "ENV_PREFIX",
    "VerificationConfig",
    "SmtpSettings",
    "TwilioSettings",
]
