"""Random code and secret generation."""

from __future__ import annotations

import secrets

import pyotp

DEFAULT_CODE_LENGTH = 6


def generate_numeric_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Generate a uniformly distributed numeric code.

    Args:
        length: Number of digits.

    Returns:
        Zero-padded code drawn from the OS CSPRNG.
    """
    if length < 1:
        raise ValueError("length must be positive")
    value = secrets.randbelow(10**length)
    return str(value).zfill(length)


def generate_totp_secret() -> str:
    """Generate a base32 TOTP secret (32 characters, 160 bits)."""
    return pyotp.random_base32()


def format_manual_key(secret: str) -> str:
    """Group a base32 secret in blocks of four for manual entry."""
    secret = secret.rstrip("=")
    return " ".join(secret[i : i + 4] for i in range(0, len(secret), 4))


__all__: list[str] = [
    "DEFAULT_CODE_LENGTH",
    "generate_numeric_code",
    "generate_totp_secret",
    "format_manual_key",
]
