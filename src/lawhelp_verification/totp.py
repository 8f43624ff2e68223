"""TOTP (Time-based One-Time Password) enrollment and verification.

Works with any RFC 6238 authenticator app (Google Authenticator, Microsoft
Authenticator, Authy, 1Password, ...). Uses pyotp for the algorithm and
qrcode for the enrollment image.

The service is stateless: secrets are generated and handed back, never
stored. Persisting them (encrypted at rest) is the caller's job.
"""

from __future__ import annotations

import base64
import io
import logging

import pyotp
import qrcode
import qrcode.image.svg

from .codes import format_manual_key, generate_totp_secret
from .exceptions import QRGenerationError
from .ports import TotpEnrollment

logger = logging.getLogger(__name__)

QR_MEDIA_TYPE = "image/svg+xml"


class TotpService:
    """TOTP helper for authenticator apps.

    Example:
        ```python
        totp_service = TotpService(issuer="LawHelp")

        # Enrollment - show the QR image, persist the secret
        enrollment = totp_service.enroll("alice@example.com")
        save_secret("user-123", enrollment.secret)
        render_image(enrollment.qr_code)

        # Login - check the code from the app
        if totp_service.verify("123456", load_secret("user-123")):
            print("Valid!")
        ```
    """

    def __init__(
        self,
        *,
        issuer: str = "LawHelp",
        digits: int = 6,
        interval: int = 30,
        valid_window: int = 1,
    ) -> None:
        """Initialize TOTP service.

        Args:
            issuer: Application name shown in authenticator app.
            digits: Number of digits in code (default 6).
            interval: Time step in seconds (default 30).
            valid_window: Accept codes ±N steps for clock drift (default 1).
        """
        self.issuer = issuer
        self.digits = digits
        self.interval = interval
        self.valid_window = valid_window

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(
            secret,
            digits=self.digits,
            interval=self.interval,
            issuer=self.issuer,
        )

    def generate_secret(self) -> str:
        """Generate a new base32 secret."""
        return generate_totp_secret()

    def provisioning_uri(
        self,
        account_label: str,
        secret: str,
        issuer: str | None = None,
    ) -> str:
        """Build the ``otpauth://totp/...`` URI for an account.

        Args:
            account_label: Account name shown in the app (usually the email).
            secret: Base32 secret.
            issuer: Overrides the configured issuer.

        Returns:
            Provisioning URI understood by authenticator apps.
        """
        return self._totp(secret).provisioning_uri(
            name=account_label,
            issuer_name=issuer or self.issuer,
        )

    def render_qr_code(self, data: str) -> str:
        """Render arbitrary data to a QR image.

        Args:
            data: Payload to encode (normally a provisioning URI).

        Returns:
            ``data:image/svg+xml;base64,...`` URI, displayable by browsers.

        Raises:
            QRGenerationError: If the image cannot be produced.
        """
        try:
            image = qrcode.make(data, image_factory=qrcode.image.svg.SvgPathImage)
            buffer = io.BytesIO()
            image.save(buffer)
        except Exception as e:
            logger.error("QR code rendering failed: %s", e)
            raise QRGenerationError("Failed to generate QR code") from e

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:{QR_MEDIA_TYPE};base64,{encoded}"

    def generate_qr_code(self, account_label: str, secret: str) -> str:
        """Render the provisioning URI of an account to a QR data URI.

        Raises:
            QRGenerationError: If the image cannot be produced.
        """
        try:
            uri = self.provisioning_uri(account_label, secret)
        except Exception as e:
            logger.error("Provisioning URI could not be built: %s", e)
            raise QRGenerationError("Failed to generate QR code") from e
        return self.render_qr_code(uri)

    def enroll(self, account_label: str) -> TotpEnrollment:
        """Generate everything an authenticator app needs.

        Args:
            account_label: Account name shown in the app.

        Returns:
            TotpEnrollment with secret, URI, QR image and manual key.

        Raises:
            QRGenerationError: If the QR image cannot be produced.
        """
        secret = self.generate_secret()
        uri = self.provisioning_uri(account_label, secret)
        return TotpEnrollment(
            secret=secret,
            provisioning_uri=uri,
            qr_code=self.render_qr_code(uri),
            manual_key=format_manual_key(secret),
        )

    def verify(self, token: str, secret: str) -> bool:
        """Check a token from the authenticator app.

        Accepts codes within ±valid_window steps. Never raises: malformed
        tokens or secrets count as a failed verification.

        Args:
            token: Code typed by the user.
            secret: Base32 secret stored at enrollment.

        Returns:
            True if the token is valid for the current time.
        """
        try:
            clean_token = token.replace(" ", "").strip()
            if (
                len(clean_token) != self.digits
                or not clean_token.isascii()
                or not clean_token.isdigit()
            ):
                return False
            return bool(
                self._totp(secret).verify(clean_token, valid_window=self.valid_window)
            )
        except Exception as e:  # noqa: BLE001
            logger.warning("TOTP verification error treated as failure: %s", e)
            return False


__all__: list[str] = ["QR_MEDIA_TYPE", "TotpService"]
