"""Tests for TotpService."""

from __future__ import annotations

import base64
import time
from urllib.parse import parse_qs, urlparse

import pyotp
import pytest

from lawhelp_verification import QRGenerationError, TotpService
from lawhelp_verification.totp import QR_MEDIA_TYPE

SECRET = "JBSWY3DPEHPK3PXP"


@pytest.fixture
def totp_service():
    return TotpService(issuer="LawHelp")


class TestProvisioning:
    def test_generate_secret(self, totp_service):
        secret = totp_service.generate_secret()
        assert len(secret) == 32

    def test_provisioning_uri(self, totp_service):
        uri = totp_service.provisioning_uri("alice@example.com", SECRET)
        parsed = urlparse(uri)
        query = parse_qs(parsed.query)

        assert parsed.scheme == "otpauth"
        assert parsed.netloc == "totp"
        assert "alice%40example.com" in parsed.path
        assert query["secret"] == [SECRET]
        assert query["issuer"] == ["LawHelp"]

    def test_provisioning_uri_issuer_override(self, totp_service):
        uri = totp_service.provisioning_uri("alice", SECRET, issuer="Other")
        assert parse_qs(urlparse(uri).query)["issuer"] == ["Other"]


class TestQrCode:
    def test_generate_qr_code_returns_data_uri(self, totp_service):
        qr = totp_service.generate_qr_code("alice@example.com", SECRET)

        prefix = f"data:{QR_MEDIA_TYPE};base64,"
        assert qr.startswith(prefix)
        decoded = base64.b64decode(qr[len(prefix) :])
        assert b"<svg" in decoded

    def test_render_failure_raises_qr_generation_error(self, totp_service, monkeypatch):
        def broken_make(*args, **kwargs):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr("lawhelp_verification.totp.qrcode.make", broken_make)

        with pytest.raises(QRGenerationError, match="Failed to generate QR code"):
            totp_service.generate_qr_code("alice@example.com", SECRET)

    def test_enroll(self, totp_service):
        enrollment = totp_service.enroll("alice@example.com")

        assert enrollment.provisioning_uri.startswith("otpauth://totp/")
        assert enrollment.secret in enrollment.provisioning_uri
        assert enrollment.qr_code.startswith("data:image/svg+xml;base64,")
        assert enrollment.manual_key.replace(" ", "") == enrollment.secret


class TestVerify:
    def test_current_token_accepted(self, totp_service):
        token = pyotp.TOTP(SECRET).now()
        assert totp_service.verify(token, SECRET) is True

    def test_token_with_spaces_accepted(self, totp_service):
        token = pyotp.TOTP(SECRET).now()
        assert totp_service.verify(f"{token[:3]} {token[3:]}", SECRET) is True

    def test_previous_step_accepted_within_window(self, totp_service):
        token = pyotp.TOTP(SECRET).at(time.time() - 30)
        assert totp_service.verify(token, SECRET) is True

    def test_far_token_rejected(self, totp_service):
        token = pyotp.TOTP(SECRET).at(time.time() - 600)
        assert totp_service.verify(token, SECRET) is False

    @pytest.mark.parametrize("token", ["", "12345", "1234567", "abcdef"])
    def test_malformed_token_rejected(self, totp_service, token):
        assert totp_service.verify(token, SECRET) is False

    def test_fullwidth_digits_rejected(self, totp_service):
        token = pyotp.TOTP(SECRET).now()
        fullwidth = "".join(chr(ord(c) + 0xFEE0) for c in token)

        assert totp_service.verify(fullwidth, SECRET) is False

    def test_invalid_secret_never_raises(self, totp_service):
        assert totp_service.verify("123456", "not base32 !!") is False

    def test_none_token_never_raises(self, totp_service):
        assert totp_service.verify(None, SECRET) is False  # type: ignore[arg-type]
