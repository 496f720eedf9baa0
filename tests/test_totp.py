"""
TOTP verifier tests
"""
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pyotp
import pytest

from app.services.totp_service import TotpVerifier
from tests.conftest import FROZEN_NOW, wrong_code


@pytest.mark.auth
class TestIssue:

    def test_issue_returns_base32_secret_and_uri(self, totp):
        issued = totp.issue("root@ventureflow.io")

        assert len(issued.secret) == 32
        pyotp.TOTP(issued.secret).now()  # valid base32

        uri = urlparse(issued.otpauth_url)
        assert uri.scheme == "otpauth"
        assert uri.netloc == "totp"
        assert "root%40ventureflow.io" in uri.path or "root@ventureflow.io" in uri.path
        assert parse_qs(uri.query)["issuer"] == ["VentureFlow"]
        assert parse_qs(uri.query)["secret"] == [issued.secret]

    def test_every_issue_is_fresh(self, totp):
        assert totp.issue("a@example.com").secret != totp.issue("a@example.com").secret


@pytest.mark.auth
class TestVerify:

    def test_current_code_verifies(self, totp):
        secret = pyotp.random_base32()
        assert totp.verify(totp.code_at(secret, FROZEN_NOW), secret)

    def test_codes_match_standard_authenticator(self, totp):
        secret = pyotp.random_base32()
        assert totp.code_at(secret, FROZEN_NOW) == pyotp.TOTP(secret).at(FROZEN_NOW)

    def test_adjacent_windows_accepted(self, totp):
        secret = pyotp.random_base32()
        previous = totp.code_at(secret, FROZEN_NOW - 30)
        upcoming = totp.code_at(secret, FROZEN_NOW + 30)

        assert totp.matched_step(previous, secret) == totp.step_at() - 1
        assert totp.matched_step(upcoming, secret) == totp.step_at() + 1

    def test_code_outside_window_rejected(self, totp):
        secret = pyotp.random_base32()
        old = totp.code_at(secret, FROZEN_NOW - 300)
        valid_now = {totp.code_at(secret, FROZEN_NOW + d) for d in (-30, 0, 30)}
        if old in valid_now:
            pytest.skip("code collision")

        assert not totp.verify(old, secret)

    def test_wrong_code_rejected(self, totp):
        secret = pyotp.random_base32()
        assert not totp.verify(wrong_code(totp, secret), secret)

    @pytest.mark.parametrize("code", ["", None, "12345", "1234567", "abcdef", "12 34 5x"])
    def test_malformed_codes_rejected(self, totp, code):
        assert not totp.verify(code, pyotp.random_base32())

    def test_spaces_are_ignored(self, totp):
        secret = pyotp.random_base32()
        code = totp.code_at(secret, FROZEN_NOW)
        assert totp.verify(f"{code[:3]} {code[3:]}", secret)

    def test_missing_or_malformed_secret_rejected(self, totp):
        assert not totp.verify("123456", None)
        assert not totp.verify("123456", "not base32!!")

    def test_step_at_accepts_datetime(self):
        verifier = TotpVerifier(interval=30)
        moment = datetime.fromtimestamp(FROZEN_NOW, tz=timezone.utc)
        assert verifier.step_at(moment) == FROZEN_NOW // 30
