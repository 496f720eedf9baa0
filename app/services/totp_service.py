"""
Time-based one-time codes for two-factor authentication
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

import pyotp
from pyotp.utils import strings_equal

from app.core.config import settings

logger = logging.getLogger(__name__)

CODE_DIGITS = 6

Moment = Union[int, float, datetime]


@dataclass(frozen=True)
class OneTimeSecret:
    """A freshly issued TOTP secret and its provisioning URI"""
    secret: str
    otpauth_url: str


class TotpVerifier:
    """Issue TOTP secrets and check 6-digit codes against them"""

    def __init__(
        self,
        issuer: str = settings.TOTP_ISSUER,
        interval: int = settings.TOTP_INTERVAL_SECONDS,
        valid_window: int = settings.TOTP_VALID_WINDOW,
        clock: Callable[[], float] = time.time,
    ):
        self.issuer = issuer
        self.interval = interval
        self.valid_window = valid_window
        self.clock = clock

    def issue(self, identity_label: str) -> OneTimeSecret:
        """Generate a new random secret and an otpauth:// URI for authenticator apps"""
        secret = pyotp.random_base32()
        otpauth_url = pyotp.TOTP(secret, interval=self.interval).provisioning_uri(
            name=identity_label,
            issuer_name=self.issuer,
        )
        return OneTimeSecret(secret=secret, otpauth_url=otpauth_url)

    def step_at(self, at: Optional[Moment] = None) -> int:
        """Time step counter for a moment (defaults to now)"""
        if at is None:
            at = self.clock()
        if isinstance(at, datetime):
            at = at.timestamp()
        return int(at // self.interval)

    def code_at(self, secret: str, at: Optional[Moment] = None) -> str:
        """Code an authenticator would display at the given moment"""
        return pyotp.TOTP(secret, interval=self.interval).generate_otp(self.step_at(at))

    def matched_step(self, code: Optional[str], secret: Optional[str], at: Optional[Moment] = None) -> Optional[int]:
        """
        Return the time step a code belongs to, or None when it does not verify.

        Steps within ``valid_window`` of the current one are accepted to
        absorb clock drift between server and phone.
        """
        if not code or not secret:
            return None

        code = code.strip().replace(" ", "")
        if len(code) != CODE_DIGITS or not code.isdigit():
            return None

        current = self.step_at(at)
        try:
            totp = pyotp.TOTP(secret, interval=self.interval)
            for offset in range(-self.valid_window, self.valid_window + 1):
                step = current + offset
                if strings_equal(code, totp.generate_otp(step)):
                    return step
        except ValueError:
            # binascii.Error on a secret that is not valid base32
            logger.warning("Rejected TOTP check against a malformed secret")
            return None

        return None

    def verify(self, code: Optional[str], secret: Optional[str], at: Optional[Moment] = None) -> bool:
        """Check a code against a secret. Fails closed on any malformed input."""
        return self.matched_step(code, secret, at) is not None


# Global verifier instance
totp_verifier = TotpVerifier()
