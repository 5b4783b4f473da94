"""
TOTP engine (RFC 6238).

Code generation is a pure function of the secret, the parameters and the
time passed in; callers that refresh codes on a timer own the timer.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import time

import pyotp

from . import base32
from .config import DEFAULT_DIGITS, DEFAULT_PERIOD, SECRET_LENGTH
from .errors import InvalidSecret
from .hotp import hotp
from .models import Account, HashAlgorithm, check_code_params


def _now() -> int:
    return int(time.time())


def time_step(unix_time: int, period: int = DEFAULT_PERIOD) -> int:
    """``floor(unix_time / period)``."""
    return int(unix_time) // period


def generate_code(
    secret: str,
    algorithm: "HashAlgorithm | str | None" = HashAlgorithm.SHA1,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_PERIOD,
    unix_time: int | None = None,
) -> str:
    """
    Generate the TOTP code valid at *unix_time*.

    Args:
        secret:    Base32 secret (case and separators do not matter)
        algorithm: SHA1 / SHA256 / SHA512
        digits:    length of the code
        period:    time step in seconds
        unix_time: epoch seconds; defaults to now

    Returns:
        str: decimal code, left-padded with zeros

    Raises:
        InvalidSecret: if the secret is empty or decodes to no bytes
        ValueError:    digits outside 6..8 or a period that is not positive
    """
    check_code_params(digits, period)
    if not secret:
        raise InvalidSecret()
    key = base32.decode(secret)
    if not key:
        raise InvalidSecret()

    if unix_time is None:
        unix_time = _now()
    return hotp(key, time_step(unix_time, period), digits, HashAlgorithm.parse(algorithm))


def remaining_seconds(period: int = DEFAULT_PERIOD, unix_time: int | None = None) -> int:
    """Seconds until the current code expires, in ``1..period``."""
    if period <= 0:
        raise ValueError("period must be a positive number of seconds")
    if unix_time is None:
        unix_time = _now()
    return period - (int(unix_time) % period)


def code_for(account: Account, unix_time: int | None = None) -> str:
    """Current code of *account*."""
    return generate_code(account.secret, account.algorithm, account.digits, account.period, unix_time)


def is_valid_secret(secret: str | None) -> bool:
    """True when *secret* can be used to generate codes."""
    return base32.is_valid(secret)


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """Fresh random Base32 secret for a new account."""
    return pyotp.random_base32(length=length)
