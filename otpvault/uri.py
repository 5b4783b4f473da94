"""
otpauth:// URI parser and serializer (Key URI format).

Only ``otpauth://totp/`` URIs are accepted. A URI either imports completely
or raises :class:`~otpvault.errors.InvalidUri`; no partial account is
produced.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

from typing import Dict, Tuple
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from . import base32
from .config import (
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    MAX_DIGITS,
    MAX_PERIOD,
    MIN_DIGITS,
    MIN_PERIOD,
)
from .errors import InvalidUri
from .models import Account, HashAlgorithm

SCHEME = "otpauth"
TOTP_TYPE = "totp"


def _split_label(path: str) -> Tuple[str, str]:
    """Split the label into ``(issuer, account_name)``; the issuer is optional."""
    raw = path.lstrip("/")
    if ":" in raw:
        # literal separator: issuer and name are encoded independently
        issuer, _, name = raw.partition(":")
        return unquote(issuer).strip(), unquote(name).strip()

    # some exporters encode the separator itself as %3A
    label = unquote(raw)
    issuer, sep, name = label.partition(":")
    if not sep:
        return "", label.strip()
    return issuer.strip(), name.strip()


def _query(query: str) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        params[key.strip().lower()] = value
    return params


def _int_param(params: Dict[str, str], name: str, default: int, low: int, high: int) -> int:
    raw = params.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidUri(f"{name} must be an integer") from exc
    if not low <= value <= high:
        raise InvalidUri(f"{name} must be between {low} and {high}")
    return value


def parse(uri: str) -> Account:
    """
    Parse an ``otpauth://totp/issuer:account?secret=...`` URI.

    Returns:
        Account: a new account with a fresh id

    Raises:
        InvalidUri: wrong scheme or type, missing or invalid secret,
            digits outside 6..8 or period outside 15..60
    """
    if not isinstance(uri, str) or not uri.strip():
        raise InvalidUri("Empty URI")

    try:
        parts = urlsplit(uri.strip())
    except ValueError as exc:
        raise InvalidUri("Malformed URI") from exc

    if parts.scheme.lower() != SCHEME or parts.netloc.lower() != TOTP_TYPE:
        raise InvalidUri("Only otpauth://totp/ URIs are supported")

    label_issuer, account_name = _split_label(parts.path)
    params = _query(parts.query)

    secret = params.get("secret", "")
    if not secret.strip():
        raise InvalidUri("Missing required secret parameter")
    cleaned = base32.clean(secret)
    if not base32.decode(cleaned):
        raise InvalidUri("Invalid Base32 secret")

    issuer = params.get("issuer", "").strip() or label_issuer
    digits = _int_param(params, "digits", DEFAULT_DIGITS, MIN_DIGITS, MAX_DIGITS)
    period = _int_param(params, "period", DEFAULT_PERIOD, MIN_PERIOD, MAX_PERIOD)

    return Account.create(
        issuer=issuer,
        account_name=account_name,
        secret=cleaned,
        algorithm=HashAlgorithm.parse(params.get("algorithm")),
        digits=digits,
        period=period,
    )


def serialize(account: Account) -> str:
    """
    Build the otpauth:// URI for *account* (export / QR code).

    Parameters that equal their defaults are left out.
    """
    name = quote(account.account_name, safe="")
    if account.issuer:
        label = f"{quote(account.issuer, safe='')}:{name}"
    elif ":" in account.account_name:
        # empty issuer before a literal colon, so %3A is not read as a separator
        label = f":{name}"
    else:
        label = name

    query = [f"secret={account.secret}"]
    if account.issuer:
        query.append(f"issuer={quote(account.issuer, safe='')}")
    if account.algorithm is not HashAlgorithm.SHA1:
        query.append(f"algorithm={account.algorithm.value}")
    if account.digits != DEFAULT_DIGITS:
        query.append(f"digits={account.digits}")
    if account.period != DEFAULT_PERIOD:
        query.append(f"period={account.period}")

    return f"{SCHEME}://{TOTP_TYPE}/{label}?{'&'.join(query)}"


def is_valid_uri(uri: str) -> bool:
    """True when *uri* imports cleanly."""
    try:
        parse(uri)
    except InvalidUri:
        return False
    return True
