"""
Data model – accounts and the sync vault envelope.

The main components:
    * :class:`HashAlgorithm` – closed set of HMAC hash functions.
    * :class:`Account` – one TOTP credential (value object).
    * :class:`VaultEnvelope` – plaintext shape of the encrypted sync payload.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import dataclasses
import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List

from . import base32
from .config import DEFAULT_DIGITS, DEFAULT_PERIOD, MAX_DIGITS, MIN_DIGITS, VAULT_VERSION
from .errors import IncompatibleVersion, InvalidSecret

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def check_code_params(digits: int, period: int) -> None:
    """Raise ValueError unless *digits* is in 6..8 and *period* is positive."""
    if not MIN_DIGITS <= digits <= MAX_DIGITS:
        raise ValueError(f"digits must be between {MIN_DIGITS} and {MAX_DIGITS}")
    if period <= 0:
        raise ValueError("period must be a positive number of seconds")


# --------------------------------------------------------------------------- #
# Hash algorithms
# --------------------------------------------------------------------------- #

class HashAlgorithm(str, Enum):
    """Hash functions usable for HMAC / TOTP."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def factory(self) -> Callable[..., Any]:
        return _HASH_FACTORIES[self]

    @property
    def digest_size(self) -> int:
        return self.factory().digest_size

    @property
    def block_size(self) -> int:
        return self.factory().block_size

    @classmethod
    def parse(cls, value: "str | HashAlgorithm | None") -> "HashAlgorithm":
        """
        Case-insensitive lookup; missing values mean SHA1.

        Unknown names (for instance the legacy ``MD5``) fall back to SHA1,
        the same way the other clients read them.
        """
        if isinstance(value, HashAlgorithm):
            return value
        if not value:
            return cls.SHA1
        name = str(value).strip().upper().replace("-", "")
        try:
            return cls(name)
        except ValueError:
            logger.warning("Unsupported hash algorithm %r, falling back to SHA1", value)
            return cls.SHA1


_HASH_FACTORIES = {
    HashAlgorithm.SHA1: hashlib.sha1,
    HashAlgorithm.SHA256: hashlib.sha256,
    HashAlgorithm.SHA512: hashlib.sha512,
}


# --------------------------------------------------------------------------- #
# Account
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Account:
    """
    One TOTP credential.

    Attributes
    ----------
    id : str
        Opaque unique id, immutable, used as the merge key.
    issuer : str
        Display name of the service (e.g. ``Google``).
    account_name : str
        Display name of the user at that service.
    secret : str
        Base32 secret, stored cleaned (uppercase, no separators).
    algorithm : HashAlgorithm
        HMAC hash (default: SHA1).
    digits : int
        Code length (default: ``6``).
    period : int
        Time step in seconds (default: ``30``).
    created_at, updated_at : int
        Epoch milliseconds; ``updated_at`` decides merge conflicts.
    """
    id: str
    issuer: str
    account_name: str
    secret: str
    algorithm: HashAlgorithm = HashAlgorithm.SHA1
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD
    created_at: int = 0
    updated_at: int = 0

    @classmethod
    def create(
        cls,
        issuer: str,
        account_name: str,
        secret: str,
        algorithm: "str | HashAlgorithm | None" = None,
        digits: int = DEFAULT_DIGITS,
        period: int = DEFAULT_PERIOD,
        *,
        account_id: str | None = None,
        timestamp: int | None = None,
    ) -> "Account":
        """Build a new account with a fresh id, validating the secret."""
        cleaned = base32.clean(secret or "")
        if not base32.decode(cleaned):
            raise InvalidSecret()
        digits, period = int(digits), int(period)
        check_code_params(digits, period)
        stamp = now_ms() if timestamp is None else timestamp
        return cls(
            id=account_id or str(uuid.uuid4()),
            issuer=(issuer or "").strip(),
            account_name=(account_name or "").strip(),
            secret=cleaned,
            algorithm=HashAlgorithm.parse(algorithm),
            digits=digits,
            period=period,
            created_at=stamp,
            updated_at=stamp,
        )

    def updated(self, timestamp: int | None = None, **changes: Any) -> "Account":
        """
        Return a replacement record with *changes* applied and ``updated_at`` bumped.

        ``id`` and ``created_at`` cannot be changed; new ``digits`` or
        ``period`` values are checked like in :meth:`create`.
        """
        for frozen in ("id", "created_at", "updated_at"):
            if frozen in changes:
                raise TypeError(f"{frozen} cannot be changed")
        if "secret" in changes:
            cleaned = base32.clean(changes["secret"] or "")
            if not base32.decode(cleaned):
                raise InvalidSecret()
            changes["secret"] = cleaned
        if "algorithm" in changes:
            changes["algorithm"] = HashAlgorithm.parse(changes["algorithm"])
        if "digits" in changes or "period" in changes:
            changes["digits"] = int(changes.get("digits", self.digits))
            changes["period"] = int(changes.get("period", self.period))
            check_code_params(changes["digits"], changes["period"])
        stamp = now_ms() if timestamp is None else timestamp
        return dataclasses.replace(self, updated_at=max(stamp, self.updated_at + 1), **changes)

    def to_dict(self) -> dict[str, object]:
        """Serialise to the wire format shared with the other clients."""
        return {
            "id": self.id,
            "issuer": self.issuer,
            "accountName": self.account_name,
            "secret": self.secret,
            "algorithm": self.algorithm.value,
            "digits": self.digits,
            "period": self.period,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Account":
        """
        Deserialise a wire dictionary back into an :class:`Account`.

        The mobile client does not write ``createdAt``/``updatedAt``; missing
        timestamps become ``0`` so that any dated copy wins a merge.
        """
        return Account(
            id=str(data["id"]),
            issuer=data.get("issuer") or "",
            account_name=data.get("accountName") or "",
            secret=base32.clean(data["secret"]),
            algorithm=HashAlgorithm.parse(data.get("algorithm")),
            digits=int(data.get("digits") or DEFAULT_DIGITS),
            period=int(data.get("period") or DEFAULT_PERIOD),
            created_at=int(data.get("createdAt") or 0),
            updated_at=int(data.get("updatedAt") or 0),
        )


# --------------------------------------------------------------------------- #
# Vault envelope
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class VaultEnvelope:
    """Plaintext of the encrypted sync payload."""

    accounts: List[Account] = field(default_factory=list)
    timestamp: int = 0
    email: str | None = None
    version: int = VAULT_VERSION

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "accounts": [a.to_dict() for a in self.accounts],
            "timestamp": self.timestamp,
            "email": self.email,
        }

    @staticmethod
    def from_dict(data: object) -> "VaultEnvelope":
        """Parse an envelope; the version is checked before anything else is read."""
        version = data.get("version") if isinstance(data, dict) else None
        # exact int only: True and 2.0 are not version 2
        if type(version) is not int or version != VAULT_VERSION:
            raise IncompatibleVersion(version, VAULT_VERSION)

        raw_accounts = data.get("accounts") or []
        if not isinstance(raw_accounts, list):
            raise TypeError("accounts must be a list")
        return VaultEnvelope(
            accounts=[Account.from_dict(a) for a in raw_accounts],
            timestamp=int(data.get("timestamp") or 0),
            email=data.get("email"),
            version=version,
        )
