"""
Password-based key derivation for the sync vault.

PBKDF2-HMAC-SHA256 over the salt string ``"<SYNC_SALT>:<email>"``. The salt
constant, the colon and the iteration count are shared with every other
client; changing any of them makes existing vaults unreadable.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import KEY_LENGTH, PBKDF2_ITERATIONS, SYNC_SALT


def salt_for(email: str) -> bytes:
    """UTF-8 salt bytes for *email*."""
    return f"{SYNC_SALT}:{email}".encode("utf-8")


def derive_key(password: str, email: str) -> bytes:
    """
    Derive the 256-bit vault key from password and account email.

    Deterministic: the same inputs always give the same key.

    Args:
        password: the user's sign-in password
        email:    the user's sign-in email (part of the salt)

    Returns:
        bytes: 32-byte raw key for AES-GCM
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt_for(email),
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


@dataclass(frozen=True)
class DerivedKey:
    """Session key material together with the email it was derived for."""

    material: bytes = field(repr=False)
    email: str

    def __post_init__(self) -> None:
        if len(self.material) != KEY_LENGTH:
            raise ValueError(f"vault key must be {KEY_LENGTH} bytes")

    @classmethod
    def derive(cls, password: str, email: str) -> "DerivedKey":
        return cls(derive_key(password, email), email)

    @property
    def fingerprint(self) -> str:
        """Short non-reversible tag for diagnostics, never the key itself."""
        return hashlib.sha256(self.material).hexdigest()[:16]
