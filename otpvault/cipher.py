"""
Authenticated vault cipher – AES-256-GCM.

Wire format: ``base64( IV[12] || ciphertext || tag[16] )`` using the
standard base64 alphabet, byte-compatible with the mobile app and the
browser extension.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Iterable, List

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .config import IV_LENGTH, KEY_LENGTH, TAG_LENGTH
from .errors import DecryptionFailed, IncompatibleVersion, KeyNotDerived
from .kdf import DerivedKey
from .models import Account, VaultEnvelope, now_ms

logger = logging.getLogger(__name__)


def _key_bytes(key: "DerivedKey | bytes | None") -> bytes:
    if key is None:
        raise KeyNotDerived()
    material = key.material if isinstance(key, DerivedKey) else bytes(key)
    if len(material) != KEY_LENGTH:
        raise ValueError(f"AES-256 key must be {KEY_LENGTH} bytes")
    return material


def encrypt(plaintext: "bytes | str", key: "DerivedKey | bytes | None") -> str:
    """
    Encrypt *plaintext* with AES-GCM.

    A fresh 12-byte nonce is drawn from the OS CSPRNG on every call.

    Args:
        plaintext: data to protect (``str`` is encoded as UTF-8)
        key:       32-byte raw key or a :class:`DerivedKey`

    Returns:
        str: base64 string (nonce | ciphertext | tag)
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    aesgcm = AESGCM(_key_bytes(key))
    nonce = os.urandom(IV_LENGTH)
    ct = aesgcm.encrypt(nonce, plaintext, None)  # no associated data
    return base64.b64encode(nonce + ct).decode("ascii")


def decrypt(blob: str, key: "DerivedKey | bytes | None") -> bytes:
    """
    Decrypt a blob produced by :func:`encrypt`.

    Raises:
        DecryptionFailed: malformed base64, blob shorter than nonce plus tag,
            or tag mismatch.
            No partial plaintext is ever returned.
    """
    material = _key_bytes(key)
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DecryptionFailed("Malformed vault data.") from exc

    if len(raw) < IV_LENGTH + TAG_LENGTH:
        raise DecryptionFailed("Malformed vault data.")

    nonce, ct = raw[:IV_LENGTH], raw[IV_LENGTH:]
    try:
        return AESGCM(material).decrypt(nonce, ct, None)
    except InvalidTag as exc:
        raise DecryptionFailed() from exc


# --------------------------------------------------------------------------- #
# Account lists
# --------------------------------------------------------------------------- #

def encrypt_accounts(
    accounts: Iterable[Account],
    key: "DerivedKey | bytes | None",
    email: str | None = None,
    timestamp: int | None = None,
) -> str:
    """Wrap *accounts* in a version-2 envelope and encrypt it."""
    if email is None and isinstance(key, DerivedKey):
        email = key.email
    envelope = VaultEnvelope(
        accounts=list(accounts),
        timestamp=now_ms() if timestamp is None else timestamp,
        email=email,
    )
    payload = json.dumps(envelope.to_dict(), separators=(",", ":"))
    logger.debug("Encrypting vault with %d account(s)", len(envelope.accounts))
    return encrypt(payload, key)


def decrypt_envelope(blob: str, key: "DerivedKey | bytes | None") -> VaultEnvelope:
    """Decrypt and parse a vault envelope, enforcing version 2."""
    plaintext = decrypt(blob, key)
    try:
        data = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecryptionFailed("Malformed vault data.") from exc

    try:
        return VaultEnvelope.from_dict(data)
    except IncompatibleVersion:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise DecryptionFailed("Malformed vault data.") from exc


def decrypt_accounts(blob: str, key: "DerivedKey | bytes | None") -> List[Account]:
    """Decrypt a vault blob and return its accounts."""
    envelope = decrypt_envelope(blob, key)
    logger.debug("Decrypted vault with %d account(s)", len(envelope.accounts))
    return envelope.accounts
