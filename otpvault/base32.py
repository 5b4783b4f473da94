"""
RFC 4648 Base32 codec for TOTP secrets.

Decoding is deliberately lenient: characters outside the alphabet are
skipped instead of rejected, so secrets pasted with spaces, dashes, padding
or other formatting noise still decode to the same key on every client.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import logging
import re

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_VALUES = {ch: idx for idx, ch in enumerate(ALPHABET)}
_NOT_ALPHABET = re.compile(r"[^A-Z2-7]")
_SEPARATORS = frozenset(" \t\r\n-=")
_GROUP_SIZE = 8

logger = logging.getLogger(__name__)


def clean(text: str) -> str:
    """Uppercase *text* and strip every character outside ``[A-Z2-7]``."""
    return _NOT_ALPHABET.sub("", text.upper())


def normalize(text: str) -> str:
    """
    Display form of a secret: cleaned and grouped in blocks of eight.

    >>> normalize("jbsw y3dp-ehpk3pxp")
    'JBSWY3DP EHPK3PXP'
    """
    cleaned = clean(text)
    groups = [cleaned[i:i + _GROUP_SIZE] for i in range(0, len(cleaned), _GROUP_SIZE)]
    return " ".join(groups)


def decode(text: str) -> bytes:
    """
    Decode Base32 *text* to raw bytes.

    Case-insensitive, padding is optional and unknown characters are
    dropped. Leftover bits that do not fill a whole byte are discarded.
    """
    out = bytearray()
    buffer = 0
    bits = 0
    skipped = 0

    for ch in text.upper():
        value = _VALUES.get(ch)
        if value is None:
            if ch not in _SEPARATORS:
                skipped += 1
            continue

        buffer = ((buffer << 5) | value) & 0xFFFF
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)

    if skipped:
        # never log the secret itself, only how much noise was removed
        logger.warning("Skipped %d character(s) outside the Base32 alphabet", skipped)
    return bytes(out)


def encode(data: bytes) -> str:
    """Encode *data* as unpadded uppercase Base32."""
    out = []
    buffer = 0
    bits = 0

    for byte in data:
        buffer = ((buffer << 8) | byte) & 0xFFFF
        bits += 8
        while bits >= 5:
            bits -= 5
            out.append(ALPHABET[(buffer >> bits) & 0x1F])

    if bits:
        out.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])
    return "".join(out)


def is_valid(text: str | None) -> bool:
    """True when *text* decodes to at least one byte."""
    if not text:
        return False
    return len(decode(clean(text))) > 0
