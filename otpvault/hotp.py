"""
HMAC (RFC 2104) and HOTP (RFC 4226) primitives.

The hash functions come from :mod:`hashlib`; the HMAC construction on top
of them is written out so that it can be checked byte for byte against the
RFC 4231 test vectors.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import struct

from .models import HashAlgorithm

IPAD = 0x36
OPAD = 0x5C

_IPAD_TABLE = bytes(b ^ IPAD for b in range(256))
_OPAD_TABLE = bytes(b ^ OPAD for b in range(256))


def hmac_digest(algorithm: "HashAlgorithm | str", key: bytes, message: bytes) -> bytes:
    """
    ``H((K ^ opad) || H((K ^ ipad) || message))``.

    Args:
        algorithm: SHA1, SHA256 or SHA512
        key:       raw key bytes of any length
        message:   data to authenticate

    Returns:
        bytes: the MAC, as long as the hash digest
    """
    algo = HashAlgorithm.parse(algorithm)
    block_size = algo.block_size

    if len(key) > block_size:
        key = algo.factory(key).digest()
    key = key.ljust(block_size, b"\x00")

    inner = algo.factory(key.translate(_IPAD_TABLE))
    inner.update(message)
    outer = algo.factory(key.translate(_OPAD_TABLE))
    outer.update(inner.digest())
    return outer.digest()


def counter_bytes(counter: int) -> bytes:
    """8-byte big-endian counter, as RFC 4226 requires."""
    # counters beyond 32 bits must not be truncated
    return struct.pack(">Q", counter)


def dynamic_truncate(digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    The low nibble of the last byte selects four bytes; the top bit of the
    first one is cleared, giving a 31-bit unsigned value.
    """
    offset = digest[-1] & 0x0F
    return (
        ((digest[offset] & 0x7F) << 24)
        | ((digest[offset + 1] & 0xFF) << 16)
        | ((digest[offset + 2] & 0xFF) << 8)
        | (digest[offset + 3] & 0xFF)
    )


def hotp(key: bytes, counter: int, digits: int = 6, algorithm: "HashAlgorithm | str" = HashAlgorithm.SHA1) -> str:
    """HOTP code for raw *key* and *counter*, zero-padded to *digits*."""
    digest = hmac_digest(algorithm, key, counter_bytes(counter))
    value = dynamic_truncate(digest) % (10 ** digits)
    return str(value).zfill(digits)
