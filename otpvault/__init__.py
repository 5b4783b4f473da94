"""
otpvault – TOTP authenticator core with an encrypted, syncable vault.

The main components:
    * :mod:`otpvault.totp` – RFC 6238 code generation.
    * :mod:`otpvault.uri` – otpauth:// import and export.
    * :mod:`otpvault.session` / :mod:`otpvault.cipher` – PBKDF2 → AES-256-GCM vault.
    * :mod:`otpvault.merge` – conflict resolution between devices.
    * :mod:`otpvault.manager` / :mod:`otpvault.storage` – local account collection.
    * :mod:`otpvault.sync` – push / pull / two-way sync.

install: pip install otpvault

-----------------------------------------------------------------------------------

Version     : 1.0.0
License     : MIT License (Modified: Non-Commercial Use Only)
"""

from .errors import (
    AccountNotFound,
    DecryptionFailed,
    IncompatibleVersion,
    InvalidSecret,
    InvalidUri,
    KeyNotDerived,
    OtpVaultError,
    SyncError,
)
from .kdf import DerivedKey, derive_key
from .manager import AccountManager
from .merge import merge
from .models import Account, HashAlgorithm, VaultEnvelope
from .session import SyncSession
from .totp import generate_code, remaining_seconds

__version__ = "1.0.0"

__all__ = [
    "Account",
    "AccountManager",
    "AccountNotFound",
    "DecryptionFailed",
    "DerivedKey",
    "HashAlgorithm",
    "IncompatibleVersion",
    "InvalidSecret",
    "InvalidUri",
    "KeyNotDerived",
    "OtpVaultError",
    "SyncError",
    "SyncSession",
    "VaultEnvelope",
    "derive_key",
    "generate_code",
    "merge",
    "remaining_seconds",
]
