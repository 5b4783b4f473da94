"""
Exception hierarchy for otpvault.

None of these exceptions carry secret material in their messages.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations


class OtpVaultError(Exception):
    """Base class for every error raised by otpvault."""


class InvalidSecret(OtpVaultError, ValueError):
    """The Base32 secret is empty or decodes to zero bytes."""

    def __init__(self, message: str = "Cannot generate a code for this account: invalid secret.") -> None:
        super().__init__(message)


class InvalidUri(OtpVaultError, ValueError):
    """An otpauth:// URI could not be imported."""


class DecryptionFailed(OtpVaultError):
    """Wrong password or corrupted data."""

    def __init__(self, message: str = "Wrong password or corrupted data.") -> None:
        super().__init__(message)


class IncompatibleVersion(OtpVaultError):
    """The decrypted vault was written with an unsupported format version."""

    def __init__(self, version: object, expected: int = 2) -> None:
        self.version = version
        self.expected = expected
        super().__init__(
            f"Incompatible vault version: {version!r}. Expected version {expected}. "
            "Re-sync from an up-to-date client."
        )


class KeyNotDerived(OtpVaultError):
    """A key-dependent operation was called before a session key exists."""

    def __init__(self, message: str = "Encryption key not derived. Call derive() first.") -> None:
        super().__init__(message)


class AccountNotFound(OtpVaultError, KeyError):
    """No account with the given id exists in the collection."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(account_id)

    def __str__(self) -> str:
        return f"No account with id {self.account_id!r}."


class SyncError(OtpVaultError):
    """The remote document store failed."""
