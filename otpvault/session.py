"""
Sync session – holds the derived vault key for one signed-in user.

The key lives only in process memory. It is replaced as a whole on
re-derivation and dropped on :meth:`SyncSession.clear`; it is never mutated
in place, so concurrent readers always see either the old or the new key.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from . import cipher
from .errors import KeyNotDerived
from .kdf import DerivedKey
from .models import Account

logger = logging.getLogger(__name__)


class SyncSession:
    """Narrow session interface: ``derive`` / ``clear`` / ``is_ready``."""

    def __init__(self) -> None:
        self._key: DerivedKey | None = None

    def derive(self, email: str, password: str) -> DerivedKey:
        """
        Derive the vault key for *email*/*password* and keep it for the session.

        PBKDF2 with 100 000 iterations is deliberately slow; callers on an
        event loop should run this in a worker thread.
        """
        key = DerivedKey.derive(password, email)
        self._key = key
        logger.info("Vault key derived (fingerprint %s)", key.fingerprint)
        return key

    def clear(self) -> None:
        """Forget the key (sign-out or credential change)."""
        if self._key is not None:
            logger.info("Vault key cleared")
        self._key = None

    @property
    def is_ready(self) -> bool:
        return self._key is not None

    @property
    def key(self) -> DerivedKey:
        key = self._key
        if key is None:
            raise KeyNotDerived()
        return key

    @property
    def email(self) -> str | None:
        key = self._key
        return key.email if key is not None else None

    def encrypt_accounts(self, accounts: Iterable[Account]) -> str:
        return cipher.encrypt_accounts(accounts, self.key)

    def decrypt_accounts(self, blob: str) -> List[Account]:
        return cipher.decrypt_accounts(blob, self.key)
