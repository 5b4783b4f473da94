"""
Local persistence of the account collection.

* :class:`AccountStore` – the ``load()`` / ``save()`` capability the rest of
  the package depends on.
* :class:`MemoryStore` – keeps the collection in process memory.
* :class:`EncryptedFileStore` – JSON file protected by a master password
  (Argon2id → AES-GCM), written atomically.

The password envelope ``{"salt": ..., "data": ...}`` used by the file store
is also used for encrypted backups (:func:`seal` / :func:`unseal`).

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Protocol

from argon2.low_level import Type, hash_secret_raw

from . import cipher
from .config import (
    ARGON_MEMORY_COST,
    ARGON_PARALLELISM,
    ARGON_TIME_COST,
    DATA_FILE,
    KEY_LENGTH,
    SALT_SIZE,
)
from .errors import DecryptionFailed
from .models import Account

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    """Where the local account collection lives."""

    def load(self) -> List[Account]:
        ...

    def save(self, accounts: Iterable[Account]) -> None:
        ...


class MemoryStore:
    """Account store kept in memory (tests, ephemeral sessions)."""

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._accounts: List[Account] = list(accounts)

    def load(self) -> List[Account]:
        return list(self._accounts)

    def save(self, accounts: Iterable[Account]) -> None:
        self._accounts = list(accounts)


# --------------------------------------------------------------------------- #
# Password envelope
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class ArgonParams:
    """Argon2id cost parameters; the defaults come from :mod:`otpvault.config`."""

    time_cost: int = ARGON_TIME_COST
    memory_cost: int = ARGON_MEMORY_COST    # KiB
    parallelism: int = ARGON_PARALLELISM

    def derive_key(self, password: str, salt: bytes) -> bytes:
        """
        Derive a raw 256-bit key from password and salt.

        Args:
            password: master password
            salt:     random salt stored next to the ciphertext

        Returns:
            bytes: 32-byte raw key for AES-GCM
        """
        return hash_secret_raw(
            secret=password.encode("utf-8"),
            salt=salt,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=KEY_LENGTH,
            type=Type.ID,
        )


def seal(payload: bytes, password: str, salt: bytes | None = None, params: ArgonParams | None = None) -> dict[str, str]:
    """Encrypt *payload* under *password*; returns ``{"salt", "data"}``."""
    params = params or ArgonParams()
    if salt is None:
        salt = os.urandom(SALT_SIZE)
    key = params.derive_key(password, salt)
    return {
        "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
        "data": cipher.encrypt(payload, key),
    }


def unseal(obj: dict, password: str, params: ArgonParams | None = None) -> bytes:
    """
    Reverse of :func:`seal`.

    Raises:
        DecryptionFailed: wrong password or damaged envelope
    """
    params = params or ArgonParams()
    try:
        salt = base64.urlsafe_b64decode(obj["salt"])
        blob = obj["data"]
    except (KeyError, TypeError, binascii.Error, ValueError) as exc:
        raise DecryptionFailed("Damaged encrypted file.") from exc
    key = params.derive_key(password, salt)
    return cipher.decrypt(blob, key)


def is_sealed(obj: object) -> bool:
    return isinstance(obj, dict) and {"salt", "data"} <= obj.keys()


# --------------------------------------------------------------------------- #
# Encrypted file
# --------------------------------------------------------------------------- #

class EncryptedFileStore:
    """Reads and writes the encrypted account file."""

    def __init__(self, password: str, file_path: Path | str = DATA_FILE, params: ArgonParams | None = None) -> None:
        self.file = Path(file_path)
        self.params = params or ArgonParams()
        self._password = password
        self._salt: bytes | None = None

    def exists(self) -> bool:
        return self.file.exists()

    # ────────────────────────────────────────────────────────
    # 1. Loading
    # ────────────────────────────────────────────────────────
    def load(self) -> List[Account]:
        """
        Load the accounts from the encrypted file.

        The steps are:
          1. Missing file → empty collection.
          2. Read the JSON object holding ``salt`` and ``data``.
          3. Derive the key with Argon2 and decrypt with AES-GCM.
          4. Turn the plaintext JSON list into :class:`Account` objects.

        Raises
        ------
        DecryptionFailed
            Wrong master password or damaged file.
        """
        if not self.file.exists():
            return []

        with self.file.open(encoding="utf-8") as f:
            try:
                obj = json.load(f)
            except json.JSONDecodeError as exc:
                raise DecryptionFailed("Damaged encrypted file.") from exc

        plaintext = unseal(obj, self._password, self.params)
        try:
            raw_accounts = json.loads(plaintext.decode("utf-8"))
            accounts = [Account.from_dict(a) for a in raw_accounts]
        except (UnicodeDecodeError, KeyError, TypeError, ValueError) as exc:
            raise DecryptionFailed("Damaged encrypted file.") from exc

        self._salt = base64.urlsafe_b64decode(obj["salt"])
        logger.info("Loaded %d account(s) from %s", len(accounts), self.file)
        return accounts

    # ────────────────────────────────────────────────────────
    # 2. Saving
    # ────────────────────────────────────────────────────────
    def save(self, accounts: Iterable[Account]) -> None:
        """
        Encrypt the accounts and write them to the file.

        The salt read at load time is reused; a new file gets a fresh one.
        The file is replaced atomically.
        """
        if self._salt is None:
            self._salt = os.urandom(SALT_SIZE)

        accounts = list(accounts)
        plaintext = json.dumps([a.to_dict() for a in accounts]).encode("utf-8")
        data_obj = seal(plaintext, self._password, self._salt, self.params)

        self.file.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.file.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data_obj, f)
        os.replace(tmp_path, self.file)  # atomic rename
        logger.info("Saved %d account(s) to %s", len(accounts), self.file)

    def change_password(self, new_password: str) -> None:
        """Re-encrypt the file under *new_password* with a fresh salt."""
        accounts = self.load()
        self._password = new_password
        self._salt = os.urandom(SALT_SIZE)
        self.save(accounts)

    def clear(self) -> None:
        """Delete the file."""
        if self.file.exists():
            self.file.unlink()
        self._salt = None
