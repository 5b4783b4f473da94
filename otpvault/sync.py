"""
Cloud sync orchestration.

The remote document store only ever sees the encrypted blob. Transport,
authentication and addressing of the document belong to a
:class:`RemoteVault` implementation supplied by the caller.

Vault document fields: ``encryptedData``, ``userId``, ``updatedAt``,
``version`` (always 2).

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Protocol

from .config import VAULT_VERSION
from .errors import IncompatibleVersion, KeyNotDerived, SyncError
from .merge import merge, sort_for_display
from .models import Account
from .session import SyncSession
from .storage import AccountStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class VaultDocument:
    """One vault document per user in the remote store."""

    encrypted_data: str
    user_id: str
    updated_at: datetime = field(default_factory=_utcnow)
    version: int = VAULT_VERSION

    def to_dict(self) -> dict[str, object]:
        return {
            "encryptedData": self.encrypted_data,
            "userId": self.user_id,
            "updatedAt": self.updated_at.isoformat(),
            "version": self.version,
        }

    @staticmethod
    def from_dict(data: dict) -> "VaultDocument":
        version = data.get("version")
        # Firestore REST returns integers as strings
        if isinstance(version, str) and version.strip().isdecimal():
            version = int(version)
        if type(version) is not int or version != VAULT_VERSION:
            raise IncompatibleVersion(version, VAULT_VERSION)

        updated_at = data.get("updatedAt")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
        elif not isinstance(updated_at, datetime):
            updated_at = _utcnow()
        return VaultDocument(
            encrypted_data=data["encryptedData"],
            user_id=data.get("userId", ""),
            updated_at=updated_at,
            version=version,
        )


class RemoteVault(Protocol):
    """Document store holding one encrypted vault per user."""

    def fetch(self, user_id: str) -> VaultDocument | None:
        ...

    def store(self, document: VaultDocument) -> None:
        ...

    def delete(self, user_id: str) -> None:
        ...


class MemoryRemoteVault:
    """In-process remote vault; documents are kept in their wire form."""

    def __init__(self) -> None:
        self.documents: Dict[str, dict] = {}

    def fetch(self, user_id: str) -> VaultDocument | None:
        raw = self.documents.get(user_id)
        return VaultDocument.from_dict(raw) if raw is not None else None

    def store(self, document: VaultDocument) -> None:
        self.documents[document.user_id] = document.to_dict()

    def delete(self, user_id: str) -> None:
        self.documents.pop(user_id, None)


class SyncKind(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    BIDIRECTIONAL = "bidirectional"
    NONE = "none"


@dataclass(frozen=True)
class SyncResult:
    local_count: int
    remote_count: int
    synced_count: int
    kind: SyncKind


class SyncService:
    """
    Push, pull and two-way sync between the local store and the remote vault.

    Errors of the remote store are wrapped in :class:`SyncError`. Crypto
    errors (wrong password, incompatible vault, missing key) pass through
    unchanged so the caller can tell them apart.
    """

    def __init__(self, session: SyncSession, store: AccountStore, remote: RemoteVault) -> None:
        self.session = session
        self.store = store
        self.remote = remote

    # ────────────────────────────────────────────────────────
    # Remote access
    # ────────────────────────────────────────────────────────
    def _fetch(self, user_id: str) -> VaultDocument | None:
        try:
            return self.remote.fetch(user_id)
        except IncompatibleVersion:
            raise
        except Exception as exc:
            raise SyncError(f"Failed to fetch vault: {exc}") from exc

    def _store(self, document: VaultDocument) -> None:
        try:
            self.remote.store(document)
        except Exception as exc:
            raise SyncError(f"Failed to upload vault: {exc}") from exc

    # ────────────────────────────────────────────────────────
    # Operations
    # ────────────────────────────────────────────────────────
    def push(self, user_id: str, accounts: List[Account] | None = None) -> int:
        """
        Upload the local collection (or *accounts*) as the new remote vault.

        Uploading the local state is also how deletions reach other devices.
        """
        if accounts is None:
            accounts = self.store.load()
        blob = self.session.encrypt_accounts(accounts)
        self._store(VaultDocument(encrypted_data=blob, user_id=user_id))
        logger.info("Uploaded %d account(s) for user %s", len(accounts), user_id)
        return len(accounts)

    def pull(self, user_id: str) -> List[Account]:
        """Download and decrypt the remote vault; empty when there is none."""
        document = self._fetch(user_id)
        if document is None or not document.encrypted_data:
            logger.info("No remote vault for user %s", user_id)
            return []
        accounts = self.session.decrypt_accounts(document.encrypted_data)
        logger.info("Downloaded %d account(s) for user %s", len(accounts), user_id)
        return accounts

    def sync(self, user_id: str) -> SyncResult:
        """
        Two-way sync.

        Without remote data the local collection is uploaded. Otherwise both
        sides are merged (newer ``updated_at`` wins), the merge is uploaded
        and saved locally.
        """
        if not self.session.is_ready:
            raise KeyNotDerived()

        local = self.store.load()
        remote = self.pull(user_id)

        if not remote:
            if not local:
                return SyncResult(0, 0, 0, SyncKind.NONE)
            self.push(user_id, local)
            return SyncResult(len(local), 0, len(local), SyncKind.UPLOAD)

        merged = sort_for_display(merge(local, remote))
        self.push(user_id, merged)
        self.store.save(merged)

        kind = SyncKind.DOWNLOAD if not local else SyncKind.BIDIRECTIONAL
        return SyncResult(len(local), len(remote), len(merged), kind)

    def delete_remote(self, user_id: str) -> None:
        try:
            self.remote.delete(user_id)
        except Exception as exc:
            raise SyncError(f"Failed to delete vault: {exc}") from exc
