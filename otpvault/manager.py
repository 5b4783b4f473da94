"""
Account manager – the collection a user works with, persisted on every change.

Accounts are value objects: an edit replaces the record and bumps its
``updated_at``; nothing is mutated in place.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List

from . import totp, uri
from .config import DEFAULT_DIGITS, DEFAULT_PERIOD
from .errors import AccountNotFound
from .merge import sort_for_display
from .models import Account, HashAlgorithm
from .storage import AccountStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeView:
    """An account together with its current code."""

    account: Account
    code: str
    remaining: int


class AccountManager:
    """Add, edit, delete and display accounts backed by an :class:`AccountStore`."""

    def __init__(self, store: AccountStore) -> None:
        self.store = store
        self._accounts: List[Account] = list(store.load())

    # --------------------------------------------------------------------- #
    # Reading
    # --------------------------------------------------------------------- #

    @property
    def accounts(self) -> List[Account]:
        """All accounts, sorted for display."""
        return sort_for_display(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def get(self, account_id: str) -> Account:
        for account in self._accounts:
            if account.id == account_id:
                return account
        raise AccountNotFound(account_id)

    def reload(self) -> None:
        self._accounts = list(self.store.load())

    def codes(self, unix_time: int | None = None) -> List[CodeView]:
        """Current code and seconds left for every account."""
        return [
            CodeView(
                account=account,
                code=totp.code_for(account, unix_time),
                remaining=totp.remaining_seconds(account.period, unix_time),
            )
            for account in self.accounts
        ]

    # --------------------------------------------------------------------- #
    # Writing
    # --------------------------------------------------------------------- #

    def _persist(self) -> None:
        self.store.save(self._accounts)

    def add(
        self,
        issuer: str,
        account_name: str,
        secret: str,
        algorithm: "str | HashAlgorithm | None" = None,
        digits: int = DEFAULT_DIGITS,
        period: int = DEFAULT_PERIOD,
    ) -> Account:
        """
        Create and store a new account.

        A code is generated once before storing, so a secret that cannot
        produce codes never reaches the store.
        """
        account = Account.create(issuer, account_name, secret, algorithm, digits, period)
        return self.add_account(account)

    def add_account(self, account: Account) -> Account:
        if any(a.id == account.id for a in self._accounts):
            raise ValueError(f"Duplicate account id {account.id!r}")
        totp.code_for(account)
        self._accounts.append(account)
        self._persist()
        logger.info("Added account %s", account.id)
        return account

    def import_uri(self, otpauth_uri: str) -> Account:
        """Import one ``otpauth://totp/`` URI (QR code contents)."""
        return self.add_account(uri.parse(otpauth_uri))

    def export_uris(self) -> List[str]:
        return [uri.serialize(a) for a in self.accounts]

    def update(self, account_id: str, **changes: Any) -> Account:
        """Replace an account with *changes* applied; ``updated_at`` is bumped."""
        current = self.get(account_id)
        replacement = current.updated(**changes)
        totp.code_for(replacement)
        self._accounts = [replacement if a.id == account_id else a for a in self._accounts]
        self._persist()
        logger.info("Updated account %s", account_id)
        return replacement

    def delete(self, account_id: str) -> None:
        self.get(account_id)
        self._accounts = [a for a in self._accounts if a.id != account_id]
        self._persist()
        logger.info("Deleted account %s", account_id)

    def delete_all(self) -> None:
        count = len(self._accounts)
        self._accounts = []
        self._persist()
        logger.info("Deleted all %d account(s)", count)

    def replace_all(self, accounts: Iterable[Account]) -> None:
        """Swap in a whole collection, e.g. the result of a sync merge."""
        self._accounts = list(accounts)
        self._persist()
