"""
Conflict resolution between two account collections.

Last writer wins per account id, ties keep the local copy. Deletions are
not tracked: an account removed on one device comes back if another device
still holds it and that copy is merged in. Uploading the local collection
after a delete (``SyncService.push``) is how removals reach the cloud.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from .models import Account


def merge(local: Iterable[Account], remote: Iterable[Account]) -> List[Account]:
    """
    Merge *remote* into *local* by id.

    A remote account is taken when it is unknown locally or when its
    ``updated_at`` is strictly newer. The order of the result is local
    accounts first, then remote-only ones; use :func:`sort_for_display`
    for a stable UI order.
    """
    by_id: Dict[str, Account] = {}
    for account in local:
        by_id[account.id] = account

    for account in remote:
        existing = by_id.get(account.id)
        if existing is None or account.updated_at > existing.updated_at:
            by_id[account.id] = account

    return list(by_id.values())


def sort_for_display(accounts: Iterable[Account]) -> List[Account]:
    """Sort by issuer, then account name, case-insensitively."""
    return sorted(accounts, key=lambda a: (a.issuer.casefold(), a.account_name.casefold()))
