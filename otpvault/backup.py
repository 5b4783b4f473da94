"""
JSON backup export / import.

Export format (one entry per account)::

    {"version": 1,
     "header": {"slots": null, "params": null},
     "db": {"entries": [{"type": "totp", "uuid": ..., "name": ..., "issuer": ...,
                         "note": "", "favorite": false, "icon": null,
                         "info": {"secret", "algo", "digits", "period"},
                         "groups": []}]}}

A backup may additionally be sealed with a password (``{"salt", "data"}``).
Import also accepts a bare list of account dictionaries.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List

from .config import DEFAULT_DIGITS, DEFAULT_PERIOD
from .errors import DecryptionFailed
from .models import Account
from .storage import ArgonParams, is_sealed, seal, unseal

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1


def _entry_from_account(acct: Account) -> dict[str, object]:
    """Convert an :class:`Account` to a backup entry."""
    return {
        "type": "totp",
        "uuid": acct.id,
        "name": acct.account_name,
        "issuer": acct.issuer,
        "note": "",
        "favorite": False,
        "icon": None,
        "info": {
            "secret": acct.secret,
            "algo": acct.algorithm.value,
            "digits": acct.digits,
            "period": acct.period,
        },
        "groups": [],
    }


def _account_from_entry(entry: dict) -> Account:
    """Convert a backup entry back to an :class:`Account`."""
    info = entry.get("info") or {}
    return Account.create(
        issuer=entry.get("issuer") or "",
        account_name=entry.get("name") or "",
        secret=info.get("secret", ""),
        algorithm=info.get("algo"),
        digits=int(info.get("digits") or DEFAULT_DIGITS),
        period=int(info.get("period") or DEFAULT_PERIOD),
        account_id=entry.get("uuid") or None,
    )


def export_backup(accounts: Iterable[Account]) -> dict[str, object]:
    return {
        "version": BACKUP_VERSION,
        "header": {"slots": None, "params": None},
        "db": {"entries": [_entry_from_account(a) for a in accounts]},
    }


def import_backup(raw: object, password: str | None = None, params: ArgonParams | None = None) -> List[Account]:
    """
    Read accounts from a parsed backup.

    Parameters
    ----------
    raw : dict or list
        Export object, sealed export object, or a plain list of account dicts.
    password : str, optional
        Needed when *raw* is sealed.

    Raises
    ------
    DecryptionFailed
        Sealed backup without password, or wrong password.
    ValueError
        The data is not a backup.
    """
    if is_sealed(raw):
        if password is None:
            raise DecryptionFailed("This backup is encrypted; a password is required.")
        plaintext = unseal(raw, password, params)
        try:
            raw = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecryptionFailed("Damaged encrypted file.") from exc

    if isinstance(raw, dict) and isinstance(raw.get("db"), dict) and "entries" in raw["db"]:
        entries = raw["db"]["entries"] or []
        accounts = [_account_from_entry(e) for e in entries if e.get("type") == "totp"]
    elif isinstance(raw, list):
        accounts = [Account.from_dict(a) for a in raw]
    else:
        raise ValueError("The file does not contain an account list.")

    logger.info("Imported %d account(s) from backup", len(accounts))
    return accounts


def write_backup(
    path: Path | str,
    accounts: Iterable[Account],
    password: str | None = None,
    params: ArgonParams | None = None,
) -> None:
    """Write a backup file, sealed when *password* is given."""
    export_obj = export_backup(accounts)
    if password is not None:
        export_obj = seal(json.dumps(export_obj).encode("utf-8"), password, params=params)

    path = Path(path)
    tmp_path = path.with_suffix(".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(export_obj, f, indent=2)
    os.replace(tmp_path, path)


def read_backup(path: Path | str, password: str | None = None, params: ArgonParams | None = None) -> List[Account]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return import_backup(raw, password, params)
