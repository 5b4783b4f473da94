from __future__ import annotations

import base64

import pytest

from otpvault.models import Account
from otpvault.session import SyncSession
from otpvault.storage import ArgonParams

# RFC 6238 Appendix B seeds
SEED_SHA1 = b"12345678901234567890"
SEED_SHA256 = b"12345678901234567890123456789012"
SEED_SHA512 = b"1234567890123456789012345678901234567890123456789012345678901234"

EMAIL = "alice@example.com"
PASSWORD = "correct horse battery staple"


def b32(raw: bytes) -> str:
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def make_account(account_id: str, updated_at: int = 0, **overrides: object) -> Account:
    fields = {
        "id": account_id,
        "issuer": "Example",
        "account_name": f"user-{account_id}",
        "secret": "JBSWY3DPEHPK3PXP",
        "created_at": 1,
        "updated_at": updated_at,
    }
    fields.update(overrides)
    return Account(**fields)


@pytest.fixture()
def fast_argon() -> ArgonParams:
    return ArgonParams(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture(scope="session")
def _derived_session() -> SyncSession:
    session = SyncSession()
    session.derive(EMAIL, PASSWORD)
    return session


@pytest.fixture()
def session(_derived_session: SyncSession) -> SyncSession:
    # fresh session object sharing the already derived (immutable) key
    fresh = SyncSession()
    fresh._key = _derived_session.key
    return fresh
