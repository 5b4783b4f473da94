from __future__ import annotations

import logging

import pytest

from otpvault.errors import IncompatibleVersion, InvalidSecret
from otpvault.models import Account, HashAlgorithm, VaultEnvelope


def test_hash_algorithm_parse() -> None:
    assert HashAlgorithm.parse("sha256") is HashAlgorithm.SHA256
    assert HashAlgorithm.parse("SHA-512") is HashAlgorithm.SHA512
    assert HashAlgorithm.parse(None) is HashAlgorithm.SHA1
    assert HashAlgorithm.parse("") is HashAlgorithm.SHA1
    assert HashAlgorithm.parse(HashAlgorithm.SHA256) is HashAlgorithm.SHA256


def test_unknown_algorithm_falls_back_to_sha1(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="otpvault.models"):
        assert HashAlgorithm.parse("MD5") is HashAlgorithm.SHA1
    assert "MD5" in caplog.text


def test_create_cleans_secret_and_stamps() -> None:
    account = Account.create("Google", " alice@example.com ", "jbsw y3dp-ehpk 3pxp", "sha256", timestamp=1234)
    assert account.secret == "JBSWY3DPEHPK3PXP"
    assert account.account_name == "alice@example.com"
    assert account.algorithm is HashAlgorithm.SHA256
    assert account.created_at == account.updated_at == 1234
    assert account.id


def test_create_generates_unique_ids() -> None:
    a = Account.create("X", "a", "JBSWY3DP")
    b = Account.create("X", "a", "JBSWY3DP")
    assert a.id != b.id


@pytest.mark.parametrize("secret", ["", "   ", "0189", "A"])
def test_create_rejects_bad_secret(secret: str) -> None:
    with pytest.raises(InvalidSecret):
        Account.create("X", "a", secret)


def test_updated_replaces_and_bumps() -> None:
    account = Account.create("Old", "a", "JBSWY3DP", timestamp=1000)
    renamed = account.updated(issuer="New", timestamp=2000)
    assert renamed.issuer == "New"
    assert renamed.updated_at == 2000
    assert renamed.id == account.id
    assert renamed.created_at == 1000
    assert account.issuer == "Old"


def test_updated_never_goes_back_in_time() -> None:
    account = Account.create("X", "a", "JBSWY3DP", timestamp=5000)
    assert account.updated(issuer="Y", timestamp=10).updated_at == 5001


def test_updated_protects_identity() -> None:
    account = Account.create("X", "a", "JBSWY3DP")
    with pytest.raises(TypeError):
        account.updated(id="other")
    with pytest.raises(InvalidSecret):
        account.updated(secret="")


def test_dict_round_trip() -> None:
    account = Account.create("Acme", "bob", "JBSWY3DPEHPK3PXP", "SHA512", 8, 60, timestamp=42)
    data = account.to_dict()
    assert data["accountName"] == "bob"
    assert data["algorithm"] == "SHA512"
    assert data["updatedAt"] == 42
    assert Account.from_dict(data) == account


def test_from_dict_without_timestamps() -> None:
    data = {"id": "abc", "issuer": "Acme", "accountName": "bob", "secret": "JBSWY3DP"}
    account = Account.from_dict(data)
    assert account.created_at == account.updated_at == 0
    assert account.digits == 6
    assert account.period == 30
    assert account.algorithm is HashAlgorithm.SHA1


def test_envelope_round_trip() -> None:
    account = Account.create("Acme", "bob", "JBSWY3DP", timestamp=1)
    envelope = VaultEnvelope(accounts=[account], timestamp=99, email="bob@example.com")
    data = envelope.to_dict()
    assert data["version"] == 2
    assert VaultEnvelope.from_dict(data) == envelope


@pytest.mark.parametrize("payload", [
    {"version": 1, "accounts": []},
    {"version": 3, "accounts": []},
    {"version": "2", "accounts": []},
    {"version": True, "accounts": []},
    {"version": 2.0, "accounts": []},
    {"accounts": []},
    [],
    "version 2",
])
def test_envelope_version_gate(payload: object) -> None:
    with pytest.raises(IncompatibleVersion):
        VaultEnvelope.from_dict(payload)


def test_version_is_checked_before_accounts() -> None:
    # a broken account list must not be read when the version is wrong
    with pytest.raises(IncompatibleVersion) as info:
        VaultEnvelope.from_dict({"version": 1, "accounts": [{"no": "id"}]})
    assert info.value.version == 1


def test_accounts_must_be_a_list() -> None:
    with pytest.raises(TypeError):
        VaultEnvelope.from_dict({"version": 2, "accounts": "oops"})


@pytest.mark.parametrize("digits,period", [(-1, 30), (0, 30), (5, 30), (9, 30), (12, 30), (6, 0), (6, -30)])
def test_create_rejects_bad_code_params(digits: int, period: int) -> None:
    with pytest.raises(ValueError):
        Account.create("X", "a", "JBSWY3DP", digits=digits, period=period)


def test_create_accepts_loose_manual_period() -> None:
    # only URI import enforces 15..60
    assert Account.create("X", "a", "JBSWY3DP", period=90).period == 90


def test_updated_rejects_bad_code_params() -> None:
    account = Account.create("X", "a", "JBSWY3DP")
    with pytest.raises(ValueError):
        account.updated(digits=12)
    with pytest.raises(ValueError):
        account.updated(period=0)
    assert account.updated(digits="8").digits == 8
