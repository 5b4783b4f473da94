from __future__ import annotations

import base64
import hashlib
import json
import os

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from otpvault import cipher
from otpvault.errors import DecryptionFailed, IncompatibleVersion, KeyNotDerived
from otpvault.kdf import DerivedKey, derive_key, salt_for
from otpvault.session import SyncSession

from .conftest import EMAIL, PASSWORD, make_account


# --------------------------------------------------------------------------- #
# Key derivation
# --------------------------------------------------------------------------- #

def test_salt_string() -> None:
    assert salt_for("a@b.c") == b"OmniOTP_Sync_Salt_v1:a@b.c"


def test_derive_key_matches_pbkdf2_reference(session: SyncSession) -> None:
    expected = hashlib.pbkdf2_hmac(
        "sha256", PASSWORD.encode(), f"OmniOTP_Sync_Salt_v1:{EMAIL}".encode(), 100_000, 32
    )
    assert session.key.material == expected


def test_derive_key_is_deterministic(session: SyncSession) -> None:
    again = derive_key(PASSWORD, EMAIL)
    assert len(again) == 32
    assert again == session.key.material


def test_email_changes_key(session: SyncSession) -> None:
    assert derive_key(PASSWORD, "mallory@example.com") != session.key.material


def test_derived_key_hides_material() -> None:
    key = DerivedKey(b"\x01" * 32, "a@b.c")
    assert "\\x01" not in repr(key)
    assert len(key.fingerprint) == 16
    with pytest.raises(ValueError):
        DerivedKey(b"short", "a@b.c")


# --------------------------------------------------------------------------- #
# Cipher
# --------------------------------------------------------------------------- #

def test_round_trip() -> None:
    key = os.urandom(32)
    for plaintext in (b"", b"x", "unicode ✓".encode(), os.urandom(1000)):
        assert cipher.decrypt(cipher.encrypt(plaintext, key), key) == plaintext


def test_wire_format() -> None:
    key = os.urandom(32)
    raw = base64.b64decode(cipher.encrypt(b"hello", key))
    # iv + ciphertext + 16-byte tag
    assert len(raw) == 12 + 5 + 16


def test_fresh_iv_per_call() -> None:
    key = os.urandom(32)
    assert cipher.encrypt(b"same", key) != cipher.encrypt(b"same", key)


def test_decrypts_blob_from_other_client() -> None:
    key = os.urandom(32)
    iv = os.urandom(12)
    blob = base64.b64encode(iv + AESGCM(key).encrypt(iv, b'{"a":1}', None)).decode()
    assert cipher.decrypt(blob, key) == b'{"a":1}'


def test_wrong_key_fails() -> None:
    blob = cipher.encrypt(b"secret", os.urandom(32))
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(blob, os.urandom(32))


def test_flipped_tag_byte_fails() -> None:
    key = os.urandom(32)
    raw = bytearray(base64.b64decode(cipher.encrypt(b"secret", key)))
    raw[-1] ^= 0x01
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(base64.b64encode(bytes(raw)).decode(), key)


@pytest.mark.parametrize("blob", ["", base64.b64encode(b"short").decode(), "not base64!!", "@@@@"])
def test_malformed_blob_fails(blob: str) -> None:
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(blob, os.urandom(32))


def test_blob_shorter_than_nonce_and_tag_fails() -> None:
    blob = base64.b64encode(os.urandom(12 + 15)).decode()
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(blob, os.urandom(32))


def test_missing_key_fails_loudly() -> None:
    with pytest.raises(KeyNotDerived):
        cipher.encrypt(b"x", None)
    with pytest.raises(KeyNotDerived):
        cipher.decrypt("AAAA", None)


def test_accounts_round_trip(session: SyncSession) -> None:
    accounts = [make_account("a", 100), make_account("b", 200, digits=8)]
    blob = cipher.encrypt_accounts(accounts, session.key, timestamp=5)
    assert cipher.decrypt_accounts(blob, session.key) == accounts

    envelope = cipher.decrypt_envelope(blob, session.key)
    assert envelope.email == EMAIL
    assert envelope.timestamp == 5
    assert envelope.version == 2


def test_version_one_vault_is_rejected(session: SyncSession) -> None:
    payload = json.dumps({"version": 1, "accounts": [], "timestamp": 0})
    blob = cipher.encrypt(payload, session.key)
    with pytest.raises(IncompatibleVersion):
        cipher.decrypt_accounts(blob, session.key)


def test_non_json_plaintext_is_decryption_failure(session: SyncSession) -> None:
    blob = cipher.encrypt(b"\xff\xfe not json", session.key)
    with pytest.raises(DecryptionFailed):
        cipher.decrypt_accounts(blob, session.key)


def test_non_list_accounts_is_decryption_failure(session: SyncSession) -> None:
    blob = cipher.encrypt(json.dumps({"version": 2, "accounts": "oops"}), session.key)
    with pytest.raises(DecryptionFailed):
        cipher.decrypt_accounts(blob, session.key)


def test_malformed_account_is_decryption_failure(session: SyncSession) -> None:
    blob = cipher.encrypt(json.dumps({"version": 2, "accounts": [{"issuer": "x"}]}), session.key)
    with pytest.raises(DecryptionFailed):
        cipher.decrypt_accounts(blob, session.key)


# --------------------------------------------------------------------------- #
# Session
# --------------------------------------------------------------------------- #

def test_session_lifecycle(session: SyncSession) -> None:
    assert session.is_ready
    assert session.email == EMAIL

    blob = session.encrypt_accounts([make_account("a", 1)])
    assert [a.id for a in session.decrypt_accounts(blob)] == ["a"]

    session.clear()
    assert not session.is_ready
    assert session.email is None
    with pytest.raises(KeyNotDerived):
        session.key
    with pytest.raises(KeyNotDerived):
        session.encrypt_accounts([])
    with pytest.raises(KeyNotDerived):
        session.decrypt_accounts(blob)


def test_new_session_is_not_ready() -> None:
    session = SyncSession()
    assert not session.is_ready
    with pytest.raises(KeyNotDerived):
        session.encrypt_accounts([])


def test_rederive_replaces_key(session: SyncSession) -> None:
    old = session.key
    new = session.derive("bob@example.com", PASSWORD)
    assert session.key is new
    assert new.material != old.material
    # the old value object is untouched
    assert old.email == EMAIL
