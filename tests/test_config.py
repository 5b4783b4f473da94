from __future__ import annotations

import logging

import pytest

from otpvault import config


@pytest.fixture()
def basic_config_calls(monkeypatch: pytest.MonkeyPatch) -> list:
    calls: list = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    return calls


def test_configure_logging_by_name(basic_config_calls: list) -> None:
    config.configure_logging("debug")
    assert basic_config_calls == [{"level": logging.DEBUG, "format": config.LOG_FORMAT}]


def test_configure_logging_by_number(basic_config_calls: list) -> None:
    config.configure_logging(logging.WARNING)
    assert basic_config_calls[0]["level"] == logging.WARNING


def test_unknown_level_falls_back_to_info(basic_config_calls: list) -> None:
    config.configure_logging("chatty")
    assert basic_config_calls[0]["level"] == logging.INFO


def test_default_level_comes_from_config(basic_config_calls: list, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "LOG_LEVEL", "ERROR")
    config.configure_logging()
    assert basic_config_calls[0]["level"] == logging.ERROR


def test_sync_constants() -> None:
    assert config.SYNC_SALT == "OmniOTP_Sync_Salt_v1"
    assert config.PBKDF2_ITERATIONS == 100_000
    assert (config.KEY_LENGTH, config.IV_LENGTH, config.TAG_LENGTH) == (32, 12, 16)
    assert config.VAULT_VERSION == 2
