"""
Tests for environment-driven decoder settings (config.env, config.settings).
"""

from __future__ import annotations

import pytest

from instruction_decoder.config import DecoderSettings, Verbosity, get_settings
from instruction_decoder.config import env

_VARS = (env.VERBOSITY_ENV, env.LOG_EVENTS_ENV, env.SHOW_RAW_LOGS_ENV, env.MAX_DATA_BYTES_ENV)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = get_settings()
    assert settings == DecoderSettings()
    assert settings.verbosity is Verbosity.CONDENSED
    assert settings.log_events is False
    assert settings.show_raw_logs is True
    assert settings.max_data_bytes == 256


@pytest.mark.parametrize(
    "raw, expected",
    [("FULL", Verbosity.FULL), ("quiet", Verbosity.QUIET), ("verbose", Verbosity.FULL), ("bogus", Verbosity.CONDENSED)],
)
def test_verbosity_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv(env.VERBOSITY_ENV, raw)
    assert get_settings().verbosity is expected


def test_bool_switches(monkeypatch):
    monkeypatch.setenv(env.LOG_EVENTS_ENV, "yes")
    monkeypatch.setenv(env.SHOW_RAW_LOGS_ENV, "off")
    settings = get_settings()
    assert settings.log_events is True
    assert settings.show_raw_logs is False


@pytest.mark.parametrize("raw, expected", [("64", 64), ("0", 0), ("-1", 256), ("abc", 256)])
def test_max_data_bytes(monkeypatch, raw, expected):
    monkeypatch.setenv(env.MAX_DATA_BYTES_ENV, raw)
    assert get_settings().max_data_bytes == expected


def test_debug_settings():
    settings = DecoderSettings.debug()
    assert settings.verbosity is Verbosity.FULL
    assert settings.log_events is True
    assert settings.max_data_bytes == 0
