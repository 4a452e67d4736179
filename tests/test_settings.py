"""Tests for environment-backed settings."""

from __future__ import annotations

import math

import pytest

from fogo_cast.settings import FogoCastSettings, get_settings

_ALL_VARS = (
    "FOGO_RPC_URL",
    "FOGO_PAYMASTER_URL",
    "FOGO_CAPABILITY_URL",
    "FOGO_PROGRAM_ID",
    "FOGO_SESSION_KEY",
    "FOGO_OWNER",
    "FOGO_TX_TEMPLATE",
    "FOGO_CAST_INTERVAL_SECONDS",
    "FOGO_MAX_CASTS",
    "FOGO_POLL_ATTEMPTS",
    "FOGO_POLL_INTERVAL_SECONDS",
    "FOGO_REQUEST_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = get_settings()

    assert settings.program_id == "SEAyjT1FUx3JyXJnWt5NtjELDwuU9XsoZeZVPVvweU4"
    assert math.isclose(settings.cast_interval_seconds, 3.0)
    assert settings.max_casts == 0
    assert settings.poll_attempts == 8
    assert math.isclose(settings.poll_interval_seconds, 1.0)
    assert settings.session_key is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FOGO_RPC_URL", "https://rpc.test")
    monkeypatch.setenv("FOGO_SESSION_KEY", "secret-key")
    monkeypatch.setenv("FOGO_MAX_CASTS", " 25 ")
    monkeypatch.setenv("FOGO_POLL_INTERVAL_SECONDS", "0.5")

    settings = FogoCastSettings()

    assert settings.rpc_url == "https://rpc.test"
    assert settings.session_key is not None
    assert settings.session_key.get_secret_value() == "secret-key"
    assert "secret-key" not in repr(settings)
    assert settings.max_casts == 25
    assert math.isclose(settings.poll_interval_seconds, 0.5)


@pytest.mark.parametrize("value", ["abc", "-3", "1.5"])
def test_malformed_integers_fall_back(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("FOGO_POLL_ATTEMPTS", value)

    assert FogoCastSettings().poll_attempts == 8


@pytest.mark.parametrize("value", ["soon", "-1"])
def test_malformed_floats_fall_back(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("FOGO_CAST_INTERVAL_SECONDS", value)

    assert math.isclose(FogoCastSettings().cast_interval_seconds, 3.0)


def test_missing_reports_required_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FOGO_RPC_URL", "https://rpc.test")
    monkeypatch.setenv("FOGO_SESSION_KEY", "")

    missing = FogoCastSettings().missing()

    assert "FOGO_RPC_URL" not in missing
    assert "FOGO_SESSION_KEY" in missing
    assert "FOGO_TX_TEMPLATE" in missing
