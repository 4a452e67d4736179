"""Tests for CLI functionality."""

from __future__ import annotations

import base64
import json

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from fogo_cast.cli import main

PKCS8_HEADER = bytes.fromhex("302e020100300506032b657004220420")
SEED = bytes(range(32))


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def test_cli_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--help"]) == 0

    captured = capsys.readouterr()
    assert "usage:" in captured.out.lower()
    assert "convert" in captured.out


def test_cli_requires_command() -> None:
    assert main([]) == 1


def test_convert_derives_public_key(capsys: pytest.CaptureFixture[str]) -> None:
    result = main(
        [
            "convert",
            "--private-key-b64",
            _b64(PKCS8_HEADER + SEED),
            "--public-key-b64",
            _b64(bytes(32)),
        ]
    )

    assert result == 0
    payload = json.loads(capsys.readouterr().out)
    expected = Keypair.from_seed(SEED)
    assert payload["public_key"] == str(expected.pubkey())
    assert payload["session_key"] == str(expected)
    assert payload["keypair_length"] == 64
    assert payload["derivation"] == "reseed"


def test_convert_can_trust_public_key(capsys: pytest.CaptureFixture[str]) -> None:
    supplied = bytes([1]) * 32
    result = main(
        [
            "convert",
            "--private-key-b64",
            _b64(PKCS8_HEADER + SEED),
            "--public-key-b64",
            _b64(supplied),
            "--trust-public-key",
        ]
    )

    assert result == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["derivation"] == "concatenate"
    assert payload["public_key"] == str(Pubkey(supplied))


def test_convert_rejects_wrong_length(capsys: pytest.CaptureFixture[str]) -> None:
    result = main(["convert", "--private-key-b64", _b64(bytes(40))])

    assert result == 1
    assert "48 bytes" in capsys.readouterr().err


def test_run_reports_missing_settings(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    for name in ("FOGO_RPC_URL", "FOGO_SESSION_KEY", "FOGO_TX_TEMPLATE"):
        monkeypatch.delenv(name, raising=False)

    assert main(["run", "--max-casts", "1"]) == 1
    assert "FOGO_SESSION_KEY" in capsys.readouterr().err


def test_run_rejects_invalid_session_key(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("FOGO_RPC_URL", "https://rpc.test")
    monkeypatch.setenv("FOGO_PAYMASTER_URL", "https://pay.test")
    monkeypatch.setenv("FOGO_CAPABILITY_URL", "https://cap.test")
    monkeypatch.setenv("FOGO_SESSION_KEY", "0000")
    monkeypatch.setenv("FOGO_OWNER", str(Keypair.from_seed(SEED).pubkey()))
    monkeypatch.setenv("FOGO_TX_TEMPLATE", "AA==")

    assert main(["run"]) == 1
    assert "Invalid settings" in capsys.readouterr().err
