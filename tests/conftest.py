"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import inspect
import os
import sys
from typing import Any

import pytest

# Ensure src/ is on sys.path so tests exercise the src layout
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from solders.keypair import Keypair  # noqa: E402

from chain_fixtures import SESSION_SEED  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")


def pytest_pyfunc_call(pyfuncitem: Any) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
        }

        event_loop = asyncio.new_event_loop()
        try:
            event_loop.run_until_complete(pyfuncitem.obj(**call_kwargs))
        finally:
            event_loop.close()
        return True
    return None


@pytest.fixture
def session_keypair() -> Keypair:
    """Deterministic session key used to co-sign templates."""

    return Keypair.from_seed(SESSION_SEED)
