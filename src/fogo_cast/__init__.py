"""Fogo Cast - session key conversion and confirmed casting for Fogo Fishing."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "CastConfirmationLoop",
    "CastResult",
    "PlayerAccountState",
    "SessionCredential",
    "SessionStatistics",
    "assemble_cast_transaction",
    "convert_session_key",
    "decode_player_state",
    "run_session",
]

if TYPE_CHECKING:
    from .account import PlayerAccountState, decode_player_state
    from .assembler import assemble_cast_transaction
    from .confirmation import CastConfirmationLoop, CastResult
    from .keys import SessionCredential, convert_session_key
    from .session import SessionStatistics, run_session


def __getattr__(name: str) -> Any:
    """Lazily import submodules so the key tools load without the HTTP stack."""

    module_map = {
        "CastConfirmationLoop": "confirmation",
        "CastResult": "confirmation",
        "PlayerAccountState": "account",
        "SessionCredential": "keys",
        "SessionStatistics": "session",
        "assemble_cast_transaction": "assembler",
        "convert_session_key": "keys",
        "decode_player_state": "account",
        "run_session": "session",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
