"""Minimal JSON-RPC client for account reads and the chain tip."""

from __future__ import annotations

import base64
import binascii
import itertools
import logging

import httpx
from solders.hash import Hash
from solders.pubkey import Pubkey

from fogo_cast.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpCollaborator
from fogo_cast.errors import CollaboratorError

LOGGER = logging.getLogger(__name__)


class SolanaRpcClient(HttpCollaborator):
    """Implements the account fetcher and chain tip protocols over JSON-RPC."""

    def __init__(
        self,
        url: str,
        *,
        commitment: str = "confirmed",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(url, timeout_seconds=timeout_seconds, client=client)
        self._commitment = commitment
        self._ids = itertools.count(1)

    async def fetch_account(self, address: Pubkey) -> bytes | None:
        result = await self._call(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": self._commitment}],
        )
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            return None
        try:
            encoded, encoding = value["data"]
            if encoding != "base64":
                raise CollaboratorError(f"Unexpected account encoding {encoding!r}")
            return base64.b64decode(encoded)
        except (KeyError, TypeError, ValueError, binascii.Error) as exc:
            raise CollaboratorError(f"Malformed account payload: {exc}") from exc

    async def latest_blockhash(self) -> Hash:
        result = await self._call(
            "getLatestBlockhash", [{"commitment": self._commitment}]
        )
        try:
            return Hash.from_string(result["value"]["blockhash"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorError(f"Malformed blockhash payload: {exc}") from exc

    async def current_slot(self) -> int:
        result = await self._call("getSlot", [{"commitment": self._commitment}])
        if not isinstance(result, int) or isinstance(result, bool):
            raise CollaboratorError(f"Malformed slot payload: {result!r}")
        return result

    async def _call(self, method: str, params: list[object]) -> object:
        request = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        payload = self._json(await self._post(request))
        error = payload.get("error")
        if error is not None:
            LOGGER.warning(
                "RPC call returned an error",
                extra={"method": method, "rpc_error": error},
            )
            raise CollaboratorError(f"{method} failed: {error}")
        return payload.get("result")
