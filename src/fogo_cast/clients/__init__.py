"""HTTP adapters for the services a cast session talks to."""

from __future__ import annotations

from fogo_cast.clients.capability import CapabilityClient
from fogo_cast.clients.paymaster import PaymasterTransport
from fogo_cast.clients.rpc import SolanaRpcClient

__all__ = ["CapabilityClient", "PaymasterTransport", "SolanaRpcClient"]
