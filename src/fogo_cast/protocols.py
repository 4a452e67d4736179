"""Protocols describing the external services a cast depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from solders.hash import Hash
    from solders.pubkey import Pubkey

    from fogo_cast.assembler import Capability


class AccountFetcher(Protocol):
    """Reads raw account data."""

    async def fetch_account(self, address: Pubkey) -> bytes | None:
        """Return account data, or ``None`` when the account does not exist."""


class ChainTip(Protocol):
    """Exposes the latest blockhash and slot of the cluster."""

    async def latest_blockhash(self) -> Hash:
        """Return a recent blockhash usable for a new transaction."""

    async def current_slot(self) -> int:
        """Return the current slot."""


class CapabilityIssuer(Protocol):
    """Issues short-lived signed cast authorisations."""

    async def issue(self, wallet: Pubkey, program_id: Pubkey) -> Capability:
        """Return a capability message and its 64-byte signature."""


class SubmissionTransport(Protocol):
    """Relays signed transactions to the cluster."""

    async def submit(self, signed_transaction: bytes) -> str | None:
        """Submit serialized transaction bytes and return its signature, if any."""
