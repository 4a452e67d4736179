"""Builders for player records, transaction templates and fake services."""

from __future__ import annotations

import struct
from collections import deque
from collections.abc import Iterable

from solders.hash import Hash
from solders.instruction import CompiledInstruction
from solders.keypair import Keypair
from solders.message import MessageHeader, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from fogo_cast.assembler import Capability
from fogo_cast.layout import PLAYER_STATE_STRUCT

SESSION_SEED = bytes(range(32))
OWNER_BYTES = bytes([7]) * 32
TEMPLATE_MESSAGE = b"template-capability"
TEMPLATE_SIGNATURE = bytes([0x11]) * 64
CAST_DISCRIMINATOR = bytes.fromhex("a1b2c3d4e5f60718")


def encode_player_state(
    *,
    owner: bytes = OWNER_BYTES,
    rod_level: int = 3,
    boat_tier: int = 2,
    bump: int = 254,
    cast_count: int = 0,
    fish_caught_all_time: int = 0,
    power: int = 1_500,
    max_durability: int = 100,
    current_durability: int = 87,
    supercast_remaining: int = 4,
    last_durability_ts: int = 1_700_000_000,
    unprocessed_fish: int = 0,
    trailer: bytes = b"",
) -> bytes:
    """Return raw player account bytes with an 8-byte discriminator."""

    return (
        bytes.fromhex("0102030405060708")
        + PLAYER_STATE_STRUCT.pack(
            owner,
            rod_level,
            boat_tier,
            bump,
            cast_count,
            fish_caught_all_time,
            power,
            max_durability,
            current_durability,
            supercast_remaining,
            last_durability_ts,
            unprocessed_fish,
        )
        + trailer
    )


def ed25519_template_data(signer: bytes = bytes([9]) * 32) -> bytes:
    """Ed25519 verify data as captured: header, offsets, key, sig, message."""

    offsets = struct.pack(
        "<HHHHHHH", 48, 0xFFFF, 16, 0xFFFF, 112, len(TEMPLATE_MESSAGE), 0xFFFF
    )
    return bytes([1, 0]) + offsets + signer + TEMPLATE_SIGNATURE + TEMPLATE_MESSAGE


def cast_template_data() -> bytes:
    """Cast instruction data: discriminator, 32 opaque bytes, slot, mode, nonce, tail."""

    return (
        CAST_DISCRIMINATOR
        + bytes([0x22]) * 32
        + struct.pack("<Q", 111)
        + bytes([1])
        + struct.pack("<Q", 5)
        + b"\xde\xad\xbe"
    )


def build_template(
    session: Keypair,
    *,
    instructions: Iterable[CompiledInstruction] | None = None,
) -> VersionedTransaction:
    """Return a v0 template paid by a sponsor and co-signed by ``session``."""

    payer = Pubkey.new_unique()
    player = Pubkey.new_unique()
    budget_program = Pubkey.new_unique()
    ed25519_program = Pubkey.new_unique()
    fishing_program = Pubkey.new_unique()
    keys = [payer, session.pubkey(), player, budget_program, ed25519_program, fishing_program]
    if instructions is None:
        instructions = [
            CompiledInstruction(3, bytes([2, 0x40, 0x0D, 0x03, 0x00]), b""),
            CompiledInstruction(4, ed25519_template_data(), b""),
            CompiledInstruction(5, cast_template_data(), bytes([1, 2])),
        ]
    message = MessageV0(
        MessageHeader(2, 0, 3),
        keys,
        Hash.default(),
        list(instructions),
        [],
    )
    return VersionedTransaction.populate(message, [Signature.default()] * 2)


class FakeFetcher:
    """Returns queued account payloads; the last one repeats forever."""

    def __init__(self, payloads: Iterable[bytes | None | Exception]) -> None:
        self._payloads = deque(payloads)
        self.calls = 0

    async def fetch_account(self, address: Pubkey) -> bytes | None:
        self.calls += 1
        payload = self._payloads[0]
        if len(self._payloads) > 1:
            self._payloads.popleft()
        if isinstance(payload, Exception):
            raise payload
        return payload


class FakeChain:
    def __init__(self, slot: int = 4_242) -> None:
        self.slot = slot
        self.blockhash = Hash(bytes([3]) * 32)

    async def latest_blockhash(self) -> Hash:
        return self.blockhash

    async def current_slot(self) -> int:
        return self.slot


class FakeIssuer:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.requests: list[tuple[Pubkey, Pubkey]] = []

    async def issue(self, wallet: Pubkey, program_id: Pubkey) -> Capability:
        self.requests.append((wallet, program_id))
        if self.error is not None:
            raise self.error
        return Capability(message=b"fresh-capability-message", signature=bytes([0x55]) * 64)


class FakeTransport:
    def __init__(self, signature: str | None = "5" * 88) -> None:
        self.signature = signature
        self.submitted: list[bytes] = []

    async def submit(self, signed_transaction: bytes) -> str | None:
        self.submitted.append(signed_transaction)
        return self.signature


__all__ = [
    "FakeChain",
    "FakeFetcher",
    "FakeIssuer",
    "FakeTransport",
    "SESSION_SEED",
    "build_template",
    "cast_template_data",
    "ed25519_template_data",
    "encode_player_state",
]
