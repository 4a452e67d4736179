"""Player account decoding and address derivation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from solders.pubkey import Pubkey

from fogo_cast.errors import AccountNotFound, TruncatedRecord
from fogo_cast.keys import encode_base58
from fogo_cast.layout import (
    PLAYER_DISCRIMINATOR_SIZE,
    PLAYER_SEED,
    PLAYER_STATE_MIN_SIZE,
    PLAYER_STATE_STRUCT,
)
from fogo_cast.protocols import AccountFetcher

LOGGER = logging.getLogger(__name__)

__all__ = [
    "PlayerAccountState",
    "decode_player_state",
    "fetch_player_state",
    "player_state_address",
]


@dataclass(frozen=True, slots=True)
class PlayerAccountState:
    """Decoded on-chain player record."""

    owner: str
    rod_level: int
    boat_tier: int
    bump: int
    cast_count: int
    fish_caught_all_time: int
    power: int
    max_durability: int
    current_durability: int
    supercast_remaining: int
    last_durability_ts: int
    unprocessed_fish: int


def decode_player_state(raw: bytes | bytearray | memoryview) -> PlayerAccountState:
    """Decode a player account.

    The 8-byte account discriminator is skipped and fields are read in
    layout order as little-endian integers. Bytes past the fixed layout are
    ignored.

    Args:
        raw: Account data as returned by the RPC node.

    Returns:
        The decoded :class:`PlayerAccountState`.

    Raises:
        TruncatedRecord: If ``raw`` is shorter than the fixed layout.
    """

    if len(raw) < PLAYER_STATE_MIN_SIZE:
        raise TruncatedRecord(
            f"player account must be at least {PLAYER_STATE_MIN_SIZE} bytes, "
            f"got {len(raw)}"
        )
    (
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
    ) = PLAYER_STATE_STRUCT.unpack_from(raw, PLAYER_DISCRIMINATOR_SIZE)
    return PlayerAccountState(
        owner=encode_base58(owner),
        rod_level=rod_level,
        boat_tier=boat_tier,
        bump=bump,
        cast_count=cast_count,
        fish_caught_all_time=fish_caught_all_time,
        power=power,
        max_durability=max_durability,
        current_durability=current_durability,
        supercast_remaining=supercast_remaining,
        last_durability_ts=last_durability_ts,
        unprocessed_fish=unprocessed_fish,
    )


def player_state_address(owner: Pubkey, program_id: Pubkey) -> Pubkey:
    """Return the program-derived address holding ``owner``'s player record."""

    address, _bump = Pubkey.find_program_address(
        [PLAYER_SEED, bytes(owner)], program_id
    )
    return address


async def fetch_player_state(
    fetcher: AccountFetcher, address: Pubkey
) -> PlayerAccountState:
    """Fetch and decode the player record at ``address``.

    Raises:
        AccountNotFound: If the node reports no account at ``address``.
        TruncatedRecord: If the account data is too short.
    """

    data = await fetcher.fetch_account(address)
    if data is None:
        raise AccountNotFound(f"Player account {address} not found")
    state = decode_player_state(data)
    LOGGER.debug(
        "Player state fetched",
        extra={
            "address": str(address),
            "cast_count": state.cast_count,
            "fish_caught_all_time": state.fish_caught_all_time,
        },
    )
    return state
