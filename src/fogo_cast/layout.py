"""Byte layouts of the fishing program's accounts and instructions.

All offsets below are an external protocol contract pinned to
``LAYOUT_VERSION``. If the on-chain program changes its account or
instruction encoding these values must be re-validated against a freshly
captured transaction template and player account.
"""

from __future__ import annotations

import struct
from typing import Final

LAYOUT_VERSION: Final[str] = "fogo-fishing-v1"

# Player account --------------------------------------------------------------

PLAYER_SEED: Final[bytes] = b"player"
PLAYER_DISCRIMINATOR_SIZE: Final[int] = 8

# owner, rod_level, boat_tier, bump, cast_count, fish_caught_all_time, power,
# max_durability, current_durability, supercast_remaining,
# last_durability_ts, unprocessed_fish
PLAYER_STATE_STRUCT: Final[struct.Struct] = struct.Struct("<32sBBBQQQIIIqQ")
PLAYER_STATE_MIN_SIZE: Final[int] = (
    PLAYER_DISCRIMINATOR_SIZE + PLAYER_STATE_STRUCT.size
)
PLAYER_CAST_COUNT_OFFSET: Final[int] = 43
PLAYER_FISH_CAUGHT_OFFSET: Final[int] = 51

# Fish amounts are stored in raw units with six decimals.
FISH_DECIMALS: Final[int] = 1_000_000

# Transaction template --------------------------------------------------------

ED25519_INSTRUCTION_INDEX: Final[int] = 1
CAST_INSTRUCTION_INDEX: Final[int] = 2
MIN_TEMPLATE_INSTRUCTIONS: Final[int] = 3

# Ed25519 verify instruction: count, padding, offsets table and the signer
# public key occupy the first 48 bytes and are carried over from the template.
ED25519_PRESERVED_PREFIX: Final[int] = 48
ED25519_MESSAGE_SIZE_OFFSET: Final[int] = 12
ED25519_SIGNATURE_OFFSET: Final[int] = 48
ED25519_SIGNATURE_SIZE: Final[int] = 64
ED25519_MESSAGE_OFFSET: Final[int] = 112
ED25519_MAX_MESSAGE_SIZE: Final[int] = 0xFFFF

CAST_SLOT_OFFSET: Final[int] = 40
CAST_NONCE_OFFSET: Final[int] = 49
CAST_MIN_DATA_SIZE: Final[int] = CAST_NONCE_OFFSET + 8
U64_MAX: Final[int] = 2**64 - 1

U16_LE: Final[struct.Struct] = struct.Struct("<H")
U64_LE: Final[struct.Struct] = struct.Struct("<Q")

# Key material ----------------------------------------------------------------

WRAPPED_KEY_SIZE: Final[int] = 48
WRAPPED_KEY_HEADER_SIZE: Final[int] = 16
SEED_SIZE: Final[int] = 32
PUBLIC_KEY_SIZE: Final[int] = 32
KEYPAIR_SIZE: Final[int] = 64
