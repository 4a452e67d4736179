"""Session key conversion.

The browser session key is exported as an Ed25519 PKCS#8 container
(16-byte header followed by the 32-byte seed) alongside its raw public key.
This module unwraps the seed and renders the 64-byte ``seed || public key``
keypair expected by Solana tooling as base58 strings.

Provides:
- convert_session_key(wrapped_key, raw_public_key): build a SessionCredential
- load_session_keypair(value): parse a persisted base58 keypair
- encode_base58 / decode_base58: checksum-free base58 helpers
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum

import base58
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from solders.keypair import Keypair

from fogo_cast.errors import InvalidLength, StructuralError
from fogo_cast.layout import (
    KEYPAIR_SIZE,
    PUBLIC_KEY_SIZE,
    SEED_SIZE,
    WRAPPED_KEY_HEADER_SIZE,
    WRAPPED_KEY_SIZE,
)

LOGGER = logging.getLogger(__name__)

__all__ = [
    "KeyDerivation",
    "SessionCredential",
    "convert_session_key",
    "decode_base58",
    "decode_base64_field",
    "derive_public_key",
    "encode_base58",
    "load_session_keypair",
]


class KeyDerivation(str, Enum):
    """How the public half of the keypair is obtained."""

    CONCATENATE = "concatenate"
    """Append the caller-supplied public key to the seed as-is."""

    RESEED = "reseed"
    """Derive the public key from the seed, ignoring the supplied one."""


@dataclass(frozen=True, slots=True)
class SessionCredential:
    """A 64-byte Ed25519 keypair and its public key."""

    keypair: bytes
    public_key: bytes

    def __post_init__(self) -> None:
        if len(self.keypair) != KEYPAIR_SIZE:
            raise InvalidLength(
                f"keypair must be {KEYPAIR_SIZE} bytes, got {len(self.keypair)}"
            )
        if len(self.public_key) != PUBLIC_KEY_SIZE:
            raise InvalidLength(
                f"public key must be {PUBLIC_KEY_SIZE} bytes, "
                f"got {len(self.public_key)}"
            )

    @property
    def keypair_b58(self) -> str:
        return encode_base58(self.keypair)

    @property
    def public_key_b58(self) -> str:
        return encode_base58(self.public_key)

    def to_keypair(self) -> Keypair:
        """Return the credential as a signing :class:`~solders.keypair.Keypair`."""

        return _keypair_from_bytes(self.keypair)


def encode_base58(data: bytes) -> str:
    """Return the checksum-free base58 rendering of ``data``."""

    return base58.b58encode(bytes(data)).decode("ascii")


def decode_base58(value: str) -> bytes:
    """Decode a base58 string.

    Raises:
        StructuralError: If ``value`` contains characters outside the
            base58 alphabet.
    """

    try:
        return base58.b58decode(value.strip())
    except ValueError as exc:
        raise StructuralError(f"Invalid base58 string: {exc}") from exc


def decode_base64_field(value: str, name: str) -> bytes:
    """Decode a base64 value captured from the browser, naming it on failure."""

    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise StructuralError(f"{name} is not valid base64: {exc}") from exc


def derive_public_key(seed: bytes) -> bytes:
    """Return the raw Ed25519 public key for a 32-byte seed."""

    if len(seed) != SEED_SIZE:
        raise InvalidLength(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
    private_key = Ed25519PrivateKey.from_private_bytes(bytes(seed))
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def convert_session_key(
    wrapped_key: bytes,
    raw_public_key: bytes | None = None,
    *,
    derivation: KeyDerivation = KeyDerivation.RESEED,
) -> SessionCredential:
    """Unwrap a PKCS#8 session key into a 64-byte keypair.

    Args:
        wrapped_key: 48-byte container; the first 16 bytes are an opaque
            header and the remaining 32 are the Ed25519 seed.
        raw_public_key: Public key captured alongside the container. Only
            used verbatim with :attr:`KeyDerivation.CONCATENATE`.
        derivation: Strategy for the public half. ``RESEED`` must be used
            whenever the public key has not been checked against the seed.

    Returns:
        The converted credential.

    Raises:
        InvalidLength: If the container is not exactly 48 bytes, or the
            concatenation variant receives a public key that is not 32 bytes.
    """

    wrapped = bytes(wrapped_key)
    if len(wrapped) != WRAPPED_KEY_SIZE:
        raise InvalidLength(
            f"wrapped key must be {WRAPPED_KEY_SIZE} bytes, got {len(wrapped)}"
        )
    seed = wrapped[WRAPPED_KEY_HEADER_SIZE:WRAPPED_KEY_SIZE]

    if derivation is KeyDerivation.CONCATENATE:
        if raw_public_key is None or len(raw_public_key) != PUBLIC_KEY_SIZE:
            size = None if raw_public_key is None else len(raw_public_key)
            raise InvalidLength(
                f"public key must be {PUBLIC_KEY_SIZE} bytes, got {size}"
            )
        public_key = bytes(raw_public_key)
    else:
        public_key = derive_public_key(seed)
        if raw_public_key is not None and bytes(raw_public_key) != public_key:
            LOGGER.warning(
                "Supplied public key does not match the seed; using derived key",
                extra={
                    "supplied": encode_base58(bytes(raw_public_key)),
                    "derived": encode_base58(public_key),
                },
            )

    return SessionCredential(keypair=seed + public_key, public_key=public_key)


def load_session_keypair(value: str) -> Keypair:
    """Parse a persisted base58 session key into a signing keypair."""

    raw = decode_base58(value)
    if len(raw) != KEYPAIR_SIZE:
        raise InvalidLength(
            f"session key must decode to {KEYPAIR_SIZE} bytes, got {len(raw)}"
        )
    return _keypair_from_bytes(raw)


def _keypair_from_bytes(raw: bytes) -> Keypair:
    try:
        return Keypair.from_bytes(raw)
    except Exception as exc:
        raise StructuralError(f"Keypair bytes rejected: {exc}") from exc
