"""Patch the captured cast transaction template for a fresh attempt.

The template is a serialized transaction captured from the game client.
Three regions change between casts: the recent blockhash, the Ed25519
verify instruction carrying the capability, and the slot/nonce fields of
the cast instruction. Everything else is carried over byte for byte.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

from solders.hash import Hash
from solders.instruction import CompiledInstruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0, to_bytes_versioned
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from fogo_cast.errors import InvalidLength, MalformedTemplate
from fogo_cast.layout import (
    CAST_INSTRUCTION_INDEX,
    CAST_MIN_DATA_SIZE,
    CAST_NONCE_OFFSET,
    CAST_SLOT_OFFSET,
    ED25519_INSTRUCTION_INDEX,
    ED25519_MAX_MESSAGE_SIZE,
    ED25519_MESSAGE_OFFSET,
    ED25519_MESSAGE_SIZE_OFFSET,
    ED25519_PRESERVED_PREFIX,
    ED25519_SIGNATURE_OFFSET,
    ED25519_SIGNATURE_SIZE,
    MIN_TEMPLATE_INSTRUCTIONS,
    U16_LE,
    U64_LE,
    U64_MAX,
)

LOGGER = logging.getLogger(__name__)

__all__ = [
    "Capability",
    "assemble_cast_transaction",
    "build_cast_data",
    "build_ed25519_data",
    "load_template",
    "sign_transaction",
]


@dataclass(frozen=True, slots=True)
class Capability:
    """Signed cast authorisation issued by the game backend."""

    message: bytes
    signature: bytes


def load_template(encoded: str) -> VersionedTransaction:
    """Decode a base64 serialized transaction template.

    Raises:
        MalformedTemplate: If the value is not base64 or not a transaction.
    """

    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedTemplate(f"Template is not valid base64: {exc}") from exc
    try:
        return VersionedTransaction.from_bytes(raw)
    except Exception as exc:
        raise MalformedTemplate(f"Template is not a transaction: {exc}") from exc


def build_ed25519_data(template_data: bytes, capability: Capability) -> bytes:
    """Return Ed25519 verify instruction data carrying ``capability``.

    The first 48 bytes (count, offsets table and signer public key) come
    from the template; the message size at offset 12 is rewritten to match.
    """

    if len(template_data) < ED25519_PRESERVED_PREFIX:
        raise MalformedTemplate(
            f"Ed25519 instruction data must be at least {ED25519_PRESERVED_PREFIX} "
            f"bytes, got {len(template_data)}"
        )
    if len(capability.signature) != ED25519_SIGNATURE_SIZE:
        raise InvalidLength(
            f"capability signature must be {ED25519_SIGNATURE_SIZE} bytes, "
            f"got {len(capability.signature)}"
        )
    message_size = len(capability.message)
    if message_size > ED25519_MAX_MESSAGE_SIZE:
        raise InvalidLength(f"capability message too long: {message_size} bytes")

    data = bytearray(ED25519_MESSAGE_OFFSET + message_size)
    data[:ED25519_PRESERVED_PREFIX] = template_data[:ED25519_PRESERVED_PREFIX]
    U16_LE.pack_into(data, ED25519_MESSAGE_SIZE_OFFSET, message_size)
    data[ED25519_SIGNATURE_OFFSET:ED25519_MESSAGE_OFFSET] = capability.signature
    data[ED25519_MESSAGE_OFFSET:] = capability.message
    return bytes(data)


def build_cast_data(template_data: bytes, slot: int, nonce: int) -> bytes:
    """Return cast instruction data with ``slot`` and ``nonce + 1`` written.

    ``nonce`` is the account's current ``cast_count``; the program expects
    the next value.

    Raises:
        MalformedTemplate: If the instruction data is too short.
        InvalidLength: If ``slot`` or ``nonce + 1`` does not fit in a u64.
    """

    if len(template_data) < CAST_MIN_DATA_SIZE:
        raise MalformedTemplate(
            f"cast instruction data must be at least {CAST_MIN_DATA_SIZE} bytes, "
            f"got {len(template_data)}"
        )
    for name, value in (("slot", slot), ("nonce", nonce + 1)):
        if not 0 <= value <= U64_MAX:
            raise InvalidLength(f"{name} {value} does not fit in a u64 field")
    data = bytearray(template_data)
    U64_LE.pack_into(data, CAST_SLOT_OFFSET, slot)
    U64_LE.pack_into(data, CAST_NONCE_OFFSET, nonce + 1)
    return bytes(data)


def assemble_cast_transaction(
    template: VersionedTransaction,
    fresh_blockhash: Hash,
    capability: Capability,
    slot: int,
    nonce: int,
) -> VersionedTransaction:
    """Build an unsigned cast transaction from ``template``.

    Args:
        template: Captured transaction; never modified.
        fresh_blockhash: Recent blockhash supplied by the caller.
        capability: Authorisation embedded in the Ed25519 instruction.
        slot: Current slot written into the cast instruction.
        nonce: Player's current ``cast_count``.

    Returns:
        A new transaction with every signature slot reset.

    Raises:
        MalformedTemplate: If the template lacks the patched instructions.
        InvalidLength: If the capability signature is not 64 bytes.
    """

    message = template.message
    instructions = list(message.instructions)
    if len(instructions) < MIN_TEMPLATE_INSTRUCTIONS:
        raise MalformedTemplate(
            f"template must contain at least {MIN_TEMPLATE_INSTRUCTIONS} "
            f"instructions, got {len(instructions)}"
        )

    verify_ix = instructions[ED25519_INSTRUCTION_INDEX]
    instructions[ED25519_INSTRUCTION_INDEX] = CompiledInstruction(
        verify_ix.program_id_index,
        build_ed25519_data(bytes(verify_ix.data), capability),
        bytes(verify_ix.accounts),
    )
    cast_ix = instructions[CAST_INSTRUCTION_INDEX]
    instructions[CAST_INSTRUCTION_INDEX] = CompiledInstruction(
        cast_ix.program_id_index,
        build_cast_data(bytes(cast_ix.data), slot, nonce),
        bytes(cast_ix.accounts),
    )

    patched = _rebuild_message(message, fresh_blockhash, instructions)
    signatures = [Signature.default()] * patched.header.num_required_signatures
    return VersionedTransaction.populate(patched, signatures)


def sign_transaction(
    transaction: VersionedTransaction, keypair: Keypair
) -> VersionedTransaction:
    """Add ``keypair``'s signature, leaving the other signer slots untouched.

    The fee payer slot belongs to the paymaster, which signs on submission.

    Raises:
        MalformedTemplate: If ``keypair`` is not a required signer.
    """

    message = transaction.message
    required = message.header.num_required_signatures
    signers = list(message.account_keys[:required])
    try:
        index = signers.index(keypair.pubkey())
    except ValueError as exc:
        raise MalformedTemplate(
            f"{keypair.pubkey()} is not a required signer of the template"
        ) from exc

    signatures = list(transaction.signatures)
    if len(signatures) < required:
        signatures.extend([Signature.default()] * (required - len(signatures)))
    signatures[index] = keypair.sign_message(to_bytes_versioned(message))
    return VersionedTransaction.populate(message, signatures)


def _rebuild_message(
    message: Message | MessageV0,
    blockhash: Hash,
    instructions: list[CompiledInstruction],
) -> Message | MessageV0:
    if isinstance(message, MessageV0):
        return MessageV0(
            message.header,
            list(message.account_keys),
            blockhash,
            instructions,
            list(message.address_table_lookups),
        )
    header = message.header
    return Message.new_with_compiled_instructions(
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        list(message.account_keys),
        blockhash,
        instructions,
    )
