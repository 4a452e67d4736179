"""Command-line entry point for fogo_cast."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from collections.abc import Sequence

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from fogo_cast.account import player_state_address
from fogo_cast.assembler import load_template
from fogo_cast.cancellation import CancellationToken
from fogo_cast.clients import CapabilityClient, PaymasterTransport, SolanaRpcClient
from fogo_cast.confirmation import CastConfirmationLoop
from fogo_cast.errors import FogoCastError
from fogo_cast.keys import (
    KeyDerivation,
    convert_session_key,
    decode_base64_field,
    load_session_keypair,
)
from fogo_cast.logging_pipeline import configure_structured_logging, shutdown_listeners
from fogo_cast.session import SessionStatistics, run_session
from fogo_cast.settings import FogoCastSettings, get_settings

LOGGER = logging.getLogger("fogo_cast")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``fogo-cast`` CLI."""

    parser = argparse.ArgumentParser(
        prog="fogo-cast", description="Convert session keys and run cast sessions."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert", help="Convert a PKCS#8 session key into a base58 keypair."
    )
    convert.add_argument(
        "--private-key-b64",
        required=True,
        help="Base64 PKCS#8 private key exported by the browser.",
    )
    convert.add_argument(
        "--public-key-b64",
        help="Base64 raw public key exported alongside the private key.",
    )
    convert.add_argument(
        "--trust-public-key",
        action="store_true",
        help="Append the supplied public key instead of deriving it from the seed.",
    )

    run = subparsers.add_parser("run", help="Cast repeatedly using FOGO_* settings.")
    run.add_argument(
        "--max-casts",
        type=int,
        help="Override FOGO_MAX_CASTS (0 runs until interrupted).",
    )
    run.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging."
    )
    return parser


def _convert(args: argparse.Namespace) -> int:
    wrapped = decode_base64_field(args.private_key_b64, "private key")
    public_key = (
        decode_base64_field(args.public_key_b64, "public key")
        if args.public_key_b64
        else None
    )
    derivation = (
        KeyDerivation.CONCATENATE if args.trust_public_key else KeyDerivation.RESEED
    )
    credential = convert_session_key(wrapped, public_key, derivation=derivation)
    print(
        json.dumps(
            {
                "public_key": credential.public_key_b58,
                "session_key": credential.keypair_b58,
                "keypair_length": len(credential.keypair),
                "derivation": derivation.value,
            },
            indent=2,
        )
    )
    return 0


_SessionInputs = tuple[Keypair, Pubkey, Pubkey, VersionedTransaction]


def _session_inputs(settings: FogoCastSettings) -> _SessionInputs:
    secret = (
        settings.session_key.get_secret_value()
        if settings.session_key is not None
        else ""
    )
    return (
        load_session_keypair(secret),
        Pubkey.from_string(str(settings.owner)),
        Pubkey.from_string(settings.program_id),
        load_template(str(settings.tx_template)),
    )


async def _run_async(
    settings: FogoCastSettings,
    session: _SessionInputs,
    token: CancellationToken,
    max_casts: int,
) -> SessionStatistics:
    keypair, owner, program_id, template = session
    timeout = settings.request_timeout

    async with (
        SolanaRpcClient(str(settings.rpc_url), timeout_seconds=timeout) as rpc,
        CapabilityClient(str(settings.capability_url), timeout_seconds=timeout) as issuer,
        PaymasterTransport(str(settings.paymaster_url), timeout_seconds=timeout) as transport,
    ):
        loop = CastConfirmationLoop(
            fetcher=rpc,
            chain=rpc,
            issuer=issuer,
            transport=transport,
            template=template,
            keypair=keypair,
            player_address=player_state_address(owner, program_id),
            wallet=owner,
            program_id=program_id,
            poll_attempts=settings.poll_attempts,
            poll_interval=settings.poll_interval_seconds,
        )
        return await run_session(
            loop,
            max_casts=max_casts,
            cast_interval=settings.cast_interval_seconds,
            cancel_token=token,
        )


def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    missing = settings.missing()
    if missing:
        print(f"Missing settings: {', '.join(missing)}", file=sys.stderr)
        return 1
    max_casts = settings.max_casts if args.max_casts is None else max(args.max_casts, 0)
    try:
        session = _session_inputs(settings)
    except (FogoCastError, ValueError) as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 1

    listener = configure_structured_logging(
        LOGGER, level=logging.DEBUG if args.verbose else logging.INFO
    )
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    token = CancellationToken()

    def _handle_signal(signum: int) -> None:  # pragma: no cover - signal handling
        LOGGER.info("Received signal", extra={"signal": signum})
        token.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):  # pragma: no cover - not triggered in tests
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except NotImplementedError:
            signal.signal(sig, lambda signum, _frame: _handle_signal(signum))

    try:
        stats = loop.run_until_complete(
            _run_async(settings, session, token, max_casts)
        )
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        shutdown_listeners([listener])

    print(json.dumps(stats.to_dict(), separators=(",", ":")))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ``fogo-cast`` CLI and return its exit status."""

    parser = build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    try:
        if args.command == "convert":
            return _convert(args)
        return _run(args)
    except FogoCastError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
