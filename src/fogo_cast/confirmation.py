"""Single cast attempt: submit, then watch the player's cast counter.

The chain is never asked about the submitted transaction itself. A cast is
confirmed when the player's ``cast_count`` moves past the value read before
submission, so any other cast by the same player in that window is
indistinguishable from ours.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from fogo_cast.account import PlayerAccountState, fetch_player_state
from fogo_cast.assembler import assemble_cast_transaction, sign_transaction
from fogo_cast.cancellation import CancellationToken
from fogo_cast.errors import (
    AttemptFailed,
    CollaboratorError,
    StructuralError,
)
from fogo_cast.protocols import (
    AccountFetcher,
    CapabilityIssuer,
    ChainTip,
    SubmissionTransport,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_ATTEMPTS = 8
DEFAULT_POLL_INTERVAL = 1.0

__all__ = [
    "CastConfirmationLoop",
    "CastOutcome",
    "CastResult",
]


class CastOutcome(str, Enum):
    """Terminal state of a cast attempt."""

    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    NOT_SUBMITTED = "not_submitted"


@dataclass(frozen=True, slots=True)
class CastResult:
    """Outcome of one cast attempt.

    Attributes:
        success: ``True`` only when the cast counter advanced.
        fish_delta: Change in ``fish_caught_all_time`` across the attempt.
            Kept signed; a negative value means the account moved backwards.
        state_after: State observed on confirmation, otherwise the state
            read before submission.
        outcome: Terminal state of the attempt.
        polls: Number of post-submission fetches performed.
        signature: Transaction signature returned by the transport.
    """

    success: bool
    fish_delta: int
    state_after: PlayerAccountState
    outcome: CastOutcome
    polls: int = 0
    signature: str | None = None

    @property
    def is_anomalous(self) -> bool:
        return self.fish_delta < 0


@dataclass(slots=True)
class CastConfirmationLoop:
    """Run cast attempts against one player account."""

    fetcher: AccountFetcher
    chain: ChainTip
    issuer: CapabilityIssuer
    transport: SubmissionTransport
    template: VersionedTransaction
    keypair: Keypair
    player_address: Pubkey
    wallet: Pubkey
    program_id: Pubkey
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    logger: logging.Logger = field(default=LOGGER)

    async def cast_once(
        self, cancel_token: CancellationToken | None = None
    ) -> CastResult:
        """Perform one cast and wait for the counter to confirm it.

        Raises:
            AttemptFailed: If the initial state fetch or any submission
                collaborator fails.
            StructuralError: If the template or capability does not match the
                expected layout, or a polled account is truncated.
            CastCancelled: If ``cancel_token`` fires at a suspension point.
        """

        token = cancel_token or CancellationToken()

        token.raise_if_cancelled()
        before = await self._fetch_before()

        token.raise_if_cancelled()
        signature = await self._submit(before, token)
        if signature is None:
            self.logger.warning(
                "Transport returned no transaction signature",
                extra={"cast_count": before.cast_count},
            )
            return CastResult(
                success=False,
                fish_delta=0,
                state_after=before,
                outcome=CastOutcome.NOT_SUBMITTED,
            )

        for poll in range(1, self.poll_attempts + 1):
            await token.sleep(self.poll_interval)
            try:
                after = await fetch_player_state(self.fetcher, self.player_address)
            except CollaboratorError as exc:
                self.logger.warning(
                    "Confirmation poll failed",
                    extra={"poll": poll, "signature": signature, "error": str(exc)},
                )
                continue

            if after.cast_count > before.cast_count:
                return self._confirmed(before, after, poll, signature)

        self.logger.info(
            "Cast not confirmed within poll window",
            extra={
                "polls": self.poll_attempts,
                "signature": signature,
                "cast_count": before.cast_count,
            },
        )
        return CastResult(
            success=False,
            fish_delta=0,
            state_after=before,
            outcome=CastOutcome.TIMED_OUT,
            polls=self.poll_attempts,
            signature=signature,
        )

    async def _fetch_before(self) -> PlayerAccountState:
        try:
            return await fetch_player_state(self.fetcher, self.player_address)
        except (CollaboratorError, StructuralError) as exc:
            raise AttemptFailed(f"Could not read player state: {exc}") from exc

    async def _submit(
        self, before: PlayerAccountState, token: CancellationToken
    ) -> str | None:
        # Nothing is signed or sent once the token fires.
        try:
            capability = await self.issuer.issue(self.wallet, self.program_id)
            token.raise_if_cancelled()
            blockhash = await self.chain.latest_blockhash()
            token.raise_if_cancelled()
            slot = await self.chain.current_slot()
        except CollaboratorError as exc:
            raise AttemptFailed(f"Could not prepare cast: {exc}") from exc
        token.raise_if_cancelled()

        unsigned = assemble_cast_transaction(
            self.template, blockhash, capability, slot, before.cast_count
        )
        signed = sign_transaction(unsigned, self.keypair)
        self.logger.debug(
            "Cast transaction assembled",
            extra={"slot": slot, "nonce": before.cast_count + 1},
        )

        try:
            return await self.transport.submit(bytes(signed))
        except CollaboratorError as exc:
            raise AttemptFailed(f"Submission failed: {exc}") from exc

    def _confirmed(
        self,
        before: PlayerAccountState,
        after: PlayerAccountState,
        poll: int,
        signature: str,
    ) -> CastResult:
        fish_delta = after.fish_caught_all_time - before.fish_caught_all_time
        if fish_delta < 0:
            self.logger.error(
                "Fish total decreased across a confirmed cast",
                extra={
                    "before": before.fish_caught_all_time,
                    "after": after.fish_caught_all_time,
                    "fish_delta": fish_delta,
                    "signature": signature,
                },
            )
        return CastResult(
            success=True,
            fish_delta=fish_delta,
            state_after=after,
            outcome=CastOutcome.CONFIRMED,
            polls=poll,
            signature=signature,
        )
