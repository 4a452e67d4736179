"""Repeated casting with running tallies."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fogo_cast.cancellation import CancellationToken
from fogo_cast.confirmation import CastConfirmationLoop, CastResult
from fogo_cast.errors import CastCancelled, FogoCastError
from fogo_cast.layout import FISH_DECIMALS, LAYOUT_VERSION

LOGGER = logging.getLogger(__name__)

__all__ = ["SessionStatistics", "format_fish", "run_session"]


def format_fish(raw: int) -> str:
    """Render a raw fish amount with three decimals."""

    return f"{raw / FISH_DECIMALS:.3f}"


@dataclass(slots=True)
class SessionStatistics:
    """Cumulative counters for one cast session."""

    total_casts: int = 0
    successes: int = 0
    failures: int = 0
    anomalies: int = 0
    fish_caught: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_casts == 0:
            return 0.0
        return self.successes / self.total_casts

    def record(self, result: CastResult) -> None:
        """Fold a completed attempt into the tallies."""

        self.total_casts += 1
        if not result.success:
            self.failures += 1
            return
        self.successes += 1
        self.fish_caught += result.fish_delta
        if result.is_anomalous:
            self.anomalies += 1

    def record_failure(self) -> None:
        """Count an attempt that raised before producing a result."""

        self.total_casts += 1
        self.failures += 1

    def to_dict(self) -> dict[str, object]:
        return {
            "total_casts": self.total_casts,
            "successes": self.successes,
            "failures": self.failures,
            "anomalies": self.anomalies,
            "fish_caught": self.fish_caught,
            "fish_caught_display": format_fish(self.fish_caught),
        }


async def run_session(
    loop: CastConfirmationLoop,
    *,
    max_casts: int = 0,
    cast_interval: float = 3.0,
    cancel_token: CancellationToken | None = None,
    statistics: SessionStatistics | None = None,
) -> SessionStatistics:
    """Cast until ``max_casts`` is reached or the token is cancelled.

    Every attempt failure is caught here, counted and logged; the session
    only ends on the cast limit or cancellation.

    Args:
        loop: Configured cast attempt runner.
        max_casts: Number of attempts to make; ``0`` means unbounded.
        cast_interval: Delay in seconds between attempts.
        cancel_token: Optional token stopping the session at the next
            suspension point.
        statistics: Existing tallies to continue from.

    Returns:
        The session tallies at shutdown.
    """

    token = cancel_token or CancellationToken()
    stats = statistics if statistics is not None else SessionStatistics()
    cast_number = 0

    LOGGER.info(
        "Cast session started",
        extra={
            "wallet": str(loop.wallet),
            "session_key": str(loop.keypair.pubkey()),
            "max_casts": max_casts,
            "cast_interval": cast_interval,
            "layout_version": LAYOUT_VERSION,
        },
    )

    try:
        while max_casts == 0 or cast_number < max_casts:
            token.raise_if_cancelled()
            cast_number += 1
            try:
                result = await loop.cast_once(token)
            except CastCancelled:
                raise
            except FogoCastError as exc:
                stats.record_failure()
                LOGGER.warning(
                    "Cast attempt failed",
                    extra={"cast": cast_number, "error": str(exc), **stats.to_dict()},
                )
            except Exception as exc:  # pragma: no cover - unexpected collaborator fault
                stats.record_failure()
                LOGGER.error(
                    "Cast attempt raised unexpectedly",
                    extra={"cast": cast_number, **stats.to_dict()},
                    exc_info=exc,
                )
            else:
                stats.record(result)
                _log_result(cast_number, result, stats)

            if max_casts == 0 or cast_number < max_casts:
                await token.sleep(cast_interval)
    except CastCancelled:
        LOGGER.info("Cast session cancelled", extra={"cast": cast_number})

    LOGGER.info("Cast session finished", extra=stats.to_dict())
    return stats


def _log_result(
    cast_number: int, result: CastResult, stats: SessionStatistics
) -> None:
    if result.success:
        LOGGER.info(
            "Cast confirmed",
            extra={
                "cast": cast_number,
                "fish": format_fish(result.fish_delta),
                "polls": result.polls,
                "power": result.state_after.power,
                "durability": (
                    f"{result.state_after.current_durability}/"
                    f"{result.state_after.max_durability}"
                ),
                **stats.to_dict(),
            },
        )
        return
    LOGGER.info(
        "Cast not confirmed",
        extra={
            "cast": cast_number,
            "outcome": result.outcome.value,
            **stats.to_dict(),
        },
    )
