"""Cooperative cancellation for the cast loops."""

from __future__ import annotations

import asyncio

from fogo_cast.errors import CastCancelled

__all__ = ["CancellationToken"]


class CancellationToken:
    """Flag checked at every suspension point of a cast session.

    Sleeps performed through :meth:`sleep` wake up as soon as the token is
    cancelled and raise :class:`~fogo_cast.errors.CastCancelled`.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; idempotent."""

        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CastCancelled("Cast session cancelled")

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first."""

        self.raise_if_cancelled()
        if seconds <= 0:
            await asyncio.sleep(0)
            self.raise_if_cancelled()
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise CastCancelled("Cast session cancelled")
