"""Shared HTTP plumbing for the external service adapters."""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from fogo_cast.errors import CollaboratorError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class HttpCollaborator:
    """Base class owning an :class:`httpx.AsyncClient` for one endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def url(self) -> str:
        return self._url

    async def aclose(self) -> None:
        """Close the underlying client if this adapter created it."""

        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpCollaborator":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def _post(
        self, payload: dict[str, object], *, check_status: bool = True
    ) -> httpx.Response:
        """POST ``payload`` as JSON, translating transport failures.

        Raises:
            CollaboratorError: On transport errors, or on non-2xx responses
                when ``check_status`` is set.
        """

        service = type(self).__name__
        try:
            response = await self._client.post(self._url, json=payload)
            if check_status:
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "HTTP error from collaborator",
                extra={
                    "service": service,
                    "status_code": exc.response.status_code,
                    "url": self._url,
                },
            )
            raise CollaboratorError(
                f"{service} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "Transport error talking to collaborator",
                extra={"service": service, "url": self._url},
                exc_info=exc,
            )
            raise CollaboratorError(f"{service} transport error: {exc}") from exc
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, object]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise CollaboratorError("Response body is not JSON") from exc
        if not isinstance(payload, dict):
            raise CollaboratorError("Response JSON must be an object")
        return payload
