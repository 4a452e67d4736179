"""Client for the sponsoring paymaster that relays cast transactions."""

from __future__ import annotations

import base64
import logging
import re

from fogo_cast.clients.base import HttpCollaborator
from fogo_cast.errors import SubmissionRejected

LOGGER = logging.getLogger(__name__)

_SIGNATURE_PATTERN = re.compile(r"[1-9A-HJ-NP-Za-km-z]{64,88}")
_ERROR_EXCERPT = 200


class PaymasterTransport(HttpCollaborator):
    """Submits partially signed transactions for sponsorship."""

    async def submit(self, signed_transaction: bytes) -> str | None:
        """Return the transaction signature found in the reply, if any.

        Raises:
            SubmissionRejected: If the reply carries an ``"error"`` field.
            CollaboratorError: On transport failure.
        """

        encoded = base64.b64encode(signed_transaction).decode("ascii")
        response = await self._post({"transaction": encoded}, check_status=False)
        text = response.text
        if '"error"' in text:
            raise SubmissionRejected(text[:_ERROR_EXCERPT])
        match = _SIGNATURE_PATTERN.search(text)
        if match is None:
            LOGGER.warning(
                "Paymaster reply carried no signature",
                extra={"status_code": response.status_code, "body": text[:_ERROR_EXCERPT]},
            )
            return None
        return match.group(0)
