"""Client for the cast capability issuer."""

from __future__ import annotations

import base64
import binascii

from solders.pubkey import Pubkey

from fogo_cast.assembler import Capability
from fogo_cast.clients.base import HttpCollaborator
from fogo_cast.errors import CollaboratorError

# Bit mask of cast modes requested from the issuer (normal and supercast).
REQUESTED_MODES = 3


class CapabilityClient(HttpCollaborator):
    """Requests signed cast capabilities for a wallet."""

    async def issue(self, wallet: Pubkey, program_id: Pubkey) -> Capability:
        payload = self._json(
            await self._post(
                {
                    "wallet": str(wallet),
                    "requested_modes": REQUESTED_MODES,
                    "program_id": str(program_id),
                }
            )
        )
        try:
            message = base64.b64decode(str(payload["message_b64"]), validate=True)
            signature = base64.b64decode(str(payload["signature_b64"]), validate=True)
        except (KeyError, ValueError, binascii.Error) as exc:
            raise CollaboratorError(f"Malformed capability payload: {exc}") from exc
        return Capability(message=message, signature=signature)
