"""Exception hierarchy for :mod:`fogo_cast`."""

from __future__ import annotations

__all__ = [
    "AccountNotFound",
    "AttemptFailed",
    "CastCancelled",
    "CollaboratorError",
    "FogoCastError",
    "InvalidLength",
    "MalformedTemplate",
    "StructuralError",
    "SubmissionRejected",
    "TruncatedRecord",
]


class FogoCastError(RuntimeError):
    """Base class for every error raised by this package."""


class StructuralError(FogoCastError, ValueError):
    """Raised when bytes do not match the expected layout.

    Structural errors indicate a format mismatch rather than a transient
    fault and are never retried.
    """


class InvalidLength(StructuralError):
    """Raised when key material, a signature or a field value has the wrong size."""


class TruncatedRecord(StructuralError):
    """Raised when an account record is shorter than its fixed layout."""


class MalformedTemplate(StructuralError):
    """Raised when the transaction template lacks the patched instructions."""


class CollaboratorError(FogoCastError):
    """Raised when an external service fails or returns unusable data."""


class AccountNotFound(CollaboratorError):
    """Raised when the player account does not exist on chain."""


class SubmissionRejected(CollaboratorError):
    """Raised when the paymaster answers with an error payload."""


class AttemptFailed(FogoCastError):
    """Raised when a single cast attempt could not complete."""


class CastCancelled(FogoCastError):
    """Raised when a cancellation token fires at a suspension point."""
