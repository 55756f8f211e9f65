"""Error taxonomy for the publication registry.

The registry facade is the only place that raises the core errors at the
boundary. Signer errors belong to the signer collaborator and are
propagated as-is.
"""

from __future__ import annotations


class ProofmarkError(Exception):
    """Base class for all proofmark errors."""


class ValidationError(ProofmarkError):
    """Malformed input: empty title/content, bad fingerprint, unknown enum value.

    Attributes:
        field: Name of the offending input field, if known
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(ProofmarkError):
    """Lookup by key (id or fingerprint) found nothing."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class InvalidStateError(ProofmarkError):
    """Requested status transition is not allowed from the current status."""

    def __init__(self, publication_id: str, current: str, requested: str) -> None:
        self.publication_id = publication_id
        self.current = current
        self.requested = requested
        super().__init__(f"Publication {publication_id} is {current}; cannot transition to {requested} (only PENDING records can change status)")


class DuplicateRecordError(ProofmarkError):
    """A record with the same id already exists in the store."""

    def __init__(self, publication_id: str) -> None:
        self.publication_id = publication_id
        super().__init__(f"Publication id already exists: {publication_id}")


# =============================================================================
# Signer collaborator errors
# =============================================================================


class SignerError(ProofmarkError):
    """Base class for failures raised by a Signer implementation."""


class SigningDisabledError(SignerError):
    """Backend signing is switched off by configuration."""

    def __init__(self, message: str = "Backend signing is disabled. Sign with your own wallet instead.") -> None:
        super().__init__(message)


class RateLimitedError(SignerError):
    """Too many signing requests from one client inside the rate window.

    Attributes:
        client_id: Identifier that hit the limit
        retry_after_seconds: Length of the limiting window
    """

    def __init__(self, client_id: str, *, retry_after_seconds: float) -> None:
        self.client_id = client_id
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limit exceeded for {client_id!r}. Try again in {retry_after_seconds:g}s.")
