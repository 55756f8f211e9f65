"""Signer protocol: produces a signature over a fingerprint."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class SignatureResult:
    """Signature over a fingerprint and the identity that produced it."""

    signature: str
    signer_address: str
    fingerprint: str
    signed_at: datetime

    def to_wire(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "signerAddress": self.signer_address,
            "contentHash": self.fingerprint,
            "timestamp": self.signed_at.isoformat(),
        }


@runtime_checkable
class Signer(Protocol):
    """Protocol for signing collaborators.

    Implementations may raise SigningDisabledError or RateLimitedError;
    callers surface them unchanged.
    """

    def sign(self, fingerprint: str, *, client_id: str = "local") -> SignatureResult:
        """Sign a fingerprint on behalf of client_id."""
        ...
