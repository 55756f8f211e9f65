# src/proofmark/core/signing/backend.py
"""Backend signer using Ed25519.

Development and testing convenience: the server signs fingerprints with
its own key so a publisher without a wallet can still register content.
Publishers should sign with their own keys in production.

Usage:
    from proofmark.core.signing import BackendSigner

    signer = BackendSigner.from_settings(settings.signer)
    result = signer.sign(record_fingerprint, client_id=client_ip)

Rate-limit state and the signing audit log belong to the signer
instance: created with it, never persisted, gone on restart.
"""

from __future__ import annotations

import hashlib
import os
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from proofmark.contracts.errors import RateLimitedError, SigningDisabledError
from proofmark.contracts.fingerprint import validate_fingerprint
from proofmark.contracts.signer import SignatureResult
from proofmark.core.config import SignerSettings
from proofmark.core.logging import get_logger
from proofmark.core.rate_limit import RateLimitRegistry

logger = get_logger(__name__)

# Well-known development key (seed 0x00..01). Never use with anything of value.
_DEV_PRIVATE_KEY_HEX = "00" * 31 + "01"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def _raw_public_key(public_key: ed25519.Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw)


def load_private_key(hex_key: str) -> ed25519.Ed25519PrivateKey:
    """Load an Ed25519 private key from 32 hex-encoded bytes (optional 0x prefix).

    Raises:
        ValueError: If the value is not 64 hex characters
    """
    raw_hex = _strip_hex_prefix(hex_key.strip())
    try:
        raw = bytes.fromhex(raw_hex)
    except ValueError:
        raise ValueError("Signer private key must be hex-encoded") from None
    if len(raw) != 32:
        raise ValueError(f"Signer private key must be 32 bytes, got {len(raw)}")
    return ed25519.Ed25519PrivateKey.from_private_bytes(raw)


def address_for(public_key: ed25519.Ed25519PublicKey) -> str:
    """Derive a wallet-style address: "0x" + last 40 hex chars of SHA-256(public key)."""
    return "0x" + hashlib.sha256(_raw_public_key(public_key)).hexdigest()[-40:]


def verify_signature(fingerprint: str, signature: str, public_key_hex: str) -> bool:
    """Check a signature produced by BackendSigner.sign().

    Args:
        fingerprint: The signed fingerprint string
        signature: "0x"-prefixed hex signature
        public_key_hex: Hex-encoded raw Ed25519 public key

    Returns:
        True if the signature is valid for fingerprint under the key
    """
    try:
        public_key = ed25519.Ed25519PublicKey.from_public_bytes(bytes.fromhex(_strip_hex_prefix(public_key_hex)))
        public_key.verify(bytes.fromhex(_strip_hex_prefix(signature)), fingerprint.encode("utf-8"))
    except (InvalidSignature, ValueError):
        return False
    return True


@dataclass(frozen=True)
class GeneratedKey:
    """Freshly generated signer key material (dev utility)."""

    private_key: str
    public_key: str
    address: str


def generate_keypair() -> GeneratedKey:
    """Generate a new Ed25519 key for backend signing."""
    private_key = ed25519.Ed25519PrivateKey.generate()
    raw_private = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_key = private_key.public_key()
    return GeneratedKey(
        private_key="0x" + raw_private.hex(),
        public_key="0x" + _raw_public_key(public_key).hex(),
        address=address_for(public_key),
    )


@dataclass(frozen=True)
class SigningLogEntry:
    """Audit entry for one backend signing."""

    timestamp: datetime
    signer_address: str
    content_hash: str
    signature: str
    client_id: str


class BackendSigner:
    """Signs fingerprints with a server-held Ed25519 key.

    Checks, in order: enabled, fingerprint format, per-client rate limit.
    """

    def __init__(
        self,
        private_key: ed25519.Ed25519PrivateKey,
        *,
        enabled: bool = True,
        rate_limits: RateLimitRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
        log_size: int = 1000,
    ) -> None:
        """Initialize signer.

        Args:
            private_key: Signing key
            enabled: If False, every sign() raises SigningDisabledError
            rate_limits: Per-client limiter registry (None = unlimited)
            clock: Returns the current UTC time (override in tests)
            log_size: Audit log capacity; the oldest entries are dropped first
        """
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self._address = address_for(self._public_key)
        self._enabled = enabled
        self._rate_limits = rate_limits
        self._clock = clock or _utc_now
        self._log: deque[SigningLogEntry] = deque(maxlen=log_size)
        self._log_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: SignerSettings) -> BackendSigner:
        """Build a signer from configuration.

        The key comes from the environment variable named by
        settings.private_key_env; without it the well-known development
        key is used and a warning is logged.
        """
        key_hex = os.environ.get(settings.private_key_env)
        if not key_hex:
            if settings.enabled:
                logger.warning(
                    "Backend signer using development key",
                    env_var=settings.private_key_env,
                )
            key_hex = _DEV_PRIVATE_KEY_HEX
        return cls(
            load_private_key(key_hex),
            enabled=settings.enabled,
            rate_limits=RateLimitRegistry(settings.rate_limit),
            log_size=settings.log_size,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key(self) -> str:
        return "0x" + _raw_public_key(self._public_key).hex()

    def status(self) -> dict[str, Any]:
        """Signing availability, as reported to clients."""
        return {
            "enabled": self._enabled,
            "address": self._address if self._enabled else None,
            "publicKey": self.public_key if self._enabled else None,
        }

    def sign(self, fingerprint: str, *, client_id: str = "local") -> SignatureResult:
        """Sign a fingerprint.

        Args:
            fingerprint: "0x" + 64 lowercase hex characters
            client_id: Identifier the rate limit applies to

        Returns:
            SignatureResult with "0x"-prefixed hex signature

        Raises:
            SigningDisabledError: If backend signing is disabled
            ValidationError: If fingerprint is malformed
            RateLimitedError: If client_id exceeded its limit
        """
        if not self._enabled:
            raise SigningDisabledError()
        validate_fingerprint(fingerprint, field="fingerprint")

        if self._rate_limits is not None and not self._rate_limits.get_limiter(client_id).try_acquire():
            logger.warning("Backend signing rate limited", client_id=client_id)
            raise RateLimitedError(client_id, retry_after_seconds=self._rate_limits.window_seconds)

        signature = "0x" + self._private_key.sign(fingerprint.encode("utf-8")).hex()
        signed_at = self._clock()

        entry = SigningLogEntry(
            timestamp=signed_at,
            signer_address=self._address,
            content_hash=fingerprint,
            signature=signature,
            client_id=client_id,
        )
        with self._log_lock:
            self._log.append(entry)
        logger.info(
            "Backend signing",
            signer_address=self._address,
            content_hash=fingerprint,
            client_id=client_id,
        )

        return SignatureResult(
            signature=signature,
            signer_address=self._address,
            fingerprint=fingerprint,
            signed_at=signed_at,
        )

    def signing_log(self) -> list[SigningLogEntry]:
        """Snapshot of this signer's audit log, oldest first."""
        with self._log_lock:
            return list(self._log)

    def close(self) -> None:
        if self._rate_limits is not None:
            self._rate_limits.close()

    def __enter__(self) -> BackendSigner:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
