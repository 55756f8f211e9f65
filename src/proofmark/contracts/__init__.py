"""Shared contracts for cross-boundary data types.

All dataclasses, enums, protocols and errors that cross subsystem
boundaries are defined here.

This package is a LEAF MODULE with no outbound dependencies to core.
Settings classes are NOT re-exported here - import them from
proofmark.core.config.

Import patterns:
    from proofmark.contracts import PublicationRecord, PublicationStatus
    from proofmark.core.config import ProofmarkSettings
"""

from proofmark.contracts.enums import ContentType, PublicationStatus
from proofmark.contracts.errors import (
    DuplicateRecordError,
    InvalidStateError,
    NotFoundError,
    ProofmarkError,
    RateLimitedError,
    SignerError,
    SigningDisabledError,
    ValidationError,
)
from proofmark.contracts.fingerprint import is_fingerprint, validate_fingerprint
from proofmark.contracts.records import (
    PublicationDraft,
    PublicationFilter,
    PublicationRecord,
    VerificationResult,
    VersionInfo,
)
from proofmark.contracts.signer import SignatureResult, Signer
from proofmark.contracts.store import RecordStore

__all__ = [
    "ContentType",
    "DuplicateRecordError",
    "InvalidStateError",
    "NotFoundError",
    "ProofmarkError",
    "PublicationDraft",
    "PublicationFilter",
    "PublicationRecord",
    "PublicationStatus",
    "RateLimitedError",
    "RecordStore",
    "SignatureResult",
    "Signer",
    "SignerError",
    "SigningDisabledError",
    "ValidationError",
    "VerificationResult",
    "VersionInfo",
    "is_fingerprint",
    "validate_fingerprint",
]
