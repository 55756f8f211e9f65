"""Core engine: canonicalization, fingerprints, version chains, registry."""

from proofmark.core.canonical import (
    CANONICAL_VERSION,
    canonicalize,
    fingerprint,
    fingerprint_content,
)
from proofmark.core.chain import ChainTraversal, VersionChainResolver
from proofmark.core.registry import PublicationRegistry

__all__ = [
    "CANONICAL_VERSION",
    "ChainTraversal",
    "PublicationRegistry",
    "VersionChainResolver",
    "canonicalize",
    "fingerprint",
    "fingerprint_content",
]
