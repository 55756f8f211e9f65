"""Backend signing collaborator."""

from proofmark.core.signing.backend import (
    BackendSigner,
    GeneratedKey,
    SigningLogEntry,
    address_for,
    generate_keypair,
    load_private_key,
    verify_signature,
)

__all__ = [
    "BackendSigner",
    "GeneratedKey",
    "SigningLogEntry",
    "address_for",
    "generate_keypair",
    "load_private_key",
    "verify_signature",
]
