"""
Proofmark: content fingerprint registry with version chains.

Registers a SHA-256 fingerprint of canonicalized text together with
versioning metadata, and verifies later content against it.
"""

__version__ = "0.1.0"
