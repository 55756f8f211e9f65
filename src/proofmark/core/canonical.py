# src/proofmark/core/canonical.py
"""
Canonical text normalization and content fingerprinting.

Two-phase approach:
1. Canonicalize: Normalize raw text so logically identical content is
   byte-identical (line endings, trailing whitespace, Unicode form, edges)
2. Fingerprint: SHA-256 over the UTF-8 bytes of the canonical text

IMPORTANT: Only the canonical body is hashed. Title, source URL, content
type and every other piece of metadata are stored beside the record but
never reach the digest, so identical content under different titles has
one identity.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata

from proofmark.contracts.fingerprint import FINGERPRINT_PREFIX, is_fingerprint, validate_fingerprint

__all__ = [
    "CANONICAL_VERSION",
    "CANONICAL_WHITESPACE",
    "canonicalize",
    "fingerprint",
    "fingerprint_content",
    "is_fingerprint",
    "validate_fingerprint",
]

# Identifies the canonicalization rules + digest; bump if either changes
CANONICAL_VERSION = "sha256-nfc-v1"

_CRLF = re.compile(r"\r\n")

# ECMAScript \s: whitespace plus line terminators. Not str.isspace():
# U+001C-U+001F and U+0085 are content, U+FEFF is whitespace.
CANONICAL_WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def canonicalize(raw: str) -> str:
    """Produce canonical content for fingerprinting.

    Steps run in this order; each step's output feeds the next:
    1. Normalize CRLF line endings to LF
    2. Strip trailing whitespace (CANONICAL_WHITESPACE) from every line
    3. Unicode NFC normalization (precomposed == base + combining mark)
    4. Strip leading/trailing whitespace, dropping edge blank lines

    Total over all strings and idempotent:
    canonicalize(canonicalize(x)) == canonicalize(x).

    Args:
        raw: Any text

    Returns:
        Canonical content string
    """
    text = _CRLF.sub("\n", raw)
    text = "\n".join(line.rstrip(CANONICAL_WHITESPACE) for line in text.split("\n"))
    text = unicodedata.normalize("NFC", text)
    return text.strip(CANONICAL_WHITESPACE)


def fingerprint(content: str) -> str:
    """Compute the fingerprint of canonical content.

    Args:
        content: Output of canonicalize()

    Returns:
        "0x" + 64 lowercase hex characters (SHA-256)
    """
    digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
    return f"{FINGERPRINT_PREFIX}{digest}"


def fingerprint_content(raw: str) -> str:
    """Canonicalize raw text and fingerprint the result."""
    return fingerprint(canonicalize(raw))
