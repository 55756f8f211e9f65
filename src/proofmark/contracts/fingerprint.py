"""Fingerprint string format shared by every boundary.

A fingerprint is "0x" followed by exactly 64 lowercase hex characters
(a SHA-256 digest). Anything else is rejected - no case folding, no
trimming, no silent repair.
"""

import re

from proofmark.contracts.errors import ValidationError

FINGERPRINT_PREFIX = "0x"
FINGERPRINT_HEX_LENGTH = 64

# Compiled once, used on every boundary crossing
_FINGERPRINT_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


def is_fingerprint(value: object) -> bool:
    """Return True if value is a well-formed fingerprint string."""
    return isinstance(value, str) and _FINGERPRINT_PATTERN.fullmatch(value) is not None


def validate_fingerprint(value: object, *, field: str = "fingerprint") -> str:
    """Return value unchanged if it is a well-formed fingerprint.

    Args:
        value: Candidate fingerprint
        field: Input field name used in the error message

    Returns:
        The fingerprint string

    Raises:
        ValidationError: If value is not "0x" + 64 lowercase hex characters
    """
    if not is_fingerprint(value):
        raise ValidationError(
            f"{field} must be '0x' followed by {FINGERPRINT_HEX_LENGTH} lowercase hex characters, got {repr(value)[:80]}",
            field=field,
        )
    return value  # type: ignore[return-value]  # narrowed by is_fingerprint
