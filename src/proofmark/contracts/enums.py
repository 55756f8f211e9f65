"""Status codes and kinds used across subsystem boundaries.

Stored as their string values in every record store backend.
"""

from enum import StrEnum


class PublicationStatus(StrEnum):
    """Lifecycle status of a publication record.

    Stored in the record store (publications.status).

    Transitions: PENDING -> CONFIRMED, PENDING -> FAILED. Nothing else.
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not PublicationStatus.PENDING


class ContentType(StrEnum):
    """Kind of content being registered.

    Stored in the record store (publications.content_type).
    Metadata only - never part of the fingerprint.
    """

    TEXT = "text"
    ARTICLE = "article"
    CODE = "code"
    DOCUMENT = "document"
