"""Publication record contracts.

These are strict contracts - enum fields must carry proper enum types and
fingerprint fields must be well-formed. Store implementations convert
strings to enums when loading; a bad value in our own store crashes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from proofmark.contracts.enums import ContentType, PublicationStatus
from proofmark.contracts.errors import ValidationError
from proofmark.contracts.fingerprint import is_fingerprint, validate_fingerprint


def _validate_enum(value: object, enum_type: type, field_name: str) -> None:
    """Validate that value is an instance of the expected enum type.

    No coercion, no defaults - the repository layer converts strings.
    """
    if value is not None and not isinstance(value, enum_type):
        raise TypeError(f"{field_name} must be {enum_type.__name__}, got {type(value).__name__}: {value!r}")


def serialize_datetime(value: datetime | None) -> str | None:
    """Render a timestamp as ISO-8601 in UTC (naive values are assumed UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if value is None or value == "":
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(frozen=True)
class PublicationRecord:
    """One registered content version.

    Only status, tx_hash and block_timestamp ever change after creation,
    and they change by the store writing a new value, never in place.
    """

    id: str
    title: str
    content_type: ContentType
    canonicalized_content: str
    content_hash: str
    publisher_wallet: str
    status: PublicationStatus
    created_at: datetime
    source_url: str | None = None
    parent_hash: str | None = None
    tx_hash: str | None = None
    block_timestamp: datetime | None = None

    def __post_init__(self) -> None:
        _validate_enum(self.content_type, ContentType, "content_type")
        _validate_enum(self.status, PublicationStatus, "status")
        if not is_fingerprint(self.content_hash):
            raise ValueError(f"content_hash is not a fingerprint: {self.content_hash!r}")
        if self.parent_hash is not None and not is_fingerprint(self.parent_hash):
            raise ValueError(f"parent_hash is not a fingerprint: {self.parent_hash!r}")

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the transport shape (camelCase, ISO timestamps)."""
        return {
            "id": self.id,
            "title": self.title,
            "contentType": self.content_type.value,
            "sourceUrl": self.source_url,
            "canonicalizedContent": self.canonicalized_content,
            "contentHash": self.content_hash,
            "parentHash": self.parent_hash,
            "publisherWallet": self.publisher_wallet,
            "txHash": self.tx_hash,
            "blockTimestamp": serialize_datetime(self.block_timestamp),
            "status": self.status.value,
            "createdAt": serialize_datetime(self.created_at),
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> PublicationRecord:
        """Build a record from the transport shape.

        Optional fields may be missing, null, or empty strings.

        Raises:
            ValidationError: If a required field is missing, a fingerprint is
                malformed, or an enum value is unknown
        """
        for required in ("id", "title", "contentType", "canonicalizedContent", "contentHash", "publisherWallet", "status", "createdAt"):
            if required not in data:
                raise ValidationError(f"Publication record is missing '{required}'", field=required)

        try:
            content_type = ContentType(data["contentType"])
        except ValueError:
            raise ValidationError(f"Unknown contentType: {data['contentType']!r}", field="contentType") from None
        try:
            status = PublicationStatus(data["status"])
        except ValueError:
            raise ValidationError(f"Unknown status: {data['status']!r}", field="status") from None

        parent_hash = data.get("parentHash") or None
        if parent_hash is not None:
            validate_fingerprint(parent_hash, field="parentHash")

        created_at = parse_datetime(data["createdAt"])
        if created_at is None:
            raise ValidationError("createdAt must not be empty", field="createdAt")

        return cls(
            id=str(data["id"]),
            title=data["title"],
            content_type=content_type,
            canonicalized_content=data["canonicalizedContent"],
            content_hash=validate_fingerprint(data["contentHash"], field="contentHash"),
            publisher_wallet=data["publisherWallet"],
            status=status,
            created_at=created_at,
            source_url=data.get("sourceUrl") or None,
            parent_hash=parent_hash,
            tx_hash=data.get("txHash") or None,
            block_timestamp=parse_datetime(data.get("blockTimestamp")),
        )


@dataclass(frozen=True)
class PublicationDraft:
    """Caller input for creating a publication.

    content is the raw text; the registry canonicalizes it.
    content_type accepts the enum or its string value.
    """

    title: str
    content: str
    content_type: ContentType | str = ContentType.TEXT
    source_url: str | None = None
    parent_hash: str | None = None
    publisher_wallet: str = ""


@dataclass(frozen=True)
class PublicationFilter:
    """Filter for listing publications. All criteria are optional and ANDed."""

    wallet: str | None = None
    status: PublicationStatus | None = None
    search_term: str | None = None


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking content against the registry."""

    fingerprint: str
    matches: list[PublicationRecord] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return len(self.matches) > 0

    def to_wire(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "matched": self.matched,
            "matches": [record.to_wire() for record in self.matches],
        }


@dataclass(frozen=True)
class VersionInfo:
    """A record together with its resolved neighbours in the version chain."""

    record: PublicationRecord
    previous: PublicationRecord | None
    next: PublicationRecord | None

    def to_wire(self) -> dict[str, Any]:
        payload = self.record.to_wire()
        payload["prevVersion"] = self.previous.id if self.previous is not None else None
        payload["nextVersion"] = self.next.id if self.next is not None else None
        return payload
