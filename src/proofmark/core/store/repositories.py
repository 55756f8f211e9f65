"""Repository layer for publication rows.

Handles the seam between SQLAlchemy rows (strings, naive SQLite
timestamps) and domain objects (strict enum types, aware UTC datetimes).
This is NOT a trust boundary - if the database has bad data, we crash.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.engine import Row as SARow

from proofmark.contracts.enums import ContentType, PublicationStatus
from proofmark.contracts.records import PublicationRecord


def to_utc(value: datetime | None) -> datetime | None:
    """Normalize a timestamp to aware UTC (naive values are assumed UTC).

    SQLite drops tzinfo on the way in and out, so values are written in
    UTC and re-tagged on load.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class PublicationRepository:
    """Repository for PublicationRecord rows."""

    def load(self, row: SARow[Any]) -> PublicationRecord:
        """Load PublicationRecord from database row.

        Converts content_type and status strings to enums. Crashes on invalid data.
        """
        created_at = to_utc(row.created_at)
        if created_at is None:
            raise ValueError(f"publications.created_at is NULL for {row.id}")
        return PublicationRecord(
            id=row.id,
            title=row.title,
            content_type=ContentType(row.content_type),  # Convert HERE
            canonicalized_content=row.canonicalized_content,
            content_hash=row.content_hash,
            publisher_wallet=row.publisher_wallet,
            status=PublicationStatus(row.status),  # Convert HERE
            created_at=created_at,
            source_url=row.source_url,
            parent_hash=row.parent_hash,
            tx_hash=row.tx_hash,
            block_timestamp=to_utc(row.block_timestamp),
        )
