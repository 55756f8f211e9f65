"""RecordStore protocol for publication persistence.

This protocol defines the interface implemented by:
- core/store/json_store.py (flat JSON collection)
- core/store/sql_store.py (SQLAlchemy Core tables)

The backing medium is the implementation's concern. Every write must be
atomic with respect to other writers on the same store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from proofmark.contracts.enums import PublicationStatus
from proofmark.contracts.records import PublicationRecord


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for publication record storage backends."""

    def list(self) -> list[PublicationRecord]:
        """Return every record in storage order."""
        ...

    def get_by_id(self, publication_id: str) -> PublicationRecord | None:
        """Return the record with this id, or None."""
        ...

    def get_by_wallet(self, wallet: str) -> list[PublicationRecord]:
        """Return records published by wallet (case-insensitive)."""
        ...

    def get_by_hash(self, content_hash: str) -> list[PublicationRecord]:
        """Return records whose content_hash equals content_hash (case-insensitive)."""
        ...

    def append(self, record: PublicationRecord) -> None:
        """Persist a new record.

        Raises:
            DuplicateRecordError: If a record with the same id exists
        """
        ...

    def update_status(
        self,
        publication_id: str,
        status: PublicationStatus,
        tx_hash: str | None = None,
        *,
        block_timestamp: datetime | None = None,
        expected_status: PublicationStatus | None = None,
    ) -> bool:
        """Change a record's status (and optionally tx_hash / block_timestamp).

        When expected_status is given, the write only happens if the current
        status equals it, checked and written in one atomic step.

        Returns:
            True if the record was updated, False if it does not exist or
            its status did not match expected_status
        """
        ...
