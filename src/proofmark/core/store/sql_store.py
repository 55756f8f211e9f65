# src/proofmark/core/store/sql_store.py
"""SQLAlchemy-backed record store.

Every write runs inside one transaction, so an append or a
compare-and-set status change is atomic against concurrent writers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from proofmark.contracts.enums import PublicationStatus
from proofmark.contracts.errors import DuplicateRecordError
from proofmark.contracts.records import PublicationRecord
from proofmark.core.store.database import PublicationDB
from proofmark.core.store.repositories import PublicationRepository, to_utc
from proofmark.core.store.schema import publications_table

__all__ = ["SqlRecordStore"]


class SqlRecordStore:
    """Record store over a PublicationDB."""

    def __init__(self, db: PublicationDB) -> None:
        self._db = db
        self._repo = PublicationRepository()

    def _fetch(self, query: Any) -> list[PublicationRecord]:
        with self._db.connection() as conn:
            rows = conn.execute(query).fetchall()
        return [self._repo.load(row) for row in rows]

    def list(self) -> list[PublicationRecord]:
        # Insertion order is not tracked by SQL; created_at then id is the stable equivalent
        return self._fetch(select(publications_table).order_by(publications_table.c.created_at, publications_table.c.id))

    def get_by_id(self, publication_id: str) -> PublicationRecord | None:
        records = self._fetch(select(publications_table).where(publications_table.c.id == publication_id))
        return records[0] if records else None

    def get_by_wallet(self, wallet: str) -> list[PublicationRecord]:
        query = (
            select(publications_table)
            .where(func.lower(publications_table.c.publisher_wallet) == wallet.lower())
            .order_by(publications_table.c.created_at, publications_table.c.id)
        )
        return self._fetch(query)

    def get_by_hash(self, content_hash: str) -> list[PublicationRecord]:
        query = (
            select(publications_table)
            .where(func.lower(publications_table.c.content_hash) == content_hash.lower())
            .order_by(publications_table.c.created_at, publications_table.c.id)
        )
        return self._fetch(query)

    def append(self, record: PublicationRecord) -> None:
        """Insert a record.

        Raises:
            DuplicateRecordError: If the id is already present
        """
        stmt = publications_table.insert().values(
            id=record.id,
            title=record.title,
            content_type=record.content_type.value,
            source_url=record.source_url,
            canonicalized_content=record.canonicalized_content,
            content_hash=record.content_hash,
            parent_hash=record.parent_hash,
            publisher_wallet=record.publisher_wallet,
            tx_hash=record.tx_hash,
            block_timestamp=to_utc(record.block_timestamp),
            status=record.status.value,
            created_at=to_utc(record.created_at),
        )
        try:
            with self._db.connection() as conn:
                conn.execute(stmt)
        except IntegrityError as e:
            raise DuplicateRecordError(record.id) from e

    def update_status(
        self,
        publication_id: str,
        status: PublicationStatus,
        tx_hash: str | None = None,
        *,
        block_timestamp: datetime | None = None,
        expected_status: PublicationStatus | None = None,
    ) -> bool:
        values: dict[str, Any] = {"status": status.value}
        if tx_hash:
            values["tx_hash"] = tx_hash
        if block_timestamp is not None:
            values["block_timestamp"] = to_utc(block_timestamp)

        stmt = update(publications_table).where(publications_table.c.id == publication_id)
        if expected_status is not None:
            stmt = stmt.where(publications_table.c.status == expected_status.value)

        with self._db.connection() as conn:
            result = conn.execute(stmt.values(**values))
            return result.rowcount == 1
