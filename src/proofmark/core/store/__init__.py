"""Record store implementations.

JsonRecordStore - flat JSON document, the default for local use
SqlRecordStore  - SQLAlchemy Core tables (SQLite or PostgreSQL)
"""

from pathlib import Path

from proofmark.contracts.store import RecordStore
from proofmark.core.config import StoreSettings
from proofmark.core.store.database import PublicationDB, SchemaCompatibilityError
from proofmark.core.store.json_store import JsonRecordStore
from proofmark.core.store.sql_store import SqlRecordStore

__all__ = [
    "JsonRecordStore",
    "PublicationDB",
    "SchemaCompatibilityError",
    "SqlRecordStore",
    "open_store",
]


def open_store(settings: StoreSettings) -> RecordStore:
    """Build the record store named by settings.backend."""
    if settings.backend == "json":
        return JsonRecordStore(Path(settings.path))
    return SqlRecordStore(PublicationDB.from_url(settings.url))
