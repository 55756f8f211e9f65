# src/proofmark/core/store/json_store.py
"""Flat JSON file record store.

Keeps every publication in one document:

    {"publications": [<wire record>, ...]}

Writes are read-modify-write under a single-writer lock, and the new
document replaces the old one through a temp file + os.replace, so a
reader never sees a half-written file.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from proofmark.contracts.enums import PublicationStatus
from proofmark.contracts.errors import DuplicateRecordError
from proofmark.contracts.records import PublicationRecord, serialize_datetime
from proofmark.core.logging import get_logger

__all__ = ["JsonRecordStore"]

logger = get_logger(__name__)

_COLLECTION_KEY = "publications"


class JsonRecordStore:
    """Record store backed by a single JSON file.

    The file and its parent directory are created on first use.
    """

    def __init__(self, path: Path) -> None:
        """Initialize store.

        Args:
            path: Location of the JSON document
        """
        self.path = path
        self._lock = threading.Lock()

    def _ensure_file(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_raw([])
            logger.info("Initialized publication store", path=str(self.path))

    def _read_raw(self) -> list[dict[str, Any]]:
        self._ensure_file()
        document = json.loads(self.path.read_text(encoding="utf-8"))
        if type(document) is not dict or type(document.get(_COLLECTION_KEY)) is not list:
            raise ValueError(f"Publication store {self.path} is corrupt: expected an object with a '{_COLLECTION_KEY}' list")
        publications: list[dict[str, Any]] = document[_COLLECTION_KEY]
        return publications

    def _write_raw(self, publications: list[dict[str, Any]]) -> None:
        payload = json.dumps({_COLLECTION_KEY: publications}, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def list(self) -> list[PublicationRecord]:
        with self._lock:
            raw = self._read_raw()
        return [PublicationRecord.from_wire(item) for item in raw]

    def get_by_id(self, publication_id: str) -> PublicationRecord | None:
        for record in self.list():
            if record.id == publication_id:
                return record
        return None

    def get_by_wallet(self, wallet: str) -> list[PublicationRecord]:
        wallet_lower = wallet.lower()
        return [record for record in self.list() if record.publisher_wallet.lower() == wallet_lower]

    def get_by_hash(self, content_hash: str) -> list[PublicationRecord]:
        hash_lower = content_hash.lower()
        return [record for record in self.list() if record.content_hash.lower() == hash_lower]

    def append(self, record: PublicationRecord) -> None:
        """Append a record.

        Raises:
            DuplicateRecordError: If the id is already present
        """
        with self._lock:
            publications = self._read_raw()
            if any(item.get("id") == record.id for item in publications):
                raise DuplicateRecordError(record.id)
            publications.append(record.to_wire())
            self._write_raw(publications)

    def update_status(
        self,
        publication_id: str,
        status: PublicationStatus,
        tx_hash: str | None = None,
        *,
        block_timestamp: datetime | None = None,
        expected_status: PublicationStatus | None = None,
    ) -> bool:
        with self._lock:
            publications = self._read_raw()
            for item in publications:
                if item.get("id") != publication_id:
                    continue
                if expected_status is not None and item.get("status") != expected_status.value:
                    return False
                item["status"] = status.value
                if tx_hash:
                    item["txHash"] = tx_hash
                if block_timestamp is not None:
                    item["blockTimestamp"] = serialize_datetime(block_timestamp)
                self._write_raw(publications)
                return True
            return False
