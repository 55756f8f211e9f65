# src/proofmark/core/chain.py
"""Version chain resolution over publication records.

Records link to their predecessor through parent_hash, a weak reference
into the set of content hashes. Nothing prevents dangling references,
forks (several children of one parent) or cycles, so every lookup here
treats them as ordinary data:

- dangling parent: find_parent() returns None
- fork: the earliest created_at wins, then the smallest id
- cycle: traverse_chain() stops and reports where the cycle closed
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import overload

from proofmark.contracts.records import PublicationRecord
from proofmark.core.logging import get_logger

logger = get_logger(__name__)


def _version_order(record: PublicationRecord) -> tuple[object, str]:
    """Deterministic tie-break key: oldest first, then id."""
    return (record.created_at, record.id)


@dataclass(frozen=True)
class ChainTraversal(Sequence[PublicationRecord]):
    """Ordered records from the oldest known ancestor to the newest descendant.

    Behaves as a read-only sequence of records.
    """

    records: tuple[PublicationRecord, ...] = ()
    """Chain members, oldest first."""

    start: str | None = None
    """Fingerprint the traversal was asked about."""

    cycle_detected: bool = False
    """True if parent links looped back onto an already visited fingerprint."""

    cycle_at: str | None = None
    """The fingerprint that was reached twice, if a cycle was found."""

    dangling_parent: str | None = field(default=None)
    """parent_hash of the oldest member when that parent is not in the store."""

    @overload
    def __getitem__(self, index: int) -> PublicationRecord: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[PublicationRecord]: ...

    def __getitem__(self, index: int | slice) -> PublicationRecord | Sequence[PublicationRecord]:
        return self.records[index]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PublicationRecord]:
        return iter(self.records)

    @property
    def root(self) -> PublicationRecord | None:
        return self.records[0] if self.records else None

    @property
    def head(self) -> PublicationRecord | None:
        return self.records[-1] if self.records else None


class VersionChainResolver:
    """Resolves parent/child links over a snapshot of publication records.

    The resolver indexes the records once at construction; build a new
    one to see later writes.

    Example:
        resolver = VersionChainResolver(store.list())
        chain = resolver.traverse_chain(record.content_hash)
        for version in chain:
            print(version.id, version.title)
    """

    def __init__(self, records: Iterable[PublicationRecord]) -> None:
        self._by_hash: dict[str, list[PublicationRecord]] = defaultdict(list)
        self._by_parent: dict[str, list[PublicationRecord]] = defaultdict(list)
        for record in records:
            self._by_hash[record.content_hash.lower()].append(record)
            if record.parent_hash is not None:
                self._by_parent[record.parent_hash.lower()].append(record)
        for bucket in (*self._by_hash.values(), *self._by_parent.values()):
            bucket.sort(key=_version_order)

    def find_by_fingerprint(self, fingerprint: str) -> PublicationRecord | None:
        """Return the record with this content hash.

        Identical content may be registered more than once; the earliest
        registration represents the fingerprint in the chain.
        """
        candidates = self._by_hash.get(fingerprint.lower())
        return candidates[0] if candidates else None

    def find_parent(self, record: PublicationRecord) -> PublicationRecord | None:
        """Return the record's predecessor, or None if it has none or it is not visible."""
        if record.parent_hash is None:
            return None
        return self.find_by_fingerprint(record.parent_hash)

    def find_children(self, fingerprint: str) -> list[PublicationRecord]:
        """Return every record whose parent_hash is fingerprint, oldest first."""
        return list(self._by_parent.get(fingerprint.lower(), ()))

    def find_child(self, fingerprint: str) -> PublicationRecord | None:
        """Return the successor of fingerprint.

        On a fork the earliest created_at wins (then the smallest id), so
        the answer does not depend on storage order.
        """
        children = self._by_parent.get(fingerprint.lower())
        return children[0] if children else None

    def traverse_chain(self, fingerprint: str) -> ChainTraversal:
        """Walk from the oldest ancestor of fingerprint to its newest descendant.

        Ancestors are followed through parent_hash, descendants through
        find_child(). A visited-set of fingerprints guards both directions;
        reaching a fingerprint twice ends the walk and marks the result
        with cycle_detected.

        Args:
            fingerprint: Content hash to start from

        Returns:
            ChainTraversal (empty if fingerprint is unknown)
        """
        start = self.find_by_fingerprint(fingerprint)
        if start is None:
            return ChainTraversal(start=fingerprint)

        visited: set[str] = {start.content_hash.lower()}
        cycle_at: str | None = None
        dangling_parent: str | None = None

        ancestors: list[PublicationRecord] = []
        current = start
        while current.parent_hash is not None:
            parent_key = current.parent_hash.lower()
            if parent_key in visited:
                cycle_at = current.parent_hash
                break
            parent = self.find_by_fingerprint(parent_key)
            if parent is None:
                dangling_parent = current.parent_hash
                break
            visited.add(parent_key)
            ancestors.append(parent)
            current = parent

        descendants: list[PublicationRecord] = []
        if cycle_at is None:
            current = start
            while (child := self.find_child(current.content_hash)) is not None:
                child_key = child.content_hash.lower()
                if child_key in visited:
                    cycle_at = child.content_hash
                    break
                visited.add(child_key)
                descendants.append(child)
                current = child

        if cycle_at is not None:
            logger.warning(
                "Cycle detected in version chain",
                start=start.content_hash,
                cycle_at=cycle_at,
                visited=len(visited),
            )

        ancestors.reverse()
        return ChainTraversal(
            records=(*ancestors, start, *descendants),
            start=fingerprint,
            cycle_detected=cycle_at is not None,
            cycle_at=cycle_at,
            dangling_parent=dangling_parent,
        )
