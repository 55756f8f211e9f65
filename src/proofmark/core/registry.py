# src/proofmark/core/registry.py
"""Publication registry: the facade over canonicalization, fingerprints,
version chains and the record store.

This is the only place core errors are raised at the boundary. Errors are
never swallowed and never retried here - retries belong to the caller.
Signer errors pass through unchanged.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from proofmark.contracts.enums import ContentType, PublicationStatus
from proofmark.contracts.errors import InvalidStateError, NotFoundError, ValidationError
from proofmark.contracts.fingerprint import validate_fingerprint
from proofmark.contracts.records import (
    PublicationDraft,
    PublicationFilter,
    PublicationRecord,
    VerificationResult,
    VersionInfo,
)
from proofmark.contracts.signer import SignatureResult, Signer
from proofmark.contracts.store import RecordStore
from proofmark.core.canonical import canonicalize, fingerprint
from proofmark.core.chain import ChainTraversal, VersionChainResolver
from proofmark.core.logging import get_logger

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _generate_id() -> str:
    return uuid.uuid4().hex


def _coerce_content_type(value: ContentType | str) -> ContentType:
    if isinstance(value, ContentType):
        return value
    try:
        return ContentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in ContentType)
        raise ValidationError(f"content_type must be one of {allowed}; got {value!r}", field="content_type") from None


def _validate_draft(draft: PublicationDraft) -> tuple[ContentType, str | None]:
    """Check a draft before anything is signed or persisted.

    Returns:
        (content_type, parent_hash) with empty parent_hash folded to None
    """
    if not draft.title or not draft.title.strip():
        raise ValidationError("title must not be empty", field="title")
    if not draft.content or not draft.content.strip():
        raise ValidationError("content must not be empty", field="content")
    parent_hash = draft.parent_hash or None
    if parent_hash is not None:
        validate_fingerprint(parent_hash, field="parent_hash")
    return _coerce_content_type(draft.content_type), parent_hash


class PublicationRegistry:
    """Create, confirm, verify and query publication records.

    Example:
        registry = PublicationRegistry(JsonRecordStore(Path("data/publications.json")))
        record = registry.create(PublicationDraft(title="Notes", content=text, publisher_wallet=wallet))
        registry.confirm(record.id, tx_hash)
        result = registry.verify(text)
        assert result.matched
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize registry.

        Args:
            store: Record store collaborator
            clock: Returns the current UTC time (override in tests)
            id_factory: Returns a fresh record id (override in tests)
        """
        self._store = store
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _generate_id
        # Serializes read-check-write status transitions within this process;
        # the store's expected_status check covers other processes
        self._transition_lock = threading.Lock()

    # ── Create ────────────────────────────────────────────────────────────

    def create(self, draft: PublicationDraft) -> PublicationRecord:
        """Register content as a new PENDING publication.

        Args:
            draft: Title, raw content and optional metadata

        Returns:
            The persisted record

        Raises:
            ValidationError: If title or content is empty, parent_hash is
                malformed, or content_type is unknown
        """
        content_type, parent_hash = _validate_draft(draft)

        canonical = canonicalize(draft.content)
        record = PublicationRecord(
            id=self._id_factory(),
            title=draft.title.strip(),
            content_type=content_type,
            canonicalized_content=canonical,
            content_hash=fingerprint(canonical),
            publisher_wallet=draft.publisher_wallet,
            status=PublicationStatus.PENDING,
            created_at=self._clock(),
            source_url=draft.source_url or None,
            parent_hash=parent_hash,
        )
        self._store.append(record)

        logger.info(
            "Publication created",
            publication_id=record.id,
            content_hash=record.content_hash,
            parent_hash=record.parent_hash,
            publisher=record.publisher_wallet,
        )
        return record

    def publish(
        self,
        draft: PublicationDraft,
        signer: Signer,
        *,
        client_id: str = "local",
    ) -> tuple[PublicationRecord, SignatureResult]:
        """Sign the draft's fingerprint, then create the record.

        The signer's address becomes the publisher wallet. If signing fails,
        nothing is persisted and the signer's error propagates unchanged.

        Raises:
            ValidationError: As for create()
            SigningDisabledError: Propagated from the signer
            RateLimitedError: Propagated from the signer
        """
        _validate_draft(draft)
        signature = signer.sign(fingerprint(canonicalize(draft.content)), client_id=client_id)
        signed_draft = PublicationDraft(
            title=draft.title,
            content=draft.content,
            content_type=draft.content_type,
            source_url=draft.source_url,
            parent_hash=draft.parent_hash,
            publisher_wallet=signature.signer_address,
        )
        return self.create(signed_draft), signature

    # ── Status transitions ────────────────────────────────────────────────

    def confirm(self, publication_id: str, tx_hash: str) -> PublicationRecord:
        """Mark a PENDING publication CONFIRMED and stamp tx_hash / block_timestamp.

        Raises:
            ValidationError: If tx_hash is empty
            NotFoundError: If publication_id is unknown
            InvalidStateError: If the publication is not PENDING
        """
        if not tx_hash:
            raise ValidationError("tx_hash must not be empty", field="tx_hash")
        return self._transition(publication_id, PublicationStatus.CONFIRMED, tx_hash=tx_hash, block_timestamp=self._clock())

    def fail(self, publication_id: str, *, tx_hash: str | None = None) -> PublicationRecord:
        """Mark a PENDING publication FAILED.

        Raises:
            NotFoundError: If publication_id is unknown
            InvalidStateError: If the publication is not PENDING
        """
        return self._transition(publication_id, PublicationStatus.FAILED, tx_hash=tx_hash, block_timestamp=None)

    def _transition(
        self,
        publication_id: str,
        target: PublicationStatus,
        *,
        tx_hash: str | None,
        block_timestamp: datetime | None,
    ) -> PublicationRecord:
        with self._transition_lock:
            current = self._store.get_by_id(publication_id)
            if current is None:
                raise NotFoundError("Publication", publication_id)
            if current.status is not PublicationStatus.PENDING:
                raise InvalidStateError(publication_id, current.status.value, target.value)

            updated = self._store.update_status(
                publication_id,
                target,
                tx_hash,
                block_timestamp=block_timestamp,
                expected_status=PublicationStatus.PENDING,
            )
            if not updated:
                # Another writer moved it first
                latest = self._store.get_by_id(publication_id)
                if latest is None:
                    raise NotFoundError("Publication", publication_id)
                raise InvalidStateError(publication_id, latest.status.value, target.value)

            record = self._store.get_by_id(publication_id)
            if record is None:
                raise NotFoundError("Publication", publication_id)

        logger.info(
            "Publication status changed",
            publication_id=publication_id,
            previous_status=PublicationStatus.PENDING.value,
            status=target.value,
            tx_hash=record.tx_hash,
        )
        return record

    # ── Verification ──────────────────────────────────────────────────────

    def verify(self, raw_content: str) -> VerificationResult:
        """Check raw content against every registered fingerprint.

        All records sharing the fingerprint are returned; independent
        publishers may register identical content.
        """
        return self._verify(fingerprint(canonicalize(raw_content)))

    def verify_fingerprint(self, content_hash: str) -> VerificationResult:
        """Check a precomputed fingerprint.

        Raises:
            ValidationError: If content_hash is not a well-formed fingerprint
        """
        return self._verify(validate_fingerprint(content_hash, field="content_hash"))

    def _verify(self, content_hash: str) -> VerificationResult:
        matches = sorted(self._store.get_by_hash(content_hash), key=lambda r: (r.created_at, r.id))
        result = VerificationResult(fingerprint=content_hash, matches=matches)
        logger.info("Verification performed", content_hash=content_hash, matched=result.matched, match_count=len(matches))
        return result

    # ── Queries ───────────────────────────────────────────────────────────

    def get(self, publication_id: str) -> PublicationRecord:
        """Return the publication with this id.

        Raises:
            NotFoundError: If publication_id is unknown
        """
        record = self._store.get_by_id(publication_id)
        if record is None:
            raise NotFoundError("Publication", publication_id)
        return record

    def get_by_fingerprint(self, content_hash: str) -> PublicationRecord:
        """Return the earliest publication carrying content_hash.

        Raises:
            ValidationError: If content_hash is malformed
            NotFoundError: If no publication carries it
        """
        validate_fingerprint(content_hash, field="content_hash")
        record = self._resolver().find_by_fingerprint(content_hash)
        if record is None:
            raise NotFoundError("Fingerprint", content_hash)
        return record

    def list(self, filter: PublicationFilter | None = None) -> list[PublicationRecord]:
        """List publications, newest created_at first.

        wallet matches case-insensitively; search_term matches
        case-insensitively against title, id or content_hash.
        """
        criteria = filter or PublicationFilter()
        records = self._store.get_by_wallet(criteria.wallet) if criteria.wallet else self._store.list()

        if criteria.status is not None:
            records = [r for r in records if r.status is criteria.status]

        if criteria.search_term:
            needle = criteria.search_term.lower()
            records = [r for r in records if needle in r.title.lower() or needle in r.id.lower() or needle in r.content_hash.lower()]

        # Newest first; id breaks ties so equal timestamps keep a stable order
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    def version_info(self, publication_id: str) -> VersionInfo:
        """Return a publication with its previous and next versions.

        Raises:
            NotFoundError: If publication_id is unknown
        """
        record = self.get(publication_id)
        resolver = self._resolver()
        return VersionInfo(
            record=record,
            previous=resolver.find_parent(record),
            next=resolver.find_child(record.content_hash),
        )

    def chain(self, content_hash: str) -> ChainTraversal:
        """Traverse the version chain through content_hash.

        Raises:
            ValidationError: If content_hash is malformed
        """
        validate_fingerprint(content_hash, field="content_hash")
        return self._resolver().traverse_chain(content_hash)

    def _resolver(self) -> VersionChainResolver:
        return VersionChainResolver(self._store.list())
