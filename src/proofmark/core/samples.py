# src/proofmark/core/samples.py
"""Sample publications for local development and demos.

seed_registry() registers them through the registry, so every sample
carries a real fingerprint. The second sample is a new version of the
first; the last one is left PENDING.
"""

from __future__ import annotations

from dataclasses import dataclass

from proofmark.contracts.enums import ContentType
from proofmark.contracts.records import PublicationDraft, PublicationRecord
from proofmark.core.logging import get_logger
from proofmark.core.registry import PublicationRegistry

__all__ = ["SAMPLE_PUBLICATIONS", "SamplePublication", "seed_registry"]

logger = get_logger(__name__)

_WALLET_A = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb1"
_WALLET_B = "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063"

_GUIDE = """Proof of Publish: A Comprehensive Guide

Proof of publish is a cryptographic method for timestamping content.
By hashing content and registering the hash, we create a durable record of when
and by whom a piece of content was published.

This approach has several key advantages:
- Tamper-evident timestamping
- Independent verification
- Privacy-preserving (only the hash is needed to verify)
- Version tracking through parent hashes"""


@dataclass(frozen=True)
class SamplePublication:
    """One sample: draft fields plus the lifecycle outcome to apply."""

    title: str
    content: str
    content_type: ContentType
    publisher_wallet: str
    source_url: str | None = None
    tx_hash: str | None = None
    """Confirm with this transaction hash; None leaves the sample PENDING."""

    parent_index: int | None = None
    """Index of the earlier sample this one is a new version of."""


SAMPLE_PUBLICATIONS: tuple[SamplePublication, ...] = (
    SamplePublication(
        title="Introduction to Proof of Publish",
        content=_GUIDE,
        content_type=ContentType.ARTICLE,
        publisher_wallet=_WALLET_A,
        source_url="https://example.com/proof-of-publish-intro",
        tx_hash="0x1111222233334444555566667777888899990000aaaabbbbccccddddeeeeffff",
    ),
    SamplePublication(
        title="Introduction to Proof of Publish (Updated)",
        content=_GUIDE.replace("Comprehensive Guide", "Comprehensive Guide (v2)")
        + "\n- Cryptographic proof of authenticity\n\nUpdated to include additional benefits and use cases.",
        content_type=ContentType.ARTICLE,
        publisher_wallet=_WALLET_A,
        source_url="https://example.com/proof-of-publish-intro",
        tx_hash="0x2222333344445555666677778888999900001111aaaabbbbccccddddeeeeffff",
        parent_index=0,
    ),
    SamplePublication(
        title="Registry Client Example",
        content='''from proofmark.contracts import PublicationDraft
from proofmark.core.registry import PublicationRegistry

WALLET = "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063"


def register(registry: PublicationRegistry, text: str) -> str:
    record = registry.create(PublicationDraft(title="Note", content=text, publisher_wallet=WALLET))
    return record.content_hash''',
        content_type=ContentType.CODE,
        publisher_wallet=_WALLET_B,
        tx_hash="0x3333444455556666777788889999aaaabbbbccccddddeeeeffffaaaa11112222",
    ),
    SamplePublication(
        title="Research Paper Draft",
        content="""Decentralized Content Verification: A Novel Approach

Abstract:
This paper presents an approach to content verification using cryptographic
hashing. We demonstrate how content can be timestamped and verified without
revealing the content itself.

Methodology:
SHA-256 over canonicalized text gives every logically identical document the
same fingerprint, regardless of line endings or trailing whitespace.""",
        content_type=ContentType.DOCUMENT,
        publisher_wallet=_WALLET_A,
        source_url="https://example.com/research-paper",
        tx_hash="0x4444555566667777888899990000aaaabbbbccccddddeeeeffff111122223344",
    ),
    SamplePublication(
        title="Quick Note",
        content="""Remember to update the documentation with the canonicalization rules.

Key points:
- Line ending normalization
- Trailing whitespace removal
- Unicode NFC normalization
- Trim blank lines""",
        content_type=ContentType.TEXT,
        publisher_wallet=_WALLET_B,
        tx_hash="0x5555666677778888999900001111222233334444555566667777888899991111",
    ),
    SamplePublication(
        title="Pending Publication",
        content="""This is a test publication that is still pending confirmation.

The transaction has been submitted but not yet confirmed.""",
        content_type=ContentType.ARTICLE,
        publisher_wallet=_WALLET_A,
    ),
)


def seed_registry(
    registry: PublicationRegistry,
    samples: tuple[SamplePublication, ...] = SAMPLE_PUBLICATIONS,
) -> list[PublicationRecord]:
    """Register the samples in order and apply their lifecycle outcome.

    Returns:
        The final state of each seeded record, in sample order
    """
    seeded: list[PublicationRecord] = []
    for sample in samples:
        parent_hash = seeded[sample.parent_index].content_hash if sample.parent_index is not None else None
        record = registry.create(
            PublicationDraft(
                title=sample.title,
                content=sample.content,
                content_type=sample.content_type,
                source_url=sample.source_url,
                parent_hash=parent_hash,
                publisher_wallet=sample.publisher_wallet,
            )
        )
        if sample.tx_hash is not None:
            record = registry.confirm(record.id, sample.tx_hash)
        seeded.append(record)

    logger.info("Seeded sample publications", count=len(seeded))
    return seeded
