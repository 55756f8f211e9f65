# src/proofmark/core/store/schema.py
"""SQLAlchemy table definitions for the publication store.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
)

# Shared metadata for all tables
metadata = MetaData()

# === Publications ===

publications_table = Table(
    "publications",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("title", Text, nullable=False),
    Column("content_type", String(16), nullable=False),
    Column("source_url", Text),
    Column("canonicalized_content", Text, nullable=False),
    # "0x" + 64 hex characters
    Column("content_hash", String(66), nullable=False),
    # Weak reference to another publication's content_hash - deliberately no FK,
    # parents may be registered later or never
    Column("parent_hash", String(66)),
    Column("publisher_wallet", String(128), nullable=False),
    Column("tx_hash", String(128)),
    Column("block_timestamp", DateTime(timezone=True)),
    Column("status", String(16), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("status IN ('PENDING', 'CONFIRMED', 'FAILED')", name="ck_publications_status"),
)

Index("ix_publications_content_hash", publications_table.c.content_hash)
Index("ix_publications_parent_hash", publications_table.c.parent_hash)
Index("ix_publications_publisher_wallet", publications_table.c.publisher_wallet)
Index("ix_publications_created_at", publications_table.c.created_at)
