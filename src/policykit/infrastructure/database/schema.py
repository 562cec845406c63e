"""SQLAlchemy Core table definitions for the entity store.

Entities are schema-less at the storage level: each row keeps its
field values as a JSON document. Field schemas are enforced above
the store by the service operations that write them.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

entities = Table(
    "entities",
    metadata,
    # Autoincrement id doubles as creation order for stable tie-breaks.
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", Text, nullable=False),
    Column("fields", JSON, nullable=False),
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
    Index("ix_entities_kind", "kind"),
)
