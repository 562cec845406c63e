"""SQLite database engine and schema via SQLAlchemy Core."""

from policykit.infrastructure.database.engine import (
    DEFAULT_FILENAME,
    create_db_engine,
    init_database,
)
from policykit.infrastructure.database.schema import entities, metadata

__all__ = [
    "DEFAULT_FILENAME",
    "create_db_engine",
    "entities",
    "init_database",
    "metadata",
]
