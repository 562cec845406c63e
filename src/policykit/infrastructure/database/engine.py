"""Database engine setup for SQLite with WAL mode.

The store lives at ``{data_dir}/.policykit/{filename}``. SQLAlchemy Core
(not ORM) is used: the repository works in short transactions and has
no use for identity maps or session management.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from policykit.infrastructure.database.schema import metadata

DEFAULT_FILENAME = "policykit.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(data_dir: Path, *, filename: str = DEFAULT_FILENAME) -> Engine:
    """Initialize the entity store under ``{data_dir}/.policykit/``.

    Idempotent — safe to call on an existing directory.
    """
    store_dir = data_dir / ".policykit"
    store_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(store_dir / filename)
    metadata.create_all(engine)
    return engine
