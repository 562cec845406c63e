"""Tests for database engine initialization."""

from pathlib import Path

from sqlalchemy import inspect, text

from policykit.infrastructure.database import init_database


class TestInitDatabase:
    def test_creates_store(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        try:
            assert (tmp_path / ".policykit" / "policykit.db").exists()
            assert "entities" in inspect(engine).get_table_names()
        finally:
            engine.dispose()

    def test_custom_filename(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path, filename="custom.db")
        engine.dispose()
        assert (tmp_path / ".policykit" / "custom.db").exists()

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path).dispose()
        engine = init_database(tmp_path)
        try:
            with engine.connect() as conn:
                assert conn.execute(text("SELECT COUNT(*) FROM entities")).scalar_one() == 0
        finally:
            engine.dispose()

    def test_wal_mode(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        try:
            with engine.connect() as conn:
                mode = conn.execute(text("PRAGMA journal_mode")).scalar_one()
            assert mode == "wal"
        finally:
            engine.dispose()
