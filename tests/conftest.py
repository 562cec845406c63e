"""Shared pytest fixtures and test helpers for policykit tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel
from sqlalchemy.engine import Engine

from policykit.domain.classification import ClassificationTable
from policykit.domain.policy import PolicyRule, combine, field_rule
from policykit.infrastructure.database.engine import init_database
from policykit.infrastructure.repository import Entity, SqlRepository

LETTER_GRADES = [(2, "A"), (4, "B"), (8, "C"), (16, "D")]


class UserFields(BaseModel):
    """Declared field schema for ``user`` entities in tests."""

    email: str
    email_confirmed: bool = False
    days_since_last_login: int = 0
    cost: float = 0.0


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def repository(db_engine: Engine) -> SqlRepository:
    return SqlRepository(db_engine)


@pytest.fixture
def letter_table() -> ClassificationTable:
    """Cost-to-letter-grade table: <=2 A, <=4 B, <=8 C, <=16 D, else F."""
    return ClassificationTable(LETTER_GRADES, "F", name="rating")


@pytest.fixture
def active_user() -> PolicyRule:
    return combine(
        [
            field_rule("email_confirmed", "email_confirmed", "==", True),
            field_rule("recent_login", "days_since_last_login", "<=", 14),
        ],
        "all",
        name="active_user",
    )


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def create_user(repository: SqlRepository, email: str, **fields: Any) -> Entity:
    """Store a ``user`` entity with schema defaults applied."""
    data = UserFields(email=email, **fields).model_dump()
    return repository.create("user", data)
