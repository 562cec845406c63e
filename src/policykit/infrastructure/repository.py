"""Entity repository with transactional units of work.

The toolkit consumes a *repository capability* (``find`` / ``create`` /
``update`` plus an atomic ``with_transaction`` boundary) and a *snapshot
capability*. :class:`SqlRepository` is the SQLite implementation of both;
any object satisfying :class:`Repository` can stand in for it.

Writes made through a :class:`RepositoryTransaction` commit together
when the block exits normally and roll back together on any exception.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import insert, select, update

from policykit.domain.errors import EntityNotFoundError
from policykit.infrastructure.database.schema import entities

T = TypeVar("T")

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class Entity(BaseModel):
    """A stored record. Instances are detached copies, never live handles."""

    model_config = ConfigDict(frozen=True)

    id: int
    kind: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created: str
    modified: str

    def snapshot(self) -> Mapping[str, Any]:
        """Read-only ``{"id": ..., **fields}`` view for policy evaluation."""
        return MappingProxyType({**self.fields, "id": self.id})


def snapshot_of(entity: Entity) -> Mapping[str, Any]:
    """Snapshot capability: freeze an entity's fields for policy evaluation."""
    return entity.snapshot()


class UnitOfWork(Protocol):
    """Repository operations available inside a transaction."""

    def find(self, criteria: Mapping[str, Any] | None = None) -> list[Entity]: ...

    def create(self, kind: str, fields: Mapping[str, Any]) -> Entity: ...

    def update(self, entity: Entity | int, fields: Mapping[str, Any]) -> Entity: ...


class Repository(UnitOfWork, Protocol):
    """Repository capability with an atomic commit/rollback boundary."""

    def with_transaction(self, fn: Callable[[UnitOfWork], T]) -> T: ...


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _row_to_entity(row: Mapping[str, Any]) -> Entity:
    return Entity(
        id=row["id"],
        kind=row["kind"],
        fields=dict(row["fields"] or {}),
        created=row["created"],
        modified=row["modified"],
    )


def _matches(entity: Entity, criteria: Mapping[str, Any]) -> bool:
    for key, expected in criteria.items():
        if key == "kind":
            continue
        actual = entity.id if key == "id" else entity.fields.get(key)
        if actual != expected:
            return False
    return True


class RepositoryTransaction:
    """Unit of work bound to one open connection.

    Reads see this transaction's own pending writes.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def find(self, criteria: Mapping[str, Any] | None = None) -> list[Entity]:
        """Entities matching *criteria*, in creation (id) order.

        ``kind`` is matched in SQL; every other key is compared against the
        entity's top-level field of the same name (``id`` against the id).
        """
        criteria = criteria or {}
        stmt = select(entities).order_by(entities.c.id)
        if "kind" in criteria:
            stmt = stmt.where(entities.c.kind == criteria["kind"])
        rows = self.conn.execute(stmt).mappings().all()
        found = (_row_to_entity(row) for row in rows)
        return [entity for entity in found if _matches(entity, criteria)]

    def get(self, entity_id: int) -> Entity | None:
        stmt = select(entities).where(entities.c.id == entity_id)
        row = self.conn.execute(stmt).mappings().first()
        return _row_to_entity(row) if row is not None else None

    def create(self, kind: str, fields: Mapping[str, Any]) -> Entity:
        now = _now_iso()
        result = self.conn.execute(
            insert(entities).values(kind=kind, fields=dict(fields), created=now, modified=now)
        )
        entity_id = result.inserted_primary_key[0]
        logger.debug("Created %s entity %s", kind, entity_id)
        return Entity(id=entity_id, kind=kind, fields=dict(fields), created=now, modified=now)

    def update(self, entity: Entity | int, fields: Mapping[str, Any]) -> Entity:
        """Merge *fields* into the stored entity's fields.

        Raises:
            EntityNotFoundError: no entity with that id exists.
        """
        entity_id = entity.id if isinstance(entity, Entity) else entity
        current = self.get(entity_id)
        if current is None:
            msg = f"Entity {entity_id} not found"
            raise EntityNotFoundError(msg, entity_id=entity_id)

        merged = {**current.fields, **fields}
        now = _now_iso()
        self.conn.execute(
            update(entities).where(entities.c.id == entity_id).values(fields=merged, modified=now)
        )
        return current.model_copy(update={"fields": merged, "modified": now})


class SqlRepository:
    """SQLite-backed repository implementing :class:`Repository`.

    Top-level ``find`` / ``create`` / ``update`` each run in their own short
    transaction. Multi-step mutations belong in :meth:`transaction` or
    :meth:`with_transaction` and must use the yielded unit of work.

    Usage::

        with repo.transaction() as txn:
            user = txn.create("user", {"email": "a@example.com"})
            txn.create("profile", {"user_id": user.id})
            # Both commit on success, both roll back on failure.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def transaction(self) -> Iterator[RepositoryTransaction]:
        """Atomic boundary: commit on normal exit, roll back on any exception."""
        with self._engine.begin() as conn:
            try:
                yield RepositoryTransaction(conn)
            except BaseException:
                logger.debug("Rolling back repository transaction")
                raise

    def with_transaction(self, fn: Callable[[UnitOfWork], T]) -> T:
        """Run ``fn(uow)`` inside :meth:`transaction` and return its result."""
        with self.transaction() as txn:
            return fn(txn)

    def find(self, criteria: Mapping[str, Any] | None = None) -> list[Entity]:
        with self._engine.connect() as conn:
            return RepositoryTransaction(conn).find(criteria)

    def get(self, entity_id: int) -> Entity | None:
        with self._engine.connect() as conn:
            return RepositoryTransaction(conn).get(entity_id)

    def create(self, kind: str, fields: Mapping[str, Any]) -> Entity:
        with self.transaction() as txn:
            return txn.create(kind, fields)

    def update(self, entity: Entity | int, fields: Mapping[str, Any]) -> Entity:
        with self.transaction() as txn:
            return txn.update(entity, fields)

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()
