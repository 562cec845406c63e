"""Query specifications — declarative, re-executable entity selection.

A :class:`QuerySpec` pairs a filter rule with an optional ordering field.
It is validated against a declared field set when built and executed
against any data source exposing ``find(criteria)``. Results are lazy
and restartable: every iteration re-reads the source.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel

from policykit.domain.errors import MissingAttributeError, ValidationError
from policykit.domain.policy import PolicyRule, make_snapshot


class Record(Protocol):
    """Minimal entity shape a query needs: a stable id and a snapshot."""

    @property
    def id(self) -> int: ...

    def snapshot(self) -> Mapping[str, Any]: ...


class DataSource(Protocol):
    """Anything that can enumerate records matching simple criteria."""

    def find(self, criteria: Mapping[str, Any] | None = None) -> Iterable[Record]: ...


def declared_fields(schema: type[BaseModel] | Iterable[str]) -> frozenset[str]:
    """Field names declared by a pydantic model class or a plain iterable, plus ``id``."""
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        names: Iterable[str] = schema.model_fields
    else:
        names = schema
    return frozenset(names) | {"id"}


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Filter rule plus optional ordering, independent of any backing store."""

    filter: PolicyRule
    fields: frozenset[str]
    order_by: str | None = None
    descending: bool = False
    kind: str | None = None
    limit: int | None = None

    @classmethod
    def build(
        cls,
        filter_rule: PolicyRule,
        order_by: str | None = None,
        *,
        fields: type[BaseModel] | Iterable[str],
        kind: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> QuerySpec:
        """Validate and build a spec.

        Raises:
            ValidationError: the filter or ordering names an undeclared
                field, or *limit* is negative.
        """
        declared = declared_fields(fields)
        causes = [
            _undeclared_cause(filter_rule, name) for name in sorted(filter_rule.fields - declared)
        ]
        if order_by is not None and order_by not in declared:
            causes.append(
                {
                    "code": ValidationError.code,
                    "message": f"Cannot order by undeclared field {order_by!r}",
                    "detail": {"field": order_by},
                }
            )
        if limit is not None and limit < 0:
            causes.append(
                {
                    "code": ValidationError.code,
                    "message": f"Limit must be non-negative, got {limit}",
                    "detail": {"limit": limit},
                }
            )
        if causes:
            raise ValidationError(causes)
        return cls(
            filter=filter_rule,
            fields=declared,
            order_by=order_by,
            descending=descending,
            kind=kind,
            limit=limit,
        )

    def criteria(self) -> dict[str, Any]:
        """Criteria pushed down to the data source."""
        return {"kind": self.kind} if self.kind is not None else {}

    def execute(self, source: DataSource) -> QueryResults:
        return QueryResults(self, source)


class QueryResults:
    """Lazy, restartable result sequence of a :class:`QuerySpec`.

    Nothing is read until iteration starts; each new iteration re-executes
    against the source's current state. Call :meth:`materialize` to keep
    a fixed copy.
    """

    def __init__(self, spec: QuerySpec, source: DataSource) -> None:
        self._spec = spec
        self._source = source

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    def __iter__(self) -> Iterator[Record]:
        spec = self._spec
        matches = (
            record
            for record in self._source.find(spec.criteria())
            if _matches(spec, record)
        )
        if spec.order_by is not None:
            matches = iter(_ordered(matches, spec.order_by, descending=spec.descending))
        if spec.limit is None:
            yield from matches
            return
        for count, record in enumerate(matches):
            if count >= spec.limit:
                return
            yield record

    def materialize(self) -> list[Record]:
        return list(self)

    def first(self) -> Record | None:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)


def _ordered(records: Iterable[Record], key: str, *, descending: bool) -> list[Record]:
    """Sort by *key* with ``None`` last and ties broken by ascending id."""
    present: list[tuple[Any, Record]] = []
    missing: list[Record] = []
    for record in records:
        value = record.snapshot().get(key)
        if value is None:
            missing.append(record)
        else:
            present.append((value, record))

    # Stable sorts: id first, then the ordering value keeps id order on ties.
    present.sort(key=lambda pair: pair[1].id)
    present.sort(key=lambda pair: pair[0], reverse=descending)
    missing.sort(key=lambda record: record.id)
    return [record for _, record in present] + missing


def _undeclared_cause(rule: PolicyRule, name: str) -> dict[str, Any]:
    return {
        "code": ValidationError.code,
        "message": f"Filter {rule.name!r} references undeclared field {name!r}",
        "detail": {"field": name, "rule": rule.name},
    }


def _matches(spec: QuerySpec, record: Record) -> bool:
    """Evaluate the filter against the declared part of *record*'s snapshot.

    Rules whose ``fields`` understate what the predicate reads are caught
    here: reading a field outside ``spec.fields`` raises
    :class:`ValidationError` even when the record carries that field.
    """
    visible = make_snapshot(
        {name: value for name, value in record.snapshot().items() if name in spec.fields}
    )
    try:
        return spec.filter(visible)
    except MissingAttributeError as exc:
        if exc.field in spec.fields:
            raise
        raise ValidationError([_undeclared_cause(spec.filter, exc.field)]) from exc
