"""Policy rules — named, read-only predicates over entity snapshots.

A snapshot is an immutable field-name-to-value mapping taken at a single
point in time. Rules never see a live entity: :func:`evaluate` copies
whatever mapping it is given into a snapshot first, and predicates read
through a view that raises :class:`MissingAttributeError` instead of
defaulting when a field is absent.

Rules compose with :func:`combine` (ALL / ANY, left to right with
short-circuit) and :func:`negate`, or with ``&``, ``|`` and ``~``.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from policykit.domain.errors import MissingAttributeError

if TYPE_CHECKING:
    from policykit.config.models import PolicyRuleConfig

Snapshot = Mapping[str, Any]


def make_snapshot(fields: Mapping[str, Any]) -> MappingProxyType[str, Any]:
    """Freeze *fields* into a read-only point-in-time snapshot."""
    return MappingProxyType(dict(fields))


class SnapshotView(Mapping[str, Any]):
    """Read-only view handed to predicates.

    Item access on an absent field raises :class:`MissingAttributeError`
    naming the field and the rule being evaluated.
    """

    __slots__ = ("_rule", "_snapshot")

    def __init__(self, snapshot: Snapshot, rule: str) -> None:
        self._snapshot = snapshot
        self._rule = rule

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def __getitem__(self, key: str) -> Any:
        try:
            return self._snapshot[key]
        except KeyError:
            raise MissingAttributeError(key, self._rule) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Explicit opt-in default; only item access raises on a missing field."""
        return self._snapshot.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self._snapshot

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshot)

    def __len__(self) -> int:
        return len(self._snapshot)


Predicate = Callable[[SnapshotView], Any]


class CombineMode(StrEnum):
    """How a composite rule joins its parts."""

    ALL = "all"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class PolicyRule:
    """A named boolean predicate over a snapshot.

    Attributes:
        name: Rule name, reported in :class:`MissingAttributeError`.
        predicate: Callable receiving a :class:`SnapshotView`.
        description: Human-readable statement of the rule.
        fields: Snapshot fields the rule reads (used by query validation).
    """

    name: str
    predicate: Predicate = field(repr=False, compare=False)
    description: str = ""
    fields: frozenset[str] = frozenset()

    def __call__(self, snapshot: Snapshot) -> bool:
        return bool(self.predicate(SnapshotView(snapshot, self.name)))

    def __and__(self, other: PolicyRule) -> PolicyRule:
        return combine([self, other], CombineMode.ALL)

    def __or__(self, other: PolicyRule) -> PolicyRule:
        return combine([self, other], CombineMode.ANY)

    def __invert__(self) -> PolicyRule:
        return negate(self)


# --- Field comparison rules ---

OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, operand: value in operand,
    "not_in": lambda value, operand: value not in operand,
}


def field_rule(
    name: str,
    field_name: str,
    op: str,
    operand: Any,
    description: str | None = None,
) -> PolicyRule:
    """Build a rule comparing one snapshot field against *operand*.

    ``field_rule("recent", "days_since_last_login", "<=", 14)`` is true when
    the snapshot's ``days_since_last_login`` is at most 14.
    """
    try:
        compare = OPERATORS[op]
    except KeyError:
        msg = f"Unknown operator {op!r}; expected one of {sorted(OPERATORS)}"
        raise ValueError(msg) from None

    def predicate(view: SnapshotView) -> bool:
        return bool(compare(view[field_name], operand))

    return PolicyRule(
        name=name,
        predicate=predicate,
        description=description or f"{field_name} {op} {operand!r}",
        fields=frozenset({field_name}),
    )


# --- Composition ---


def combine(
    rules: Iterable[PolicyRule],
    mode: CombineMode | str = CombineMode.ALL,
    *,
    name: str | None = None,
    description: str | None = None,
) -> PolicyRule:
    """Join *rules* into one composite rule.

    ALL stops at the first false part, ANY at the first true part; parts
    are evaluated in the order given. An empty ALL is true, an empty ANY
    is false.
    """
    parts = tuple(rules)
    mode = CombineMode(mode)
    joiner = all if mode is CombineMode.ALL else any
    word = " and " if mode is CombineMode.ALL else " or "

    def predicate(view: SnapshotView) -> bool:
        return joiner(part(view.snapshot) for part in parts)

    return PolicyRule(
        name=name or f"{mode.value}({', '.join(p.name for p in parts)})",
        predicate=predicate,
        description=description or word.join(f"({p.description})" for p in parts),
        fields=frozenset().union(*(p.fields for p in parts)),
    )


def negate(rule: PolicyRule, *, name: str | None = None) -> PolicyRule:
    """Invert *rule*."""

    def predicate(view: SnapshotView) -> bool:
        return not rule(view.snapshot)

    return PolicyRule(
        name=name or f"not({rule.name})",
        predicate=predicate,
        description=f"not ({rule.description})",
        fields=rule.fields,
    )


def build_rule(name: str, config: PolicyRuleConfig) -> PolicyRule:
    """Build a rule from a ``[policies.<name>]`` config section."""
    parts = [
        field_rule(f"{name}.{cond.field}", cond.field, cond.op, cond.value)
        for cond in config.conditions
    ]
    rule = combine(parts, config.mode, name=name, description=config.description or None)
    if config.negate:
        rule = negate(rule, name=name)
    return rule


# --- Evaluation ---


def evaluate(rule: PolicyRule, snapshot: Snapshot) -> bool:
    """Apply *rule* to a frozen copy of *snapshot*.

    Raises:
        MissingAttributeError: the rule read a field absent from the snapshot.
    """
    if not isinstance(snapshot, MappingProxyType):
        snapshot = make_snapshot(snapshot)
    return rule(snapshot)


class PolicyEvaluator:
    """Registry of named rules, built once at startup and read-only afterwards."""

    def __init__(self, rules: Iterable[PolicyRule] = ()) -> None:
        registry: dict[str, PolicyRule] = {}
        for rule in rules:
            if rule.name in registry:
                msg = f"Duplicate policy rule name: {rule.name!r}"
                raise ValueError(msg)
            registry[rule.name] = rule
        self._rules = MappingProxyType(registry)

    @classmethod
    def from_config(cls, policies: Mapping[str, PolicyRuleConfig]) -> PolicyEvaluator:
        return cls(build_rule(name, cfg) for name, cfg in policies.items())

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def get(self, name: str) -> PolicyRule:
        try:
            return self._rules[name]
        except KeyError:
            msg = f"Unknown policy rule: {name!r}"
            raise KeyError(msg) from None

    def evaluate(self, rule: PolicyRule | str, snapshot: Snapshot) -> bool:
        """Evaluate a rule object or a registered rule name."""
        if isinstance(rule, str):
            rule = self.get(rule)
        return evaluate(rule, snapshot)

    def evaluate_all(self, snapshot: Snapshot) -> dict[str, bool]:
        """Evaluate every registered rule against one snapshot."""
        frozen = make_snapshot(snapshot)
        return {name: evaluate(rule, frozen) for name, rule in self._rules.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)
