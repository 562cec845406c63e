"""Threshold classification of raw scalars into ranked grades.

A :class:`ClassificationTable` holds an ordered list of upper-bound
thresholds plus a catch-all label. Bounds are inclusive: a value equal
to a bound belongs to that bound's bucket, not the next one.

Example (cost to letter grade)::

    table = ClassificationTable([(2, "A"), (4, "B"), (8, "C"), (16, "D")], "F")
    table.classify(3)   # Grade(label="B", position=1)
"""

from __future__ import annotations

import math
from bisect import bisect_left
from collections.abc import Sequence
from decimal import Decimal
from numbers import Real
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from policykit.domain.errors import ClassificationError
from policykit.domain.values import RankedValue

if TYPE_CHECKING:
    from policykit.config.models import ClassificationConfig


class Threshold(BaseModel):
    """One ``(upper_bound, label)`` row of a classification table."""

    model_config = ConfigDict(frozen=True)

    upper_bound: float
    label: str


class Grade(RankedValue):
    """Classified value: a label plus its position in the table (0 = first bucket)."""

    label: str
    position: int

    def rank(self) -> int:
        return self.position

    def __str__(self) -> str:
        return self.label


class ClassificationTable:
    """Maps raw scalars onto :class:`Grade` values via ordered thresholds.

    Tables are configuration: built once at startup and read-only afterwards.

    Args:
        thresholds: ``Threshold`` rows or ``(upper_bound, label)`` pairs,
            strictly increasing in upper bound.
        catch_all: Label for values above the last bound.
        name: Optional table name (used in error messages).
        minimum: Inclusive lower bound of the input domain, or None for
            an unbounded domain.
    """

    def __init__(
        self,
        thresholds: Sequence[Threshold | tuple[float, str]],
        catch_all: str,
        *,
        name: str = "",
        minimum: float | None = 0.0,
    ) -> None:
        rows = tuple(
            t if isinstance(t, Threshold) else Threshold(upper_bound=t[0], label=t[1])
            for t in thresholds
        )
        bounds = [row.upper_bound for row in rows]
        for lower, upper in zip(bounds, bounds[1:], strict=False):
            if not upper > lower:
                msg = f"Threshold bounds must be strictly increasing: {lower} then {upper}"
                raise ValueError(msg)
        if any(math.isnan(b) for b in bounds):
            msg = "Threshold bounds must not be NaN"
            raise ValueError(msg)

        labels = [row.label for row in rows] + [catch_all]
        if len(set(labels)) != len(labels):
            msg = f"Classification labels must be unique: {labels}"
            raise ValueError(msg)
        if minimum is not None and bounds and minimum > bounds[0]:
            msg = f"Minimum {minimum} exceeds first bound {bounds[0]}"
            raise ValueError(msg)

        self._name = name
        self._minimum = minimum
        self._rows = rows
        self._bounds = bounds
        self._grades = tuple(Grade(label=label, position=i) for i, label in enumerate(labels))
        self._by_label = {g.label: g for g in self._grades}

    @classmethod
    def from_config(cls, config: ClassificationConfig, *, name: str = "") -> ClassificationTable:
        """Build a table from a ``[classification.<name>]`` config section."""
        return cls(
            config.thresholds,
            config.catch_all,
            name=name,
            minimum=config.minimum,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def minimum(self) -> float | None:
        return self._minimum

    @property
    def thresholds(self) -> tuple[Threshold, ...]:
        return self._rows

    @property
    def grades(self) -> tuple[Grade, ...]:
        """All grades, first bucket to catch-all."""
        return self._grades

    def classify(self, raw: float | Decimal) -> Grade:
        """Return the grade of the first bucket whose upper bound is >= *raw*.

        Accepts any real number, including ints too large for a float, and
        :class:`~decimal.Decimal`.

        Raises:
            ClassificationError: *raw* is not a number, is NaN, or lies
                below the table minimum.
        """
        if isinstance(raw, bool) or not isinstance(raw, Real | Decimal):
            msg = f"Cannot classify non-numeric value {raw!r}"
            raise ClassificationError(msg, value=raw, table=self._name)
        if _is_nan(raw):
            msg = "Cannot classify NaN"
            raise ClassificationError(msg, value=raw, table=self._name)
        if self._minimum is not None and raw < self._minimum:
            msg = f"Value {raw!r} is below the minimum {self._minimum!r}"
            if self._name:
                msg += f" of table {self._name!r}"
            raise ClassificationError(msg, value=raw, table=self._name)
        return self._grades[bisect_left(self._bounds, raw)]

    def grade(self, label: str) -> Grade:
        """Look up a grade by label. Raises ``KeyError`` for unknown labels."""
        try:
            return self._by_label[label]
        except KeyError:
            msg = f"Unknown label {label!r}"
            raise KeyError(msg) from None

    def bounds_for(self, label: str) -> tuple[float | None, float | None]:
        """Return ``(exclusive lower, inclusive upper)`` bounds of *label*'s bucket.

        The first bucket's lower bound is the table minimum (inclusive), and
        the catch-all bucket has no upper bound.
        """
        position = self.grade(label).position
        lower = self._minimum if position == 0 else self._bounds[position - 1]
        upper = self._bounds[position] if position < len(self._bounds) else None
        return lower, upper

    def __len__(self) -> int:
        return len(self._grades)

    def __repr__(self) -> str:
        pairs = ", ".join(f"<={row.upper_bound:g}:{row.label}" for row in self._rows)
        return f"ClassificationTable({self._name!r}, [{pairs}], else={self._grades[-1].label!r})"


def _is_nan(raw: Real | Decimal) -> bool:
    # Ints beyond float range must not go through float().
    if isinstance(raw, Decimal):
        return raw.is_nan()
    return raw != raw
