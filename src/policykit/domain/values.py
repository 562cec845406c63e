"""Value object contract.

A value object is identified entirely by its canonical value: two
instances built from the same canonical input are equal, hash alike,
and are interchangeable. Ordered value objects compare by an explicit
rank, never by the raw representation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Immutable, value-equal, hashable base model.

    Subclasses declare their canonical fields as ordinary pydantic fields.
    Field values must themselves be hashable.
    """

    model_config = ConfigDict(frozen=True)

    def key(self) -> tuple[Any, ...]:
        """Canonical key: declared field values in declaration order."""
        return tuple(getattr(self, name) for name in type(self).model_fields)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() == other.key()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__qualname__, self.key()))


class RankedValue(ValueObject):
    """Value object with a total order derived from :meth:`rank`.

    Lower rank sorts first. Values of different concrete types are not
    comparable.
    """

    def rank(self) -> int:
        raise NotImplementedError

    def compare(self, other: RankedValue) -> int:
        """Three-way comparison: -1, 0, or 1."""
        if type(other) is not type(self):
            msg = f"Cannot compare {type(self).__name__} with {type(other).__name__}"
            raise TypeError(msg)
        mine, theirs = self.rank(), other.rank()
        return (mine > theirs) - (mine < theirs)

    def __lt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.rank() < other.rank()  # type: ignore[attr-defined]

    def __le__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.rank() <= other.rank()  # type: ignore[attr-defined]

    def __gt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.rank() > other.rank()  # type: ignore[attr-defined]

    def __ge__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.rank() >= other.rank()  # type: ignore[attr-defined]
