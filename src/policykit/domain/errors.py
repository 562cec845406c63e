"""Error kinds raised by the toolkit.

Every error carries a stable, machine-readable ``code`` so service
results and callers can branch on it without parsing messages.
"""

from __future__ import annotations

from typing import Any

CLASSIFICATION_ERROR = "CLASSIFICATION_ERROR"
MISSING_ATTRIBUTE = "MISSING_ATTRIBUTE"
VALIDATION_FAILED = "VALIDATION_FAILED"
OPERATION_FAILED = "OPERATION_FAILED"
ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"


class PolicyKitError(Exception):
    """Base class for all toolkit errors."""

    code: str = OPERATION_FAILED

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ClassificationError(PolicyKitError):
    """Raw value lies outside the domain of a classification table."""

    code = CLASSIFICATION_ERROR


class MissingAttributeError(PolicyKitError):
    """A policy rule read a field the snapshot does not contain."""

    code = MISSING_ATTRIBUTE

    def __init__(self, field: str, rule: str) -> None:
        super().__init__(
            f"Rule {rule!r} references missing field {field!r}",
            field=field,
            rule=rule,
        )
        self.field = field
        self.rule = rule


class _CausedError(PolicyKitError):
    """Error aggregating one or more structured causes.

    Causes are kept as plain dicts (``code``/``message``/``detail``) so the
    domain layer stays free of service-layer types.
    """

    def __init__(self, causes: list[dict[str, Any]]) -> None:
        if not causes:
            msg = f"{type(self).__name__} requires at least one cause"
            raise ValueError(msg)
        self.causes = list(causes)
        super().__init__("; ".join(str(c["message"]) for c in self.causes))


class ValidationError(_CausedError):
    """Input failed schema or business validation before execution."""

    code = VALIDATION_FAILED


class OperationFailure(_CausedError):
    """One or more mutation steps of a service operation could not complete."""

    code = OPERATION_FAILED

    @classmethod
    def single(cls, code: str, message: str, **detail: Any) -> OperationFailure:
        return cls([{"code": code, "message": message, "detail": detail}])


class RepositoryError(PolicyKitError):
    """The repository rejected a read or write."""


class EntityNotFoundError(RepositoryError):
    """An update targeted an entity id that does not exist."""

    code = ENTITY_NOT_FOUND
