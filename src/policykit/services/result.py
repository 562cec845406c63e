"""ServiceResult and ServiceError — the service-operation contract.

INVARIANT: A failure result carries at least one cause and implies that
no mutation from the operation is visible. A success result carries none.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from policykit.domain.errors import PolicyKitError


class ServiceError(BaseModel):
    """Structured cause within a failed ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: PolicyKitError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=dict(exc.detail))


class ServiceResult(BaseModel):
    """Tagged outcome of a service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"register_user"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        errors: Every cause of failure, in the order encountered.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    errors: list[ServiceError] = Field(default_factory=list)
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def check_outcome(self) -> ServiceResult:
        if self.ok and self.errors:
            msg = "A successful result cannot carry errors"
            raise ValueError(msg)
        if not self.ok and not self.errors:
            msg = "A failed result needs at least one error"
            raise ValueError(msg)
        return self

    @property
    def error(self) -> ServiceError | None:
        """The first cause, or None on success."""
        return self.errors[0] if self.errors else None

    @classmethod
    def success(
        cls,
        op: str,
        data: dict[str, Any] | None = None,
        *,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(ok=True, op=op, data=data or {}, warnings=warnings or [])

    @classmethod
    def failure(
        cls,
        op: str,
        errors: list[ServiceError],
        *,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(ok=False, op=op, errors=errors, warnings=warnings or [])
