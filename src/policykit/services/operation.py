"""ServiceOperation — validate-then-mutate units of work.

Pipeline: PARSE → VALIDATE → (stop if any cause) → EXECUTE in one
repository transaction → RESPOND.

Every cause found while parsing and validating is reported together, and
no mutation is attempted when there is at least one. Mutations run inside
``repository.with_transaction``, so a failure at any step rolls back every
earlier step of the same operation. Once execution starts, whatever goes
wrong is returned as a failure result instead of raised.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Generic, NoReturn, TypeVar

import pydantic
import structlog
from pydantic import BaseModel

from policykit.domain.errors import (
    OPERATION_FAILED,
    VALIDATION_FAILED,
    OperationFailure,
    PolicyKitError,
)
from policykit.services.base import BaseService
from policykit.services.result import ServiceError, ServiceResult
from policykit.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from policykit.infrastructure.repository import UnitOfWork

log = structlog.get_logger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


def validation_causes(exc: pydantic.ValidationError) -> list[ServiceError]:
    """One ``VALIDATION_FAILED`` cause per pydantic error, naming the field."""
    causes: list[ServiceError] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"])
        causes.append(
            ServiceError(
                code=VALIDATION_FAILED,
                message=f"{field}: {err['msg']}" if field else err["msg"],
                detail={"field": field, "type": err["type"]},
            )
        )
    return causes


class ServiceOperation(BaseService, Generic[InputT]):
    """Base class for multi-step mutations executed as one atomic unit.

    Subclasses set :attr:`op` and :attr:`input_model` and implement
    :meth:`execute`; they may override :meth:`validate` for business rules
    that need more than the field schema.

    Operations are not idempotent unless a subclass documents otherwise:
    performing the same inputs twice may create two records.

    Usage::

        class RegisterUser(ServiceOperation[RegisterInput]):
            op = "register_user"
            input_model = RegisterInput

            def execute(self, uow, inputs):
                user = uow.create("user", {"email": inputs.email})
                uow.create("profile", {"user_id": user.id})
                return {"id": user.id}
    """

    op: ClassVar[str] = "operation"
    input_model: ClassVar[type[BaseModel]]

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def validate(self, inputs: InputT) -> list[ServiceError]:
        """Business validation run after schema validation. Returns causes."""
        return []

    def execute(self, uow: UnitOfWork, inputs: InputT) -> dict[str, Any] | None:
        """Apply the mutations through *uow* and return the success payload."""
        raise NotImplementedError

    @staticmethod
    def fail(code: str, message: str, **detail: Any) -> NoReturn:
        """Abort the current execution with a single cause."""
        raise OperationFailure.single(code, message, **detail)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def perform(self, inputs: Mapping[str, Any] | BaseModel) -> ServiceResult:
        """Validate *inputs*, then apply all mutations or none."""
        with trace_span("validate"):
            parsed, causes = self._parse(inputs)
            if parsed is not None:
                causes.extend(self.validate(parsed))

        if causes or parsed is None:
            log.info("operation.rejected", op=self.op, causes=len(causes))
            return ServiceResult.failure(self.op, causes)

        try:
            with trace_span("execute"):
                data = self._repository.with_transaction(
                    lambda uow: self.execute(uow, parsed)
                )
        except OperationFailure as exc:
            causes = [ServiceError.model_validate(cause) for cause in exc.causes]
        except PolicyKitError as exc:
            causes = [ServiceError.from_exception(exc)]
        except Exception as exc:
            log.exception("operation.error", op=self.op)
            causes = [
                ServiceError(
                    code=OPERATION_FAILED,
                    message=f"{self.op} failed: {exc.__class__.__name__}",
                    detail={"error": str(exc)},
                )
            ]
        else:
            return ServiceResult.success(self.op, data or {})

        log.warning(
            "operation.rolled_back",
            op=self.op,
            codes=[cause.code for cause in causes],
        )
        return ServiceResult.failure(self.op, causes)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse(
        self, inputs: Mapping[str, Any] | BaseModel
    ) -> tuple[InputT | None, list[ServiceError]]:
        if isinstance(inputs, self.input_model):
            return inputs, []  # type: ignore[return-value]
        raw = inputs.model_dump() if isinstance(inputs, BaseModel) else dict(inputs)
        try:
            return self.input_model.model_validate(raw), []  # type: ignore[return-value]
        except pydantic.ValidationError as exc:
            return None, validation_causes(exc)
