"""Toolkit — the entry point offered to callers.

Built once per process from :class:`PolicyKitSettings`. Classification
tables and policy rules are read from configuration at construction and
stay read-only afterwards; the repository is opened lazily on first use
so pure classification and policy callers never touch the database.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from policykit.config.logging import configure_logging
from policykit.domain.classification import ClassificationTable, Grade
from policykit.domain.policy import PolicyEvaluator, PolicyRule
from policykit.infrastructure.repository import Entity, snapshot_of
from policykit.services.telemetry import enable_telemetry, traced

if TYPE_CHECKING:
    from decimal import Decimal

    from pydantic import BaseModel

    from policykit.config.settings import PolicyKitSettings
    from policykit.domain.query import QueryResults, QuerySpec
    from policykit.infrastructure.repository import Repository
    from policykit.services.operation import ServiceOperation
    from policykit.services.result import ServiceResult

log = structlog.get_logger(__name__)


class Toolkit:
    """Facade exposing ``classify``, ``evaluate``, ``query`` and ``perform``.

    Args:
        settings: Resolved settings.
        repository: Repository to use instead of the SQLite store under
            ``settings.data_dir``.
        configure: Route ``policykit`` log records to stderr according to
            ``settings.logging``. Only the ``policykit`` logger is touched.
    """

    def __init__(
        self,
        settings: PolicyKitSettings,
        *,
        repository: Repository | None = None,
        configure: bool = True,
    ) -> None:
        self.settings = settings
        self._repository = repository

        if configure:
            configure_logging(
                verbose=settings.logging.verbose, log_json=settings.logging.log_json
            )
        if settings.logging.verbose:
            enable_telemetry()

        self._tables = {
            name: ClassificationTable.from_config(cfg, name=name)
            for name, cfg in settings.classification.items()
        }
        self._policies = PolicyEvaluator.from_config(settings.policies)

    @property
    def repository(self) -> Repository:
        """The repository (the SQLite store is created on first access)."""
        if self._repository is None:
            from policykit.infrastructure.database import init_database
            from policykit.infrastructure.repository import SqlRepository

            engine = init_database(
                self.settings.data_dir,
                filename=self.settings.database.filename,
            )
            self._repository = SqlRepository(engine)
        return self._repository

    @property
    def policies(self) -> PolicyEvaluator:
        return self._policies

    @property
    def table_names(self) -> tuple[str, ...]:
        return tuple(self._tables)

    def table(self, name: str) -> ClassificationTable:
        try:
            return self._tables[name]
        except KeyError:
            msg = f"Unknown classification table: {name!r}"
            raise KeyError(msg) from None

    # ------------------------------------------------------------------
    # Offered operations
    # ------------------------------------------------------------------

    @traced
    def classify(self, table: str | ClassificationTable, raw: float | Decimal) -> Grade:
        """Classify *raw* with a configured table (by name) or a table object."""
        if isinstance(table, str):
            table = self.table(table)
        grade = table.classify(raw)
        log.debug("classified", table=table.name, value=raw, label=grade.label)
        return grade

    @traced
    def evaluate(self, rule: PolicyRule | str, subject: Mapping[str, Any] | Entity) -> bool:
        """Evaluate a rule (or configured rule name) against a snapshot or entity."""
        snapshot = snapshot_of(subject) if isinstance(subject, Entity) else subject
        result = self._policies.evaluate(rule, snapshot)
        name = rule if isinstance(rule, str) else rule.name
        log.debug("policy.evaluated", rule=name, result=result)
        return result

    @traced
    def query(self, spec: QuerySpec) -> QueryResults:
        """Lazy, restartable results of *spec* against the repository."""
        return spec.execute(self.repository)

    @traced
    def perform(
        self,
        operation: type[ServiceOperation[Any]] | ServiceOperation[Any],
        inputs: Mapping[str, Any] | BaseModel,
    ) -> ServiceResult:
        """Run a service operation class (or instance) against the repository."""
        if isinstance(operation, type):
            operation = operation(self.repository)
        return operation.perform(inputs)

    def close(self) -> None:
        """Release the repository's resources, if it holds any."""
        close = getattr(self._repository, "close", None)
        if close is not None:
            close()
