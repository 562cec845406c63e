"""BaseService — abstract foundation for all policykit services.

Every service receives a :class:`Repository` at construction time.
Services own their transaction boundaries via
``self._repository.with_transaction(...)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policykit.infrastructure.repository import Repository


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class RenameService(BaseService):
            def rename(self, entity_id: int, name: str) -> ServiceResult:
                entity = self._repository.with_transaction(
                    lambda uow: uow.update(entity_id, {"name": name})
                )
                ...
    """

    def __init__(self, repository: Repository) -> None:
        self._repository = repository
