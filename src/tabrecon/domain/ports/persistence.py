"""Ports for persisting datasets, reconciliation runs and their items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from tabrecon.domain.model import Dataset, Reconciliation

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from tabrecon.domain.reconciliation import ItemPage, ItemQuery, ReconciliationItem


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class DatasetRepository(Repository[Dataset], Protocol):
    """Persistence contract for parsed datasets."""

    def list_all(self) -> Sequence[Dataset]: ...


@runtime_checkable
class ReconciliationRepository(Repository[Reconciliation], Protocol):
    """Persistence contract for reconciliation runs and their items.

    Items are stored in the order given; that order is the default retrieval
    order for ``items`` and ``query_items``.
    """

    def add_items(
        self,
        reconciliation_id: UUID,
        items: Sequence[ReconciliationItem],
    ) -> int: ...

    def items(self, reconciliation_id: UUID) -> tuple[ReconciliationItem, ...]: ...

    def query_items(self, reconciliation_id: UUID, query: ItemQuery) -> ItemPage: ...
