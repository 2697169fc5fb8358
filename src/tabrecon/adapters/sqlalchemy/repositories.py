"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import func, insert, select

from tabrecon.adapters.sqlalchemy.mappings import dataset_table, reconciliation_item_table
from tabrecon.domain.model import Dataset, Reconciliation
from tabrecon.domain.reconciliation import ItemPage, ItemQuery, ReconciliationItem

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy import ColumnElement, Row
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)

# Rows per executemany batch when bulk-inserting items.
ITEM_INSERT_BATCH_SIZE = 1000

_item_key = reconciliation_item_table.c["key"]
_item_position = reconciliation_item_table.c.position
_item_reconciliation_id = reconciliation_item_table.c.reconciliation_id


class SqlAlchemyDatasetRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Dataset) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Dataset | None:
        return self.session.get(Dataset, entity_id)

    def list_all(self) -> Sequence[Dataset]:
        stmt = select(Dataset).order_by(dataset_table.c.created_at)
        return tuple(self.session.execute(stmt).scalars().all())


class SqlAlchemyReconciliationRepository:
    """Runs are ORM-mapped; their items are written and read with Core statements."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Reconciliation) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Reconciliation | None:
        return self.session.get(Reconciliation, entity_id)

    def add_items(
        self,
        reconciliation_id: UUID,
        items: Sequence[ReconciliationItem],
    ) -> int:
        # the run row must exist before its items reference it
        self.session.flush()
        rows = [
            {
                "reconciliation_id": reconciliation_id,
                "position": position,
                "status": item.status,
                "key": item.key,
                "record_a": item.record_a,
                "record_b": item.record_b,
                "reasons": item.reasons,
                "diffs": item.diffs,
            }
            for position, item in enumerate(items)
        ]
        for start in range(0, len(rows), ITEM_INSERT_BATCH_SIZE):
            self.session.execute(
                insert(reconciliation_item_table),
                rows[start : start + ITEM_INSERT_BATCH_SIZE],
            )
        log.debug("Stored %s items for reconciliation %s", len(rows), reconciliation_id)
        return len(rows)

    def items(self, reconciliation_id: UUID) -> tuple[ReconciliationItem, ...]:
        stmt = (
            select(reconciliation_item_table)
            .where(_item_reconciliation_id == reconciliation_id)
            .order_by(_item_position)
        )
        return tuple(_item_from_row(row) for row in self.session.execute(stmt))

    def query_items(self, reconciliation_id: UUID, query: ItemQuery) -> ItemPage:
        conditions = self._conditions(reconciliation_id, query)

        count_stmt = select(func.count()).select_from(reconciliation_item_table).where(*conditions)
        total = self.session.execute(count_stmt).scalar_one()

        page_stmt = (
            select(reconciliation_item_table)
            .where(*conditions)
            .order_by(_item_position)
            .offset(query.offset)
            .limit(query.page_size)
        )
        items = tuple(_item_from_row(row) for row in self.session.execute(page_stmt))
        return ItemPage(total=total, page=query.page, page_size=query.page_size, items=items)

    @staticmethod
    def _conditions(reconciliation_id: UUID, query: ItemQuery) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [_item_reconciliation_id == reconciliation_id]
        if query.status is not None:
            conditions.append(reconciliation_item_table.c.status == query.status)
        if query.search:
            # keys are stored lower-cased and the search text is lower-cased by ItemQuery
            conditions.append(_item_key.contains(query.search, autoescape=True))
        return conditions


def _item_from_row(row: Row[Any]) -> ReconciliationItem:
    values = row._mapping  # noqa: SLF001
    return ReconciliationItem(
        status=values["status"],
        key=values["key"],
        record_a=values["record_a"],
        record_b=values["record_b"],
        reasons=tuple(values["reasons"]),
        diffs=tuple(values["diffs"]),
    )


if TYPE_CHECKING:
    from tabrecon.domain.ports.persistence import DatasetRepository, ReconciliationRepository

    _session_stub = cast("Session", object())
    _dataset_repo: DatasetRepository = SqlAlchemyDatasetRepository(_session_stub)
    _reconciliation_repo: ReconciliationRepository = SqlAlchemyReconciliationRepository(
        _session_stub
    )
