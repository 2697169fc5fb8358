"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from tabrecon.adapters.dataset_files import load_dataset
from tabrecon.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from tabrecon.domain.model import Dataset, Reconciliation
from tabrecon.domain.ports.unit_of_work import ReconciliationUnitOfWork
from tabrecon.domain.reconciliation import ItemPage, ItemQuery, ResultSet, reconcile

if TYPE_CHECKING:
    from uuid import UUID

    from tabrecon.adapters.schema import ReconcileRequest
    from tabrecon.domain.reconciliation import ReconciliationConfig

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]


log = getLogger(__name__)


class DatasetNotFoundError(LookupError):
    def __init__(self, dataset_id: UUID) -> None:
        self.dataset_id = dataset_id
        super().__init__(f"Dataset {dataset_id} not found")


class ReconciliationNotFoundError(LookupError):
    def __init__(self, reconciliation_id: UUID) -> None:
        self.reconciliation_id = reconciliation_id
        super().__init__(f"Reconciliation {reconciliation_id} not found")


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def import_dataset(
    path: str | Path,
    *,
    name: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Dataset:
    """Parse a dataset file and store it."""

    dataset = load_dataset(Path(path), name=name)
    uow_factory = _resolve_unit_of_work(unit_of_work_factory)
    with uow_factory() as uow:
        uow.repositories.datasets.add(dataset)
        uow.commit()
    log.info("Imported dataset %s (%s rows) as %s", dataset.name, dataset.row_count, dataset.id)
    return dataset


def get_dataset(
    dataset_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Dataset:
    uow_factory = _resolve_unit_of_work(unit_of_work_factory)
    with uow_factory() as uow:
        dataset = uow.repositories.datasets.get(dataset_id)
    if dataset is None:
        raise DatasetNotFoundError(dataset_id)
    return dataset


def run_reconciliation(
    dataset_a_id: UUID,
    dataset_b_id: UUID,
    config: ReconciliationConfig,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Reconciliation:
    """Reconcile two stored datasets and persist the run with all of its items.

    The run and its items are written in one transaction; nothing is stored when
    either write fails.
    """

    uow_factory = _resolve_unit_of_work(unit_of_work_factory)
    with uow_factory() as uow:
        datasets = uow.repositories.datasets
        dataset_a = datasets.get(dataset_a_id)
        if dataset_a is None:
            raise DatasetNotFoundError(dataset_a_id)
        dataset_b = datasets.get(dataset_b_id)
        if dataset_b is None:
            raise DatasetNotFoundError(dataset_b_id)

        log.info(
            "Reconciling %s (%s rows) against %s (%s rows) on %s",
            dataset_a.name,
            dataset_a.row_count,
            dataset_b.name,
            dataset_b.row_count,
            ", ".join(config.key_fields),
        )
        summary, items = reconcile(dataset_a.rows, dataset_b.rows, config)

        run = Reconciliation(
            dataset_a_id=dataset_a.id,
            dataset_b_id=dataset_b.id,
            config=config,
            summary=summary,
        )
        uow.repositories.reconciliations.add(run)
        stored = uow.repositories.reconciliations.add_items(run.id, items)
        uow.commit()

    log.info(
        "Finished reconciliation %s: matches=%s, mismatches=%s, missing_in_a=%s, "
        "missing_in_b=%s, items=%s",
        run.id,
        summary.matches,
        summary.mismatches,
        summary.missing_in_a,
        summary.missing_in_b,
        stored,
    )
    return run


def run_reconciliation_request(
    request: ReconcileRequest,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Reconciliation:
    return run_reconciliation(
        request.dataset_a_id,
        request.dataset_b_id,
        request.to_config(),
        unit_of_work_factory=unit_of_work_factory,
    )


def get_reconciliation(
    reconciliation_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Reconciliation:
    uow_factory = _resolve_unit_of_work(unit_of_work_factory)
    with uow_factory() as uow:
        run = uow.repositories.reconciliations.get(reconciliation_id)
    if run is None:
        raise ReconciliationNotFoundError(reconciliation_id)
    return run


def get_result_set(
    reconciliation_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ResultSet:
    """Load the summary and every item of a run, in production order."""

    uow_factory = _resolve_unit_of_work(unit_of_work_factory)
    with uow_factory() as uow:
        repository = uow.repositories.reconciliations
        run = repository.get(reconciliation_id)
        if run is None:
            raise ReconciliationNotFoundError(reconciliation_id)
        items = repository.items(reconciliation_id)
    return ResultSet(summary=run.summary, items=items)


def list_reconciliation_items(
    reconciliation_id: UUID,
    query: ItemQuery | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ItemPage:
    uow_factory = _resolve_unit_of_work(unit_of_work_factory)
    with uow_factory() as uow:
        repository = uow.repositories.reconciliations
        if repository.get(reconciliation_id) is None:
            raise ReconciliationNotFoundError(reconciliation_id)
        return repository.query_items(reconciliation_id, query or ItemQuery())
