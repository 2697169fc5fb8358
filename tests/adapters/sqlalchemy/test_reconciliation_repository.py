"""Exercise the SQLAlchemy dataset and reconciliation repositories."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from tabrecon.adapters.sqlalchemy import (
    SqlAlchemyDatasetRepository,
    SqlAlchemyReconciliationRepository,
)
from tabrecon.adapters.sqlalchemy.repositories import ITEM_INSERT_BATCH_SIZE
from tabrecon.domain.model import Dataset, Reconciliation
from tabrecon.domain.reconciliation import (
    CompareStrategy,
    FieldDiff,
    ItemQuery,
    ItemStatus,
    ReconciliationConfig,
    ReconciliationItem,
    ReconciliationSummary,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _store_run(
    session: Session,
    items: tuple[ReconciliationItem, ...],
) -> Reconciliation:
    dataset_a = Dataset(name="bank", original_filename="bank.csv", headers=("id", "amount"))
    dataset_b = Dataset(name="ledger", original_filename="ledger.csv", headers=("id", "amount"))
    datasets = SqlAlchemyDatasetRepository(session)
    datasets.add(dataset_a)
    datasets.add(dataset_b)

    run = Reconciliation(
        dataset_a_id=dataset_a.id,
        dataset_b_id=dataset_b.id,
        config=ReconciliationConfig(
            key_fields=("id",),
            compare_fields=("amount", "memo"),
            amount_tolerance=Decimal("0.01"),
            field_strategies={"memo": CompareStrategy.EXACT},
        ),
        summary=ReconciliationSummary(matches=1, total_a=1, total_b=1),
    )
    repository = SqlAlchemyReconciliationRepository(session)
    repository.add(run)
    repository.add_items(run.id, items)
    session.commit()
    session.expunge_all()
    return run


def test_dataset_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyDatasetRepository(sqlite_session)
    dataset = Dataset(
        name="bank",
        original_filename="bank.csv",
        headers=("id", "amount", "memo"),
        rows=[{"id": "1", "amount": "$10", "memo": "Rent"}, {"id": "2", "amount": "", "memo": ""}],
    )
    repository.add(dataset)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repository.get(dataset.id)

    assert loaded is not None
    assert loaded.name == "bank"
    assert loaded.headers == ("id", "amount", "memo")
    assert loaded.rows == dataset.rows
    assert loaded.created_at == dataset.created_at
    assert [stored.id for stored in repository.list_all()] == [dataset.id]


def test_reconciliation_round_trip_keeps_config_and_summary(sqlite_session: Session) -> None:
    run = _store_run(sqlite_session, ())

    loaded = SqlAlchemyReconciliationRepository(sqlite_session).get(run.id)

    assert loaded is not None
    assert loaded.config == run.config
    assert loaded.config.amount_tolerance == Decimal("0.01")
    assert loaded.config.field_strategies == {"memo": CompareStrategy.EXACT}
    assert loaded.summary == ReconciliationSummary(matches=1, total_a=1, total_b=1)


def test_items_round_trip_in_production_order(sqlite_session: Session) -> None:
    items = (
        ReconciliationItem(
            status=ItemStatus.MISMATCH,
            key="2",
            record_a={"id": "2", "amount": "100"},
            record_b={"id": "2", "amount": "105"},
            reasons=("Amount differs by -5.00 (tolerance 0.01)",),
            diffs=(FieldDiff("amount", Decimal("100"), Decimal("105")),),
        ),
        ReconciliationItem(
            status=ItemStatus.MISSING_IN_B,
            key="1",
            record_a={"id": "1"},
            reasons=("No matching key in dataset B",),
        ),
        ReconciliationItem(
            status=ItemStatus.MISSING_IN_A,
            key="0",
            record_b={"id": "0"},
            reasons=("No matching key in dataset A",),
        ),
    )
    run = _store_run(sqlite_session, items)

    loaded = SqlAlchemyReconciliationRepository(sqlite_session).items(run.id)

    assert loaded == items
    assert isinstance(loaded[0].diffs[0].value_a, Decimal)


def test_add_items_batches_large_inputs(sqlite_session: Session) -> None:
    count = ITEM_INSERT_BATCH_SIZE + 5
    items = tuple(
        ReconciliationItem(status=ItemStatus.MATCH, key=f"{index:05d}") for index in range(count)
    )
    run = _store_run(sqlite_session, items)

    repository = SqlAlchemyReconciliationRepository(sqlite_session)
    last_page = repository.query_items(run.id, ItemQuery(page=11, page_size=100))

    assert last_page.total == count
    expected = [f"{index:05d}" for index in range(1000, count)]
    assert [item.key for item in last_page.items] == expected


def test_query_items_filters_and_paginates(sqlite_session: Session) -> None:
    statuses = [ItemStatus.MATCH, ItemStatus.MISMATCH, ItemStatus.MISSING_IN_A]
    items = tuple(
        ReconciliationItem(status=statuses[index % 3], key=f"inv-{index}") for index in range(12)
    )
    run = _store_run(sqlite_session, items)
    repository = SqlAlchemyReconciliationRepository(sqlite_session)

    matches = repository.query_items(run.id, ItemQuery(status=ItemStatus.MATCH, page_size=5))
    assert matches.total == 4
    assert [item.key for item in matches.items] == ["inv-0", "inv-3", "inv-6", "inv-9"]

    searched = repository.query_items(run.id, ItemQuery(search="INV-1"))
    assert [item.key for item in searched.items] == ["inv-1", "inv-10", "inv-11"]

    second_page = repository.query_items(run.id, ItemQuery(page=2, page_size=5))
    assert second_page.total == 12
    assert second_page.pages == 3
    assert [item.key for item in second_page.items] == [f"inv-{index}" for index in range(5, 10)]


def test_query_items_escapes_like_wildcards(sqlite_session: Session) -> None:
    items = (
        ReconciliationItem(status=ItemStatus.MATCH, key="50%_off"),
        ReconciliationItem(status=ItemStatus.MATCH, key="50x-off"),
        ReconciliationItem(status=ItemStatus.MATCH, key="a | b"),
    )
    run = _store_run(sqlite_session, items)
    repository = SqlAlchemyReconciliationRepository(sqlite_session)

    percent = repository.query_items(run.id, ItemQuery(search="50%"))
    underscore = repository.query_items(run.id, ItemQuery(search="_"))

    assert [item.key for item in percent.items] == ["50%_off"]
    assert [item.key for item in underscore.items] == ["50%_off"]


def test_query_items_is_scoped_to_one_run(sqlite_session: Session) -> None:
    first = _store_run(sqlite_session, (ReconciliationItem(status=ItemStatus.MATCH, key="x"),))
    second = _store_run(sqlite_session, (ReconciliationItem(status=ItemStatus.MATCH, key="y"),))
    repository = SqlAlchemyReconciliationRepository(sqlite_session)

    assert [item.key for item in repository.items(first.id)] == ["x"]
    assert repository.query_items(second.id, ItemQuery()).total == 1
