"""SQLAlchemy mapping metadata for the tabrecon domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import composite, configure_mappers

from tabrecon.domain.model import Dataset, FileType, Reconciliation
from tabrecon.domain.reconciliation import (
    CompareStrategy,
    FieldDiff,
    ItemStatus,
    ReconciliationConfig,
    ReconciliationSummary,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

_DECIMAL_TAG = "$decimal"


def _to_json(value: object) -> object:
    if isinstance(value, Decimal):
        return {_DECIMAL_TAG: str(value)}
    if isinstance(value, dict):
        mapping = cast("dict[str, object]", value)
        return {str(key): _to_json(item) for key, item in mapping.items()}
    if isinstance(value, (list, tuple)):
        sequence = cast("list[object]", value)
        return [_to_json(item) for item in sequence]
    return value


def _from_json(value: object) -> object:
    if isinstance(value, dict):
        mapping = cast("dict[str, object]", value)
        if set(mapping) == {_DECIMAL_TAG}:
            return Decimal(str(mapping[_DECIMAL_TAG]))
        return {key: _from_json(item) for key, item in mapping.items()}
    if isinstance(value, list):
        return [_from_json(item) for item in cast("list[object]", value)]
    return value


def _dumps(value: object) -> str:
    return json.dumps(_to_json(value), separators=(",", ":"), ensure_ascii=False)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class JsonValueType(TypeDecorator[Any]):
    """JSON text column that keeps ``Decimal`` values intact."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: object, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return _dumps(value)

    def process_result_value(self, value: str | None, dialect: Dialect) -> object:
        _ = dialect
        if value is None:
            return None
        return _from_json(json.loads(value))


class StringTupleType(TypeDecorator[tuple[str, ...]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value), ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        return tuple(str(item) for item in cast("list[object]", loaded))


class DecimalStringType(TypeDecorator[Decimal]):
    """Exact decimal stored as text; SQLite has no native decimal."""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


class StrategyMapType(TypeDecorator[dict[str, CompareStrategy]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: Mapping[str, CompareStrategy] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = {name: CompareStrategy(strategy).value for name, strategy in value.items()}
        return json.dumps(payload, sort_keys=True, ensure_ascii=False)

    def process_result_value(
        self, value: str | None, dialect: Dialect
    ) -> dict[str, CompareStrategy]:
        _ = dialect
        if value is None:
            return {}
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return {}
        items = cast("dict[str, str]", loaded)
        return {name: CompareStrategy(strategy) for name, strategy in items.items()}


class FieldDiffListType(TypeDecorator[tuple[FieldDiff, ...]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: tuple[FieldDiff, ...] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = [{"field": diff.field, "a": diff.value_a, "b": diff.value_b} for diff in value]
        return _dumps(payload)

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[FieldDiff, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = _from_json(json.loads(value))
        if not isinstance(loaded, list):
            return ()
        diffs: list[FieldDiff] = []
        for entry in cast("list[dict[str, Any]]", loaded):
            diffs.append(FieldDiff(str(entry["field"]), entry.get("a"), entry.get("b")))
        return tuple(diffs)


def _enum_values(enum_cls: type[Any]) -> list[str]:
    return [member.value for member in enum_cls]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

dataset_table = Table(
    "dataset",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("original_filename", String, nullable=False),
    Column(
        "file_type",
        Enum(FileType, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
    ),
    Column("headers", StringTupleType(), nullable=False, default=tuple),
    Column("rows", JsonValueType(), nullable=False, default=list),
    Column("created_at", UTCDateTime(), nullable=False),
)

reconciliation_table = Table(
    "reconciliation",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "dataset_a_id",
        UUIDColumnType,
        ForeignKey("dataset.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "dataset_b_id",
        UUIDColumnType,
        ForeignKey("dataset.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("key_fields", StringTupleType(), nullable=False),
    Column("compare_fields", StringTupleType(), nullable=False),
    Column("amount_tolerance", DecimalStringType(), nullable=False),
    Column("field_strategies", StrategyMapType(), nullable=False, default=dict),
    Column("infer_amount_fields", Boolean, nullable=False, default=True),
    Column("matches", Integer, nullable=False, default=0),
    Column("mismatches", Integer, nullable=False, default=0),
    Column("missing_in_a", Integer, nullable=False, default=0),
    Column("missing_in_b", Integer, nullable=False, default=0),
    Column("total_a", Integer, nullable=False, default=0),
    Column("total_b", Integer, nullable=False, default=0),
    Column("unkeyable_a", Integer, nullable=False, default=0),
    Column("unkeyable_b", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
)

reconciliation_item_table = Table(
    "reconciliation_item",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "reconciliation_id",
        UUIDColumnType,
        ForeignKey("reconciliation.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False),
    Column(
        "status",
        Enum(ItemStatus, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
    ),
    Column("key", String, nullable=False),
    Column("record_a", JsonValueType(), nullable=True),
    Column("record_b", JsonValueType(), nullable=True),
    Column("reasons", StringTupleType(), nullable=False, default=tuple),
    Column("diffs", FieldDiffListType(), nullable=False, default=tuple),
    UniqueConstraint("reconciliation_id", "position"),
    Index("ix_reconciliation_item_status", "reconciliation_id", "status"),
    Index("ix_reconciliation_item_key", "reconciliation_id", "key"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Dataset, dataset_table)

    mapper_registry.map_imperatively(
        Reconciliation,
        reconciliation_table,
        properties={
            "config": composite(
                ReconciliationConfig,
                reconciliation_table.c.key_fields,
                reconciliation_table.c.compare_fields,
                reconciliation_table.c.amount_tolerance,
                reconciliation_table.c.field_strategies,
                reconciliation_table.c.infer_amount_fields,
            ),
            "summary": composite(
                ReconciliationSummary,
                reconciliation_table.c.matches,
                reconciliation_table.c.mismatches,
                reconciliation_table.c.missing_in_a,
                reconciliation_table.c.missing_in_b,
                reconciliation_table.c.total_a,
                reconciliation_table.c.total_b,
                reconciliation_table.c.unkeyable_a,
                reconciliation_table.c.unkeyable_b,
            ),
        },
    )

    configure_mappers()
    return mapper_registry
