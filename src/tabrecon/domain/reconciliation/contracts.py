"""Shared reconciliation contract components.

This module holds the value types exchanged between the matching engine and
its collaborators:
- record/key aliases
- the reconciliation configuration and per-field comparison strategies
- per-key outcomes and the aggregate summary
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import StrEnum

type Scalar = str | int | float | Decimal | bool | None
type Record = Mapping[str, Scalar]
type MatchKey = str

AMOUNT_FIELD_MARKER = "amount"


class ItemStatus(StrEnum):
    """Outcome assigned to one key by the matching engine."""

    MATCH = "match"
    MISMATCH = "mismatch"
    MISSING_IN_A = "missing_in_a"
    MISSING_IN_B = "missing_in_b"


class CompareStrategy(StrEnum):
    """How the record differ compares one field."""

    EXACT = "exact"
    NUMERIC_TOLERANCE = "numeric-tolerance"


class InvalidReconciliationConfigError(ValueError):
    """Raised when a reconciliation configuration is structurally invalid."""


def _field_names(values: object, *, what: str) -> tuple[str, ...]:
    if isinstance(values, str):
        raise InvalidReconciliationConfigError(f"{what} must be a sequence of field names")
    names = tuple(values)  # type: ignore[arg-type]
    if not names:
        raise InvalidReconciliationConfigError(f"{what} must not be empty")
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise InvalidReconciliationConfigError(f"{what} contains a blank field name")
    return names


def _tolerance(value: object) -> Decimal:
    if isinstance(value, bool):
        raise InvalidReconciliationConfigError("amount_tolerance must be a number")
    try:
        tolerance = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidReconciliationConfigError(
            f"amount_tolerance must be a number, got {value!r}"
        ) from exc
    if not tolerance.is_finite() or tolerance < 0:
        raise InvalidReconciliationConfigError(
            f"amount_tolerance must be a non-negative number, got {value!r}"
        )
    return tolerance


def _strategies(values: Mapping[str, object]) -> dict[str, CompareStrategy]:
    strategies: dict[str, CompareStrategy] = {}
    for name, raw in values.items():
        try:
            strategies[name] = CompareStrategy(raw)
        except ValueError as exc:
            allowed = ", ".join(strategy.value for strategy in CompareStrategy)
            raise InvalidReconciliationConfigError(
                f"Unknown comparison strategy {raw!r} for field {name!r} (allowed: {allowed})"
            ) from exc
    return strategies


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    """Which fields identify a record, which are compared, and how.

    ``field_strategies`` pins the comparison strategy per field. Fields without an
    explicit entry fall back to numeric tolerance when ``infer_amount_fields`` is set
    and their name contains "amount", otherwise to exact comparison.
    """

    key_fields: tuple[str, ...]
    compare_fields: tuple[str, ...]
    amount_tolerance: Decimal = Decimal(0)
    field_strategies: Mapping[str, CompareStrategy] = field(default_factory=dict)
    infer_amount_fields: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "key_fields", _field_names(self.key_fields, what="key_fields"))
        object.__setattr__(
            self, "compare_fields", _field_names(self.compare_fields, what="compare_fields")
        )
        object.__setattr__(self, "amount_tolerance", _tolerance(self.amount_tolerance))
        object.__setattr__(self, "field_strategies", _strategies(self.field_strategies or {}))
        object.__setattr__(self, "infer_amount_fields", bool(self.infer_amount_fields))

    def strategy_for(self, field_name: str) -> CompareStrategy:
        explicit = self.field_strategies.get(field_name)
        if explicit is not None:
            return explicit
        if self.infer_amount_fields and AMOUNT_FIELD_MARKER in field_name.lower():
            return CompareStrategy.NUMERIC_TOLERANCE
        return CompareStrategy.EXACT

    def __composite_values__(
        self,
    ) -> tuple[tuple[str, ...], tuple[str, ...], Decimal, Mapping[str, CompareStrategy], bool]:
        """For SQLAlchemy composite columns (adapter-side convenience)."""
        return (
            self.key_fields,
            self.compare_fields,
            self.amount_tolerance,
            self.field_strategies,
            self.infer_amount_fields,
        )


@dataclass(frozen=True, slots=True)
class FieldDiff:
    """One differing field between two matched records, kept for display."""

    field: str
    value_a: Scalar
    value_b: Scalar


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationItem:
    """Outcome for one key (or one A record sharing a key)."""

    status: ItemStatus
    key: MatchKey
    record_a: Record | None = None
    record_b: Record | None = None
    reasons: tuple[str, ...] = ()
    diffs: tuple[FieldDiff, ...] = ()


@dataclass(frozen=True, slots=True)
class ReconciliationSummary:
    """Counts produced by one matching run.

    ``total_a``/``total_b`` are raw input sizes; the four status counts only cover
    keyable records. ``unkeyable_a``/``unkeyable_b`` count records skipped because
    every key field was empty.
    """

    matches: int = 0
    mismatches: int = 0
    missing_in_a: int = 0
    missing_in_b: int = 0
    total_a: int = 0
    total_b: int = 0
    unkeyable_a: int = 0
    unkeyable_b: int = 0

    @property
    def outcomes(self) -> int:
        return self.matches + self.mismatches + self.missing_in_a + self.missing_in_b

    def count_for(self, status: ItemStatus) -> int:
        match status:
            case ItemStatus.MATCH:
                return self.matches
            case ItemStatus.MISMATCH:
                return self.mismatches
            case ItemStatus.MISSING_IN_A:
                return self.missing_in_a
            case ItemStatus.MISSING_IN_B:
                return self.missing_in_b

    def __composite_values__(self) -> tuple[int, int, int, int, int, int, int, int]:
        """For SQLAlchemy composite columns (adapter-side convenience)."""
        return (
            self.matches,
            self.mismatches,
            self.missing_in_a,
            self.missing_in_b,
            self.total_a,
            self.total_b,
            self.unkeyable_a,
            self.unkeyable_b,
        )
