"""Field-level comparison of two matched records."""

from __future__ import annotations

from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal, Overflow, localcontext
from typing import TYPE_CHECKING, Protocol

from .contracts import AMOUNT_FIELD_MARKER, CompareStrategy, FieldDiff
from .normalize import normalize_amount, normalize_scalar

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .contracts import Record, Scalar

type StrategyResolver = Callable[[str], CompareStrategy]

_CENTS = Decimal("0.01")


class DiffRecords(Protocol):
    """Compare two records and return ``(diffs, reasons)`` of equal length."""

    def __call__(
        self,
        record_a: Record,
        record_b: Record,
        compare_fields: Sequence[str],
        amount_tolerance: Decimal,
        strategy_for: StrategyResolver,
    ) -> tuple[tuple[FieldDiff, ...], tuple[str, ...]]: ...


def infer_strategy(field_name: str) -> CompareStrategy:
    if AMOUNT_FIELD_MARKER in field_name.lower():
        return CompareStrategy.NUMERIC_TOLERANCE
    return CompareStrategy.EXACT


def diff_records(
    record_a: Record,
    record_b: Record,
    compare_fields: Sequence[str],
    amount_tolerance: Decimal = Decimal(0),
    strategy_for: StrategyResolver = infer_strategy,
) -> tuple[tuple[FieldDiff, ...], tuple[str, ...]]:
    """Diff ``compare_fields`` in order; no diffs means the records match."""

    diffs: list[FieldDiff] = []
    reasons: list[str] = []

    for name in compare_fields:
        raw_a = record_a.get(name)
        raw_b = record_b.get(name)

        if strategy_for(name) is CompareStrategy.NUMERIC_TOLERANCE:
            outcome = _diff_amount(name, raw_a, raw_b, amount_tolerance)
            if outcome is not None:
                diffs.append(outcome[0])
                reasons.append(outcome[1])
            continue

        if normalize_scalar(raw_a) != normalize_scalar(raw_b):
            diffs.append(FieldDiff(name, raw_a, raw_b))
            reasons.append(f"{name} mismatch")

    return tuple(diffs), tuple(reasons)


def _diff_amount(
    name: str,
    raw_a: Scalar,
    raw_b: Scalar,
    tolerance: Decimal,
) -> tuple[FieldDiff, str] | None:
    amount_a = normalize_amount(raw_a)
    amount_b = normalize_amount(raw_b)

    if amount_a is None or amount_b is None:
        # unparsable on either side: fall back to exact text comparison
        if normalize_scalar(raw_a) == normalize_scalar(raw_b):
            return None
        side = "A" if amount_a is None else "B"
        return FieldDiff(name, raw_a, raw_b), f"Invalid/missing amount in {side}"

    with localcontext() as ctx:
        # a delta beyond the exponent range becomes +/-Infinity instead of raising
        ctx.traps[Overflow] = False
        delta = amount_a - amount_b
        if abs(delta) <= tolerance:
            return None
        shown = _display_delta(delta, ctx.prec)
    return (
        FieldDiff(name, amount_a, amount_b),
        f"Amount differs by {shown} (tolerance {tolerance})",
    )


def _display_delta(delta: Decimal, precision: int) -> Decimal:
    """Round to cents unless the rounded value would not fit the context precision."""

    if delta.is_finite() and delta.adjusted() + 3 <= precision:
        return delta.quantize(_CENTS, rounding=ROUND_HALF_UP)
    return delta
