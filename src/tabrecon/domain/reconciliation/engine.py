"""Matching engine: one-pass hash join of dataset A against dataset B.

Join policy:
- the B lookup owns exactly one record per key; the first occurrence wins and
  later B records sharing that key are dropped without an outcome of their own
- every keyable A record produces one outcome, so A-side duplicates each match
  (or mismatch) the same B record
- records whose key fields are all empty are unkeyable and skipped on both sides

The lookup must be fully built before any A record is looked up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from .contracts import ItemStatus, ReconciliationItem, ReconciliationSummary
from .diff import diff_records
from .normalize import make_key

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from .contracts import MatchKey, Record, ReconciliationConfig
    from .diff import DiffRecords

log = logging.getLogger(__name__)

NO_MATCH_IN_B = "No matching key in dataset B"
NO_MATCH_IN_A = "No matching key in dataset A"


class BuildKey(Protocol):
    """Derive a match key for a record from the configured key fields."""

    def __call__(self, record: Record, key_fields: Sequence[str]) -> MatchKey: ...


class EntryState(StrEnum):
    """Lifecycle of a B lookup entry; transitions only ``unconsumed -> consumed``."""

    UNCONSUMED = "unconsumed"
    CONSUMED = "consumed"


@dataclass(slots=True)
class LookupEntry:
    key: MatchKey
    record: Record
    state: EntryState = EntryState.UNCONSUMED

    @property
    def consumed(self) -> bool:
        return self.state is EntryState.CONSUMED

    def consume(self) -> None:
        self.state = EntryState.CONSUMED


@dataclass(slots=True)
class KeyLookup:
    """B records indexed by match key, in insertion order."""

    entries: dict[MatchKey, LookupEntry] = field(default_factory=dict["MatchKey", LookupEntry])
    unkeyable: int = 0
    duplicates: int = 0

    @classmethod
    def build(
        cls,
        rows: Sequence[Record],
        key_fields: Sequence[str],
        *,
        build_key: BuildKey = make_key,
    ) -> KeyLookup:
        lookup = cls()
        for record in rows:
            key = build_key(record, key_fields)
            if not key:
                lookup.unkeyable += 1
                continue
            if key in lookup.entries:
                lookup.duplicates += 1
                continue
            lookup.entries[key] = LookupEntry(key=key, record=record)
        return lookup

    def find(self, key: MatchKey) -> LookupEntry | None:
        return self.entries.get(key)

    def unconsumed(self) -> Iterator[LookupEntry]:
        return (entry for entry in self.entries.values() if not entry.consumed)


@dataclass(slots=True)
class _Tally:
    matches: int = 0
    mismatches: int = 0
    missing_in_a: int = 0
    missing_in_b: int = 0
    unkeyable_a: int = 0

    def record(self, status: ItemStatus) -> None:
        match status:
            case ItemStatus.MATCH:
                self.matches += 1
            case ItemStatus.MISMATCH:
                self.mismatches += 1
            case ItemStatus.MISSING_IN_A:
                self.missing_in_a += 1
            case ItemStatus.MISSING_IN_B:
                self.missing_in_b += 1


@dataclass(slots=True, frozen=True)
class MatchingEngine:
    """Run the join for one configuration with pluggable key and diff stages."""

    config: ReconciliationConfig
    build_key: BuildKey = make_key
    diff: DiffRecords = diff_records

    def reconcile(
        self,
        rows_a: Sequence[Record],
        rows_b: Sequence[Record],
    ) -> tuple[ReconciliationSummary, tuple[ReconciliationItem, ...]]:
        """Classify every keyable record; items follow A order, then B order."""

        config = self.config
        lookup = KeyLookup.build(rows_b, config.key_fields, build_key=self.build_key)
        if lookup.duplicates:
            log.debug("Dropped %s duplicate-key records from dataset B", lookup.duplicates)

        tally = _Tally()
        items: list[ReconciliationItem] = []

        for record_a in rows_a:
            key = self.build_key(record_a, config.key_fields)
            if not key:
                tally.unkeyable_a += 1
                continue
            item = self._classify(key, record_a, lookup.find(key))
            tally.record(item.status)
            items.append(item)

        for entry in lookup.unconsumed():
            tally.record(ItemStatus.MISSING_IN_A)
            items.append(
                ReconciliationItem(
                    status=ItemStatus.MISSING_IN_A,
                    key=entry.key,
                    record_b=entry.record,
                    reasons=(NO_MATCH_IN_A,),
                )
            )

        if tally.unkeyable_a or lookup.unkeyable:
            log.warning(
                "Skipped unkeyable records: dataset_a=%s, dataset_b=%s",
                tally.unkeyable_a,
                lookup.unkeyable,
            )

        summary = ReconciliationSummary(
            matches=tally.matches,
            mismatches=tally.mismatches,
            missing_in_a=tally.missing_in_a,
            missing_in_b=tally.missing_in_b,
            total_a=len(rows_a),
            total_b=len(rows_b),
            unkeyable_a=tally.unkeyable_a,
            unkeyable_b=lookup.unkeyable,
        )
        return summary, tuple(items)

    def _classify(
        self,
        key: MatchKey,
        record_a: Record,
        entry: LookupEntry | None,
    ) -> ReconciliationItem:
        if entry is None:
            return ReconciliationItem(
                status=ItemStatus.MISSING_IN_B,
                key=key,
                record_a=record_a,
                reasons=(NO_MATCH_IN_B,),
            )

        entry.consume()
        diffs, reasons = self.diff(
            record_a,
            entry.record,
            self.config.compare_fields,
            self.config.amount_tolerance,
            self.config.strategy_for,
        )
        status = ItemStatus.MISMATCH if diffs else ItemStatus.MATCH
        return ReconciliationItem(
            status=status,
            key=key,
            record_a=record_a,
            record_b=entry.record,
            reasons=reasons,
            diffs=diffs,
        )


def reconcile(
    rows_a: Sequence[Record],
    rows_b: Sequence[Record],
    config: ReconciliationConfig,
) -> tuple[ReconciliationSummary, tuple[ReconciliationItem, ...]]:
    """Reconcile dataset A against dataset B with the default key and diff stages."""

    return MatchingEngine(config).reconcile(rows_a, rows_b)
