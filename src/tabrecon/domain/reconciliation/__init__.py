"""Reconciliation core: match two datasets on a composite key.

Layered flow:
1) normalize key-field values and build match keys
2) index dataset B by key (first occurrence wins)
3) look up every keyable A record and diff matched pairs
4) sweep unconsumed B entries
5) hand summary + ordered items to storage and the result-set query contract
"""

from __future__ import annotations

from .contracts import (
    CompareStrategy,
    FieldDiff,
    InvalidReconciliationConfigError,
    ItemStatus,
    MatchKey,
    Record,
    ReconciliationConfig,
    ReconciliationItem,
    ReconciliationSummary,
)
from .diff import diff_records
from .engine import EntryState, KeyLookup, LookupEntry, MatchingEngine, reconcile
from .normalize import KEY_SEPARATOR, make_key, normalize_amount, normalize_scalar
from .query import (
    InvalidItemQueryError,
    ItemPage,
    ItemQuery,
    ResultSet,
    clamp_page_size,
    parse_status,
)

__all__ = [
    "KEY_SEPARATOR",
    "CompareStrategy",
    "EntryState",
    "FieldDiff",
    "InvalidItemQueryError",
    "InvalidReconciliationConfigError",
    "ItemPage",
    "ItemQuery",
    "ItemStatus",
    "KeyLookup",
    "LookupEntry",
    "MatchKey",
    "MatchingEngine",
    "Record",
    "ReconciliationConfig",
    "ReconciliationItem",
    "ReconciliationSummary",
    "ResultSet",
    "clamp_page_size",
    "diff_records",
    "make_key",
    "normalize_amount",
    "normalize_scalar",
    "parse_status",
    "reconcile",
]
