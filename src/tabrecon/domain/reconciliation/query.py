"""Result set contract: filtering and pagination over reconciliation items.

Storage adapters implement the same semantics in their query language:
- ``status=None`` means every outcome
- ``search`` is a case-insensitive literal substring of the key
- ``total`` counts the filtered set, independent of the requested page
- default order is the order in which the engine produced the items
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .contracts import ItemStatus

if TYPE_CHECKING:
    from .contracts import ReconciliationItem, ReconciliationSummary

ALL_STATUSES: Final[str] = "all"
MIN_PAGE_SIZE: Final[int] = 5
MAX_PAGE_SIZE: Final[int] = 100
DEFAULT_PAGE_SIZE: Final[int] = 25


class InvalidItemQueryError(ValueError):
    """Raised when an item query names an unknown status."""


def clamp_page_size(page_size: int) -> int:
    return min(MAX_PAGE_SIZE, max(MIN_PAGE_SIZE, page_size))


def parse_status(value: str | ItemStatus | None) -> ItemStatus | None:
    """Map ``None``/``""``/``"all"`` to no filter, anything else to an ``ItemStatus``."""

    if value is None or isinstance(value, ItemStatus):
        return value
    normalized = value.strip().lower()
    if not normalized or normalized == ALL_STATUSES:
        return None
    try:
        return ItemStatus(normalized)
    except ValueError as exc:
        allowed = ", ".join([ALL_STATUSES, *(status.value for status in ItemStatus)])
        raise InvalidItemQueryError(f"Unknown status {value!r} (allowed: {allowed})") from exc


@dataclass(frozen=True, slots=True)
class ItemQuery:
    """Filter and page request; page and page size are clamped on construction."""

    status: ItemStatus | None = None
    search: str = ""
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", parse_status(self.status))
        object.__setattr__(self, "search", (self.search or "").strip().lower())
        object.__setattr__(self, "page", max(1, self.page))
        object.__setattr__(self, "page_size", clamp_page_size(self.page_size))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def search_pattern(self) -> re.Pattern[str] | None:
        if not self.search:
            return None
        return re.compile(re.escape(self.search), re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ItemPage:
    total: int
    page: int
    page_size: int
    items: tuple[ReconciliationItem, ...]

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


@dataclass(frozen=True, slots=True)
class ResultSet:
    """Summary plus the ordered items of one reconciliation run."""

    summary: ReconciliationSummary
    items: tuple[ReconciliationItem, ...]

    def filter(self, query: ItemQuery) -> tuple[ReconciliationItem, ...]:
        pattern = query.search_pattern()
        return tuple(
            item
            for item in self.items
            if (query.status is None or item.status is query.status)
            and (pattern is None or pattern.search(item.key) is not None)
        )

    def query(self, query: ItemQuery | None = None) -> ItemPage:
        effective = query or ItemQuery()
        selected = self.filter(effective)
        window = selected[effective.offset : effective.offset + effective.page_size]
        return ItemPage(
            total=len(selected),
            page=effective.page,
            page_size=effective.page_size,
            items=window,
        )
