"""Datasets: parsed tabular inputs owned by the caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tabrecon.domain.model.entity import Entity
from tabrecon.domain.model.enums import FileType

if TYPE_CHECKING:
    from tabrecon.domain.reconciliation import Record


@dataclass(eq=False, kw_only=True)
class Dataset(Entity):
    """Ordered records sharing a nominal header list.

    Row order defines "first occurrence" when the dataset is used as side B.
    """

    name: str
    original_filename: str
    file_type: FileType = FileType.CSV
    headers: tuple[str, ...] = ()
    rows: list[Record] = field(default_factory=list["Record"])

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def preview(self, limit: int = 25) -> list[Record]:
        return self.rows[:limit]
