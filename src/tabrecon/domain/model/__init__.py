"""Public domain model surface."""

from __future__ import annotations

from tabrecon.domain.model.dataset import Dataset
from tabrecon.domain.model.entity import Entity, new_id, utcnow
from tabrecon.domain.model.enums import FileType
from tabrecon.domain.model.reconciliation import Reconciliation

__all__ = [
    "Dataset",
    "Entity",
    "FileType",
    "Reconciliation",
    "new_id",
    "utcnow",
]
