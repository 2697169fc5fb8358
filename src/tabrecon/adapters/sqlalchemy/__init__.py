"""SQLAlchemy adapter package for tabrecon."""

from __future__ import annotations

from .mappings import (
    dataset_table,
    mapper_registry,
    reconciliation_item_table,
    reconciliation_table,
    start_mappers,
)
from .repositories import SqlAlchemyDatasetRepository, SqlAlchemyReconciliationRepository

__all__ = [
    "SqlAlchemyDatasetRepository",
    "SqlAlchemyReconciliationRepository",
    "dataset_table",
    "mapper_registry",
    "reconciliation_item_table",
    "reconciliation_table",
    "start_mappers",
]
