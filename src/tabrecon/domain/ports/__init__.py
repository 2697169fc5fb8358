"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import DatasetRepository, ReconciliationRepository, Repository
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "DatasetRepository",
    "ReconciliationRepositories",
    "ReconciliationRepository",
    "ReconciliationUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
