"""Persisted reconciliation runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tabrecon.domain.model.entity import Entity
from tabrecon.domain.reconciliation import ReconciliationConfig, ReconciliationSummary

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Reconciliation(Entity):
    """One matching run: the datasets involved, the config used, and the counts."""

    dataset_a_id: UUID
    dataset_b_id: UUID
    config: ReconciliationConfig
    summary: ReconciliationSummary = field(default_factory=ReconciliationSummary)
