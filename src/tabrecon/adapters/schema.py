"""Pydantic models describing inbound reconcile and item-listing payloads."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID  # noqa: TC003 # pydantic resolves annotations at runtime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tabrecon.config.reconciliation import DEFAULT_PAGE_SIZE
from tabrecon.domain.reconciliation import (
    CompareStrategy,
    ItemQuery,
    ReconciliationConfig,
    parse_status,
)

DEFAULT_COMPARE_FIELDS: tuple[str, ...] = ("amount",)


def _strip_names(values: list[str]) -> list[str]:
    stripped = [value.strip() for value in values]
    if any(not value for value in stripped):
        raise ValueError("field names must not be blank")
    return stripped


class PayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ReconcileRequest(PayloadModel):
    dataset_a_id: UUID = Field(alias="datasetAId")
    dataset_b_id: UUID = Field(alias="datasetBId")
    key_fields: list[str] = Field(alias="keyFields", min_length=1)
    compare_fields: list[str] = Field(
        alias="compareFields",
        default_factory=lambda: list(DEFAULT_COMPARE_FIELDS),
        min_length=1,
    )
    amount_tolerance: Decimal = Field(alias="amountTolerance", default=Decimal(0), ge=0)
    field_strategies: dict[str, CompareStrategy] = Field(
        alias="fieldStrategies", default_factory=dict
    )
    infer_amount_fields: bool = Field(alias="inferAmountFields", default=True)

    normalize_field_names = field_validator("key_fields", "compare_fields")(_strip_names)

    @field_validator("amount_tolerance")
    @classmethod
    def _finite_tolerance(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("amountTolerance must be finite")
        return value

    def to_config(self) -> ReconciliationConfig:
        return ReconciliationConfig(
            key_fields=tuple(self.key_fields),
            compare_fields=tuple(self.compare_fields),
            amount_tolerance=self.amount_tolerance,
            field_strategies=dict(self.field_strategies),
            infer_amount_fields=self.infer_amount_fields,
        )


class ItemsQueryRequest(PayloadModel):
    status: str = "all"
    q: str = ""
    page: int = 1
    page_size: int = Field(alias="pageSize", default=DEFAULT_PAGE_SIZE)

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        parse_status(value)
        return value.strip().lower() or "all"

    def to_query(self) -> ItemQuery:
        return ItemQuery(
            status=parse_status(self.status),
            search=self.q,
            page=self.page,
            page_size=self.page_size,
        )
