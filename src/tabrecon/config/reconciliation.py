"""Defaults applied to reconciliation requests and item listings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Final

from .env import optional_env_var
from .errors import InvalidConfigurationError

DEFAULT_AMOUNT_TOLERANCE: Final[Decimal] = Decimal(0)
DEFAULT_PAGE_SIZE: Final[int] = 25


@dataclass(frozen=True, slots=True)
class ReconciliationDefaults:
    amount_tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE
    page_size: int = DEFAULT_PAGE_SIZE


def get_reconciliation_defaults() -> ReconciliationDefaults:
    tolerance = DEFAULT_AMOUNT_TOLERANCE
    raw_tolerance = optional_env_var("TABRECON_AMOUNT_TOLERANCE")
    if raw_tolerance is not None:
        try:
            tolerance = Decimal(raw_tolerance)
        except InvalidOperation as exc:
            raise InvalidConfigurationError(
                "TABRECON_AMOUNT_TOLERANCE", raw_tolerance, "a decimal number"
            ) from exc
        if not tolerance.is_finite() or tolerance < 0:
            raise InvalidConfigurationError(
                "TABRECON_AMOUNT_TOLERANCE", raw_tolerance, "a non-negative decimal"
            )

    page_size = DEFAULT_PAGE_SIZE
    raw_page_size = optional_env_var("TABRECON_PAGE_SIZE")
    if raw_page_size is not None:
        try:
            page_size = int(raw_page_size)
        except ValueError as exc:
            raise InvalidConfigurationError(
                "TABRECON_PAGE_SIZE", raw_page_size, "an integer"
            ) from exc

    return ReconciliationDefaults(amount_tolerance=tolerance, page_size=page_size)
