"""Value normalization and composite key construction.

Responsibilities of this module:
- canonicalize scalar values for exact comparison
- parse currency-formatted amounts into decimals
- derive deterministic match keys from key fields

Nothing here raises on bad data; unusable input degrades to ``""`` or ``None``.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .contracts import MatchKey, Record

KEY_SEPARATOR: Final[str] = " | "
_AMOUNT_NOISE: Final[re.Pattern[str]] = re.compile(r"[,$₹]")


def normalize_scalar(value: object) -> str:
    """Return the canonical string form used for exact comparison and keys."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def normalize_amount(value: object) -> Decimal | None:
    """Parse an amount such as ``"$1,234.50"``; ``None`` means "not a usable amount"."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)

    cleaned = _AMOUNT_NOISE.sub("", str(value)).strip()
    # Decimal accepts digit-group underscores ("1_000"); plain number text does not
    if not cleaned or "_" in cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _escape_key_part(part: str) -> str:
    return part.replace("\\", "\\\\").replace("|", "\\|")


def make_key(record: Record, key_fields: Sequence[str]) -> MatchKey:
    """Build the lower-cased composite key for ``record``.

    Returns ``""`` when every key field is empty; such records are unkeyable.
    """

    parts = [normalize_scalar(record.get(name)) for name in key_fields]
    if not any(parts):
        return ""
    return KEY_SEPARATOR.join(_escape_key_part(part) for part in parts).lower()
