"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FileType(StrEnum):
    """Source format a dataset was parsed from."""

    CSV = "csv"
    XLSX = "xlsx"
