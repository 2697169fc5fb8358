"""Load CSV and XLSX files into ``Dataset`` aggregates."""

from __future__ import annotations

import csv
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import TYPE_CHECKING, Final

import openpyxl

from tabrecon.domain.model import Dataset, FileType
from tabrecon.domain.reconciliation import normalize_scalar

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tabrecon.domain.reconciliation import Record
    from tabrecon.domain.reconciliation.contracts import Scalar

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES: Final[dict[str, FileType]] = {
    ".csv": FileType.CSV,
    ".xlsx": FileType.XLSX,
}


class UnsupportedFileTypeError(ValueError):
    """Raised when a dataset file has an extension we cannot parse."""

    def __init__(self, path: Path) -> None:
        self.path = path
        supported = ", ".join(sorted(SUPPORTED_SUFFIXES))
        super().__init__(f"Unsupported file type for {path.name!r} (supported: {supported})")


class EmptyDatasetFileError(ValueError):
    """Raised when a dataset file has no header row."""


def guess_file_type(path: Path) -> FileType | None:
    return SUPPORTED_SUFFIXES.get(path.suffix.lower())


def _require_file_type(source: Path, expected: FileType) -> None:
    if guess_file_type(source) is not expected:
        raise UnsupportedFileTypeError(source)


def _is_blank(cell: object) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())


def _build_rows(headers: Sequence[str], raw_rows: Iterable[Sequence[Scalar]]) -> list[Record]:
    rows: list[Record] = []
    for cells in raw_rows:
        if all(_is_blank(cell) for cell in cells):
            continue
        padded = list(cells[: len(headers)]) + [""] * (len(headers) - len(cells))
        rows.append(dict(zip(headers, padded, strict=True)))
    return rows


def _build_dataset(
    source: Path,
    name: str | None,
    file_type: FileType,
    headers: tuple[str, ...],
    rows: list[Record],
) -> Dataset:
    dataset_name = (name or "").strip() or source.stem
    log.info("Loaded %s rows from %s as dataset %r", len(rows), source, dataset_name)
    return Dataset(
        name=dataset_name,
        original_filename=source.name,
        file_type=file_type,
        headers=headers,
        rows=rows,
    )


def _clean_header(header: list[str]) -> tuple[str, ...]:
    if header and header[0].startswith("\ufeff"):
        header[0] = header[0].lstrip("\ufeff")
    return tuple(name.strip() for name in header)


def load_csv_dataset(
    path: Path | str,
    *,
    name: str | None = None,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
) -> Dataset:
    """Read ``path`` into a dataset; short rows are padded with ``""``, extra cells dropped."""

    source = Path(path)
    _require_file_type(source, FileType.CSV)

    with source.open("r", newline="", encoding=encoding) as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        try:
            headers = _clean_header(next(reader))
        except StopIteration:
            raise EmptyDatasetFileError(f"CSV file has no header row: {source}") from None
        rows = _build_rows(headers, reader)

    return _build_dataset(source, name, FileType.CSV, headers, rows)


def _xlsx_cell(value: object) -> Scalar:
    if value is None:
        return ""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def load_xlsx_dataset(path: Path | str, *, name: str | None = None) -> Dataset:
    """Read the first worksheet of ``path``.

    The first non-blank row supplies the headers. Empty cells become ``""``, dates
    become ISO strings, and numbers keep their spreadsheet type.
    """

    source = Path(path)
    _require_file_type(source, FileType.XLSX)

    workbook = openpyxl.load_workbook(source, read_only=True, data_only=True)
    try:
        worksheet = workbook.worksheets[0]
        values = (
            tuple(_xlsx_cell(cell) for cell in row)
            for row in worksheet.iter_rows(values_only=True)
        )
        header_row = next((row for row in values if not all(map(_is_blank, row))), None)
        if header_row is None:
            raise EmptyDatasetFileError(f"Worksheet has no header row: {source}")
        names = [normalize_scalar(cell) for cell in header_row]
        # formatted but empty trailing columns carry no header
        while names and not names[-1]:
            names.pop()
        headers = tuple(names)
        rows = _build_rows(headers, values)
    finally:
        workbook.close()

    return _build_dataset(source, name, FileType.XLSX, headers, rows)


def load_dataset(path: Path | str, *, name: str | None = None) -> Dataset:
    """Load a dataset file, picking the reader from its extension."""

    source = Path(path)
    match guess_file_type(source):
        case FileType.CSV:
            return load_csv_dataset(source, name=name)
        case FileType.XLSX:
            return load_xlsx_dataset(source, name=name)
        case None:
            raise UnsupportedFileTypeError(source)
