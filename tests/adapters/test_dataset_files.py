from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import openpyxl
import pytest

from tabrecon.adapters.dataset_files import (
    EmptyDatasetFileError,
    UnsupportedFileTypeError,
    guess_file_type,
    load_csv_dataset,
    load_dataset,
    load_xlsx_dataset,
)
from tabrecon.domain.model import FileType

if TYPE_CHECKING:
    from collections.abc import Callable

    WriteXlsx = Callable[[str, list[list[object]]], Path]


def test_load_csv_dataset_reads_header_and_rows(write_csv: Callable[[str, str], Path]) -> None:
    path = write_csv(
        "bank.csv",
        "id,amount,memo\n1,\"$1,234.50\",Rent\n2,10,\"Coffee, beans\"\n",
    )

    dataset = load_csv_dataset(path)

    assert dataset.name == "bank"
    assert dataset.original_filename == "bank.csv"
    assert dataset.file_type is FileType.CSV
    assert dataset.headers == ("id", "amount", "memo")
    assert dataset.rows == [
        {"id": "1", "amount": "$1,234.50", "memo": "Rent"},
        {"id": "2", "amount": "10", "memo": "Coffee, beans"},
    ]


def test_load_csv_dataset_strips_bom_and_header_whitespace(tmp_path: Path) -> None:
    path = tmp_path / "ledger.CSV"
    path.write_bytes("\ufeff id , amount\n7,1\n".encode())

    dataset = load_csv_dataset(path, name="  General ledger ")

    assert dataset.headers == ("id", "amount")
    assert dataset.rows == [{"id": "7", "amount": "1"}]
    assert dataset.name == "General ledger"


def test_load_csv_dataset_pads_short_rows_and_skips_blank_lines(
    write_csv: Callable[[str, str], Path],
) -> None:
    path = write_csv("short.csv", "id,amount,memo\n1,5\n\n , ,\n2,6,x,extra\n")

    dataset = load_csv_dataset(path)

    assert dataset.rows == [
        {"id": "1", "amount": "5", "memo": ""},
        {"id": "2", "amount": "6", "memo": "x"},
    ]


def test_load_csv_dataset_with_only_a_header(write_csv: Callable[[str, str], Path]) -> None:
    dataset = load_csv_dataset(write_csv("empty.csv", "id,amount\n"))

    assert dataset.headers == ("id", "amount")
    assert dataset.rows == []


def test_load_csv_dataset_rejects_empty_file(write_csv: Callable[[str, str], Path]) -> None:
    with pytest.raises(EmptyDatasetFileError):
        load_csv_dataset(write_csv("nothing.csv", ""))


def test_load_csv_dataset_supports_other_delimiters(
    write_csv: Callable[[str, str], Path],
) -> None:
    dataset = load_csv_dataset(write_csv("semi.csv", "id;amount\n1;2,50\n"), delimiter=";")

    assert dataset.rows == [{"id": "1", "amount": "2,50"}]


def test_load_xlsx_dataset_reads_first_sheet(write_xlsx: WriteXlsx) -> None:
    path = write_xlsx(
        "bank.xlsx",
        [
            ["id", " amount ", "memo"],
            ["INV-1", 100, "Rent"],
            ["INV-2", 12.5, None],
        ],
    )

    dataset = load_xlsx_dataset(path)

    assert dataset.name == "bank"
    assert dataset.original_filename == "bank.xlsx"
    assert dataset.file_type is FileType.XLSX
    assert dataset.headers == ("id", "amount", "memo")
    assert dataset.rows == [
        {"id": "INV-1", "amount": 100, "memo": "Rent"},
        {"id": "INV-2", "amount": 12.5, "memo": ""},
    ]


def test_load_xlsx_dataset_ignores_later_sheets(tmp_path: Path) -> None:
    workbook = openpyxl.Workbook()
    first = workbook.active
    assert first is not None
    first.append(["id", "amount"])
    first.append(["1", "5"])
    second = workbook.create_sheet("Other")
    second.append(["ignored"])
    path = tmp_path / "two-sheets.xlsx"
    workbook.save(path)

    dataset = load_xlsx_dataset(path)

    assert dataset.headers == ("id", "amount")
    assert dataset.rows == [{"id": "1", "amount": "5"}]


def test_load_xlsx_dataset_formats_dates_and_pads_rows(write_xlsx: WriteXlsx) -> None:
    path = write_xlsx(
        "dates.xlsx",
        [
            ["id", "booked", "memo"],
            [1, datetime(2024, 1, 5, 9, 30)],
            [None, None, None],
            [2, "2024-02-01", "x"],
        ],
    )

    dataset = load_xlsx_dataset(path, name="Bookings")

    assert dataset.name == "Bookings"
    assert dataset.rows == [
        {"id": 1, "booked": "2024-01-05T09:30:00", "memo": ""},
        {"id": 2, "booked": "2024-02-01", "memo": "x"},
    ]


def test_load_xlsx_dataset_rejects_empty_sheet(write_xlsx: WriteXlsx) -> None:
    with pytest.raises(EmptyDatasetFileError):
        load_xlsx_dataset(write_xlsx("blank.xlsx", []))


def test_load_dataset_picks_reader_by_extension(
    write_csv: Callable[[str, str], Path],
    write_xlsx: WriteXlsx,
) -> None:
    from_csv = load_dataset(write_csv("a.csv", "id\n1\n"))
    from_xlsx = load_dataset(write_xlsx("b.XLSX", [["id"], ["1"]]))

    assert from_csv.file_type is FileType.CSV
    assert from_xlsx.file_type is FileType.XLSX
    assert from_csv.rows == from_xlsx.rows == [{"id": "1"}]


@pytest.mark.parametrize("filename", ["book.xls", "book.ods", "notes.txt"])
def test_unsupported_extension_is_rejected(
    write_csv: Callable[[str, str], Path], filename: str
) -> None:
    path = write_csv(filename, "id,amount\n1,2\n")

    with pytest.raises(UnsupportedFileTypeError, match=filename):
        load_dataset(path)


def test_loaders_reject_the_other_format(write_csv: Callable[[str, str], Path]) -> None:
    with pytest.raises(UnsupportedFileTypeError):
        load_xlsx_dataset(write_csv("plain.csv", "id\n1\n"))


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("a.csv", FileType.CSV),
        ("A.CSV", FileType.CSV),
        ("a.xlsx", FileType.XLSX),
        ("a.xls", None),
        ("a", None),
    ],
)
def test_guess_file_type(filename: str, expected: FileType | None) -> None:
    assert guess_file_type(Path(filename)) is expected
