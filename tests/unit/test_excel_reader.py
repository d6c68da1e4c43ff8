from __future__ import annotations

from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from task_importer.errors import EmptyFileError, MalformedInputError
from task_importer.readers import read_excel_rows, read_rows
from task_importer.readers.excel_reader import cell_to_string, excel_engine_for


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, ""),
        (float("nan"), ""),
        (pd.NaT, ""),
        (True, "true"),
        (np.bool_(False), "false"),
        (date(2026, 3, 1), "2026-03-01"),
        (datetime(2026, 3, 1, 14, 30), "2026-03-01"),
        (pd.Timestamp("2026-03-02"), "2026-03-02"),
        (3, "3"),
        (np.int64(42), "42"),
        (3.0, "3"),
        (2.5, "2.5"),
        ("  text ", "  text "),
    ],
)
def test_cell_to_string(value, expected):
    """Typed cells become canonical strings."""
    assert cell_to_string(value) == expected


def test_excel_engine_for():
    """.xls uses xlrd, everything else openpyxl."""
    assert excel_engine_for("a.xls") == "xlrd"
    assert excel_engine_for("a.XLS") == "xlrd"
    assert excel_engine_for("a.xlsx") == "openpyxl"


def test_read_excel_converts_typed_cells(excel_bytes):
    """Numbers, dates and booleans read as text."""
    content = excel_bytes(
        ["task_code", "name", "start_date", "end_date", "progress", "is_milestone"],
        [
            ["T-1", "Design", datetime(2026, 1, 5), datetime(2026, 1, 9), 50, True],
            ["T-2", "Build", datetime(2026, 1, 12), datetime(2026, 1, 16), 0, False],
        ],
    )
    rows = read_excel_rows(content)
    assert [r.line_number for r in rows] == [2, 3]
    first = rows[0]
    assert first.start_date == "2026-01-05"
    assert first.end_date == "2026-01-09"
    assert first.progress == "50"
    assert first.is_milestone == "true"
    assert rows[1].is_milestone == "false"


def test_read_excel_skips_blank_rows(excel_bytes):
    """Blank rows keep the following line numbers intact."""
    content = excel_bytes(
        ["Task_Code", "Name"],
        [["T-1", "A"], [None, None], ["T-2", "B"]],
    )
    rows = read_excel_rows(content)
    assert [(r.line_number, r.task_code) for r in rows] == [(2, "T-1"), (4, "T-2")]


def test_read_excel_same_contract_as_csv(excel_bytes):
    """Workbook and CSV with the same content give the same rows."""
    csv_rows = read_rows(b"task_code,name,progress\nT-1,Design,10\n", "t.csv")
    xlsx_rows = read_rows(excel_bytes(["task_code", "name", "progress"], [["T-1", "Design", 10]]), "t.xlsx")
    assert csv_rows == xlsx_rows


def test_read_excel_corrupt_workbook():
    """Bytes that are not a workbook raise MalformedInputError."""
    with pytest.raises(MalformedInputError):
        read_excel_rows(b"this is not a workbook")


def test_read_excel_empty_sheet(excel_bytes):
    """An empty first sheet raises EmptyFileError."""
    content = excel_bytes([], [])
    with pytest.raises(EmptyFileError):
        read_excel_rows(content)
