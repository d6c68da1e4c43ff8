from __future__ import annotations

import io
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..errors import EmptyFileError, MalformedInputError
from ..models.row_data import NormalizedRow
from .common import rows_from_table

"""Spreadsheet reader (.xlsx via openpyxl, .xls via xlrd).

Only the first sheet is read, first row = header. Typed cells are converted to
the same canonical strings a CSV export would carry:

- date / datetime cells -> yyyy-MM-dd
- whole numbers -> no decimal point (3.0 -> "3")
- booleans -> "true" / "false"
"""

__all__ = [
    "read_excel_rows",
    "cell_to_string",
    "excel_engine_for",
]

logger = logging.getLogger(__name__)


def excel_engine_for(filename: str | None) -> str:
    if filename and Path(filename).suffix.lower() == ".xls":
        return "xlrd"
    return "openpyxl"


def cell_to_string(value: Any) -> str:
    """Convert a raw cell value to its canonical string form."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):  # pd.Timestamp is a datetime
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        number = float(value)
        return str(int(number)) if number.is_integer() else str(number)
    return str(value)


def read_excel_rows(content: bytes, engine: str = "openpyxl") -> list[NormalizedRow]:
    try:
        df = pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=engine,
        )
    except Exception as e:  # zipfile / openpyxl / xlrd all raise their own types
        raise MalformedInputError(f"Failed to read Excel file: {e}") from e

    if df.empty:
        raise EmptyFileError("Excel file is empty")

    table = [[cell_to_string(v) for v in record] for record in df.itertuples(index=False, name=None)]
    rows = rows_from_table(table)
    logger.debug("excel parsed engine=%s lines=%d rows=%d", engine, len(table), len(rows))
    return rows
