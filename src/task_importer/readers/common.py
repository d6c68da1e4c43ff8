from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from ..errors import EmptyFileError, SizeLimitExceededError, UnsupportedFormatError
from ..models.config_models import DEFAULT_MAX_FILE_SIZE_BYTES
from ..models.import_job import SourceType
from ..models.row_data import NormalizedRow

"""Shared header/row handling for the tabular readers.

Both readers first turn their source into a plain table of strings (row 0 is the
header) and then hand it to rows_from_table(), so CSV and spreadsheet input
reach the validator through an identical contract:

- header matched case-insensitively, order independent
- only RECOGNIZED_COLUMNS extracted, other columns ignored
- values trimmed, empty -> None
- rows blank across all recognized columns skipped (no line number consumed
  as an error, they simply do not appear)
"""

__all__ = [
    "RECOGNIZED_COLUMNS",
    "detect_source_type",
    "check_content",
    "build_column_map",
    "rows_from_table",
]

RECOGNIZED_COLUMNS = (
    "task_code",
    "name",
    "assignee",
    "start_date",
    "end_date",
    "progress",
    "status",
    "parent_task_code",
    "is_milestone",
    "predecessor_task_codes",
    "dependency_type",
    "notes",
)

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}


def detect_source_type(filename: str | None) -> SourceType:
    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in CSV_EXTENSIONS:
        return SourceType.CSV
    if suffix in EXCEL_EXTENSIONS:
        return SourceType.EXCEL
    raise UnsupportedFormatError(
        f"Unsupported file type '{suffix or filename}'. Only CSV and Excel (.xlsx, .xls) files are supported"
    )


def check_content(content: bytes, max_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES) -> None:
    """Reject empty or oversized uploads before any parsing happens."""
    if not content:
        raise EmptyFileError("File is empty")
    if len(content) > max_size_bytes:
        limit_mb = max_size_bytes / (1024 * 1024)
        raise SizeLimitExceededError(f"File size exceeds {limit_mb:g}MB limit ({len(content)} bytes)")


def build_column_map(header: Sequence[str]) -> dict[str, int]:
    """Map lower-cased, trimmed header names to column index.

    Blank header cells are ignored; on duplicate names the right-most column wins.
    """
    mapping: dict[str, int] = {}
    for index, raw in enumerate(header):
        name = str(raw).strip().lower()
        if name:
            mapping[name] = index
    return mapping


def rows_from_table(table: Sequence[Sequence[str]]) -> list[NormalizedRow]:
    if not table:
        raise EmptyFileError("File contains no rows")

    column_map = build_column_map(table[0])
    recognized = {col: column_map[col] for col in RECOGNIZED_COLUMNS if col in column_map}

    rows: list[NormalizedRow] = []
    # header is line 1, so the first data row is line 2
    for line_number, cells in enumerate(table[1:], start=2):
        values: dict[str, str | None] = {}
        for column, index in recognized.items():
            cell = cells[index].strip() if index < len(cells) else ""
            values[column] = cell or None
        if all(v is None for v in values.values()):
            continue
        rows.append(NormalizedRow(line_number=line_number, **values))
    return rows
