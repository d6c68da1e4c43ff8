"""Tabular readers: raw upload bytes -> ordered NormalizedRow sequence.

read_rows() picks the reader from the file extension; both readers share the
same output contract (see readers.common).
"""

from __future__ import annotations

from ..models.config_models import DEFAULT_MAX_FILE_SIZE_BYTES
from ..models.import_job import SourceType
from ..models.row_data import NormalizedRow
from .common import RECOGNIZED_COLUMNS, check_content, detect_source_type
from .csv_reader import read_csv_rows
from .excel_reader import excel_engine_for, read_excel_rows

__all__ = [
    "RECOGNIZED_COLUMNS",
    "detect_source_type",
    "read_rows",
    "read_csv_rows",
    "read_excel_rows",
]


def read_rows(
    content: bytes,
    filename: str,
    max_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> list[NormalizedRow]:
    """Parse an upload into rows.

    Raises UnsupportedFormatError, EmptyFileError, SizeLimitExceededError or
    MalformedInputError; the extension is checked before the content.
    """
    source_type = detect_source_type(filename)
    check_content(content, max_size_bytes)
    if source_type is SourceType.CSV:
        return read_csv_rows(content)
    return read_excel_rows(content, engine=excel_engine_for(filename))
