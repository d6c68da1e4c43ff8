from __future__ import annotations

import io
import logging

import pandas as pd

from ..errors import EmptyFileError, MalformedInputError
from ..models.row_data import NormalizedRow
from .common import rows_from_table

"""Delimited-text reader.

UTF-8 with an optional leading byte-order mark ("utf-8-sig"). Every cell is read
as text (no NA conversion) so strings such as "NA" or "0" reach the validator
untouched. A record longer than the header keeps its leading cells and drops
the rest; a shorter one is padded with empty cells. Blank lines are kept while
parsing so that line numbers match the physical file; rows_from_table() drops
them afterwards.
"""

__all__ = [
    "read_csv_rows",
]

logger = logging.getLogger(__name__)


def _cell_text(value: object) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value)


def _read_table(content: bytes, **kwargs) -> pd.DataFrame:
    return pd.read_csv(
        io.BytesIO(content),
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        encoding="utf-8-sig",
        engine="python",
        **kwargs,
    )


def read_csv_rows(content: bytes) -> list[NormalizedRow]:
    try:
        # the header line fixes the width; extra cells on longer records are dropped
        width = _read_table(content, nrows=1).shape[1]
        df = _read_table(content, on_bad_lines=lambda fields: fields[:width])
    except pd.errors.EmptyDataError as e:
        raise EmptyFileError("CSV file is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        raise MalformedInputError(f"Failed to parse CSV file: {e}") from e

    table = [[_cell_text(v) for v in record] for record in df.itertuples(index=False, name=None)]
    rows = rows_from_table(table)
    logger.debug("csv parsed lines=%d rows=%d", len(table), len(rows))
    return rows
