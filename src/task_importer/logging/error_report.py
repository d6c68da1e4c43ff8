from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from ..models.validation_error import REPORT_COLUMNS, ValidationError

"""Per-run error report (CSV).

One file per job: <directory>/import-errors-<job_id>.csv with the fixed columns
Line Number, Field, Value, Error Code, Error Message, one line per error in the
order the errors were produced.
"""

__all__ = [
    "ErrorReportWriter",
    "ErrorReportError",
]

logger = logging.getLogger(__name__)

FILE_PREFIX = "import-errors-"


class ErrorReportError(Exception):
    pass


class ErrorReportWriter:
    def __init__(self, directory: str | Path = "error-reports") -> None:
        self.directory = Path(directory)

    def report_path(self, job_id: str) -> Path:
        return self.directory / f"{FILE_PREFIX}{job_id}.csv"

    def write(self, errors: Sequence[ValidationError], job_id: str) -> str:
        """Write the report and return its path as a string.

        Raises:
            ErrorReportError: directory or file could not be written
        """
        frame = pd.DataFrame([e.as_report_row() for e in errors], columns=list(REPORT_COLUMNS))
        path = self.report_path(job_id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            frame.to_csv(path, index=False, encoding="utf-8")
        except OSError as e:
            raise ErrorReportError(f"failed writing error report {path}: {e}") from e
        logger.debug("error report written path=%s errors=%d", path, len(errors))
        return str(path)
