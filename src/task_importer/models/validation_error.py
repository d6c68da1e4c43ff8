from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""ValidationError model for per-row import errors.

One ValidationError is produced for every failed check (validation phase) or
failed write (commit phase). The same record feeds the job record returned to
the caller and the CSV error report, whose five columns follow the order of
`as_report_row()`.
"""

__all__ = [
    "ErrorCode",
    "ValidationError",
    "REPORT_COLUMNS",
]

REPORT_COLUMNS = ("Line Number", "Field", "Value", "Error Code", "Error Message")


class ErrorCode(str, Enum):
    """Error taxonomy shared by validation and commit phases."""
    REQUIRED_FIELD = "REQUIRED_FIELD"
    FIELD_TOO_LONG = "FIELD_TOO_LONG"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_VALUE = "INVALID_VALUE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    REFERENCE_NOT_FOUND = "REFERENCE_NOT_FOUND"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    # commit phase
    IMPORT_ERROR = "IMPORT_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"


@dataclass(frozen=True)
class ValidationError:
    """Structured error for a single line/field.

    Attributes:
        line_number: Source line (header = 1)
        field: Column name the error refers to (e.g. ``start_date``)
        value: Echo of the offending raw value, None if the field was empty
        error_code: Classification from ErrorCode
        error_message: Human readable description
    """
    line_number: int
    field: str
    value: str | None
    error_code: ErrorCode
    error_message: str

    def as_report_row(self) -> list[str]:
        return [
            str(self.line_number),
            self.field or "",
            self.value if self.value is not None else "",
            self.error_code.value,
            self.error_message or "",
        ]
