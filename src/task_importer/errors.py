from __future__ import annotations

"""Input-level errors that reject a whole import run.

These fail the run before any row is processed and before any job record is
created. Row-level problems are never raised; they are collected as
ValidationError values instead.
"""

__all__ = [
    "ProcessingError",
    "ProjectNotFoundError",
    "ReaderError",
    "UnsupportedFormatError",
    "EmptyFileError",
    "SizeLimitExceededError",
    "MalformedInputError",
]


class ProcessingError(Exception):
    """Base exception for processing errors."""


class ProjectNotFoundError(ProcessingError):
    def __init__(self, project_id: int) -> None:
        super().__init__(f"Project not found with id: {project_id}")
        self.project_id = project_id


class ReaderError(ProcessingError):
    """Raised when the uploaded file cannot be turned into rows."""


class UnsupportedFormatError(ReaderError):
    """Unrecognized file extension."""


class EmptyFileError(ReaderError):
    """Zero bytes, or no rows at all."""


class SizeLimitExceededError(ReaderError):
    """File larger than the configured cap."""


class MalformedInputError(ReaderError):
    """Structure could not be parsed (bad encoding, broken CSV, corrupt workbook)."""
