from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .validation_error import ValidationError

"""Import job domain models.

ImportJobRecord is the audit entry created once per run; ImportSummary holds the
derived counters. Both are frozen: the job log is append-only and a record is
never updated after it has been persisted.

State transitions of a run:
    parsing -> validating -> (DRY_RUN | FAILED | committing) -> (SUCCESS | PARTIAL)
"""

__all__ = [
    "SourceType",
    "JobStatus",
    "ImportSummary",
    "ImportJobRecord",
    "UploadedFile",
]


class SourceType(Enum):
    CSV = "CSV"
    EXCEL = "Excel"


class JobStatus(Enum):
    """Terminal status of an import run.

    - DRY_RUN: validate-only run, nothing committed
    - FAILED: validation errors, nothing committed
    - SUCCESS: committed without row or edge failures
    - PARTIAL: committed, some rows or edges failed
    """
    DRY_RUN = "DRY_RUN"
    FAILED = "FAILED"
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"


@dataclass(frozen=True)
class ImportSummary:
    total_rows: int
    successful_rows: int = 0
    failed_rows: int = 0
    tasks_created: int = 0
    tasks_updated: int = 0
    dependencies_created: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ImportJobRecord:
    """Audit entry for a single run (one per execute() call)."""
    job_id: str
    project_id: int
    source_type: SourceType
    status: JobStatus
    executed_at: datetime
    summary: ImportSummary
    errors: list[ValidationError] = field(default_factory=list)
    error_report_path: str | None = None
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class UploadedFile:
    """Raw upload handed to the engine: original file name plus bytes."""
    filename: str
    content: bytes

    @classmethod
    def from_path(cls, path: Path) -> UploadedFile:
        return cls(filename=path.name, content=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.content)
