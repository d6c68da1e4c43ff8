"""Domain models for the task import pipeline.

This package contains the domain model classes used throughout the application:
parsed rows, persisted tasks and dependency edges, validation errors, import job
records and configuration.
"""

from .config_models import DatabaseConfig, ImportConfig, WorkingDayConfig
from .import_job import ImportJobRecord, ImportSummary, JobStatus, SourceType, UploadedFile
from .row_data import NormalizedRow, split_codes
from .task import DependencyEdge, DependencyType, TaskRecord, TaskStatus
from .validation_error import REPORT_COLUMNS, ErrorCode, ValidationError

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "WorkingDayConfig",
    # Pipeline models
    "NormalizedRow",
    "split_codes",
    "ValidationError",
    "ErrorCode",
    "REPORT_COLUMNS",
    # Persisted models
    "TaskRecord",
    "TaskStatus",
    "DependencyEdge",
    "DependencyType",
    "ImportJobRecord",
    "ImportSummary",
    "JobStatus",
    "SourceType",
    "UploadedFile",
]
