from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

"""Config dataclasses for the task import tool.

These are the typed forms of config/import.yml produced by
task_importer.config.loader. Every field has a default so the engine can be
used without a config file (tests, library use).
"""

DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_WORKING_DAYS = frozenset({"MON", "TUE", "WED", "THU", "FRI"})


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class WorkingDayConfig:
    """Calendar used by the working-day calculator.

    working_days holds weekday labels (MON..SUN); holidays are calendar dates
    that never count as working days.
    """
    working_days: frozenset[str] = DEFAULT_WORKING_DAYS
    holidays: frozenset[date] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    error_report_dir: str = "error-reports"
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    # merge already persisted edges into the validation cycle check
    include_persisted_dependencies: bool = True
    adjust_to_working_days: bool = False
    calendar: WorkingDayConfig = field(default_factory=WorkingDayConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
