from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from ..db.repository import ImportRepository, RepositoryError
from ..errors import ProjectNotFoundError
from ..logging.error_report import ErrorReportWriter
from ..models.config_models import ImportConfig
from ..models.import_job import ImportJobRecord, ImportSummary, JobStatus, SourceType, UploadedFile
from ..models.row_data import NormalizedRow
from ..models.task import TaskRecord, TaskStatus
from ..models.validation_error import ErrorCode, ValidationError
from ..readers import detect_source_type, read_rows
from .dependencies import DependencyError, ensure_dependency
from .field_parsers import normalize_dependency_type, normalize_status, parse_boolean, parse_date
from .progress import ProgressTracker
from .validator import ImportValidator
from .working_days import WorkingDayCalculator

"""Import engine: reader -> validator -> two-phase commit.

Run states:
    parsing -> validating -> DRY_RUN | FAILED | committing -> SUCCESS | PARTIAL

Input errors (ProjectNotFoundError, ReaderError subclasses) are raised before
any job record exists. Everything after parsing ends in exactly one appended
ImportJobRecord.

Commit (inside repository.transaction(project_id)):
- phase 1: upsert each row's task, keyed by (project_id, task_code); a failing
  row is recorded as IMPORT_ERROR and excluded from phase 2
- parent links that point forward in the file are resolved once all tasks of
  phase 1 exist
- phase 2: create each declared predecessor edge unless it already exists;
  failures are recorded as DEPENDENCY_ERROR and do not stop the row
Every row and edge write runs in its own savepoint so one failure never undoes
another row's write.
"""

__all__ = [
    "CommitResult",
    "ImportEngine",
]

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """Accumulator threaded through both commit phases."""

    errors: list[ValidationError] = field(default_factory=list)
    failed_lines: set[int] = field(default_factory=set)
    tasks_created: int = 0
    tasks_updated: int = 0
    dependencies_created: int = 0

    def add_error(self, line_number: int, field_name: str, value: str | None, code: ErrorCode, message: str) -> None:
        self.errors.append(ValidationError(line_number, field_name, value, code, message))

    def fail_row(self, row: NormalizedRow, exc: Exception) -> None:
        self.failed_lines.add(row.line_number)
        self.add_error(row.line_number, "task", row.task_code, ErrorCode.IMPORT_ERROR, f"Failed to import task: {exc}")

    def summary(self, total_rows: int) -> ImportSummary:
        failed = len(self.failed_lines)
        return ImportSummary(
            total_rows=total_rows,
            successful_rows=total_rows - failed,
            failed_rows=failed,
            tasks_created=self.tasks_created,
            tasks_updated=self.tasks_updated,
            dependencies_created=self.dependencies_created,
        )


class ImportEngine:
    def __init__(
        self,
        repository: ImportRepository,
        config: ImportConfig | None = None,
        validator: ImportValidator | None = None,
        report_writer: ErrorReportWriter | None = None,
        calendar: WorkingDayCalculator | None = None,
        show_progress: bool = False,
    ) -> None:
        self.repository = repository
        self.config = config or ImportConfig()
        self.validator = validator or ImportValidator()
        self.report_writer = report_writer or ErrorReportWriter(self.config.error_report_dir)
        self.calendar = calendar or WorkingDayCalculator.from_config(self.config.calendar)
        self.show_progress = show_progress

    def execute(self, upload: UploadedFile, project_id: int, dry_run: bool = False) -> ImportJobRecord:
        """Run one import.

        Args:
            upload: File name (selects the reader) and raw bytes
            project_id: Target project
            dry_run: Validate only, never write tasks or dependencies

        Returns:
            The appended job record, including the ordered error list

        Raises:
            ProjectNotFoundError: project does not exist
            ReaderError: file rejected before any row was read
        """
        started = time.perf_counter()
        if not self.repository.project_exists(project_id):
            raise ProjectNotFoundError(project_id)

        # parsing
        source_type = detect_source_type(upload.filename)
        rows = read_rows(upload.content, upload.filename, self.config.max_file_size_bytes)
        logger.info(
            "parsed file=%s bytes=%d source=%s rows=%d",
            upload.filename,
            upload.size,
            source_type.value,
            len(rows),
        )

        # validating
        existing_tasks = self.repository.find_tasks_by_project(project_id)
        persisted_edges = (
            list(self.repository.iter_persisted_edge_codes(project_id))
            if self.config.include_persisted_dependencies
            else []
        )
        errors = self.validator.validate(rows, existing_tasks, persisted_edges)

        job_id = uuid4().hex
        if dry_run or errors:
            status = JobStatus.DRY_RUN if dry_run else JobStatus.FAILED
            summary = ImportSummary(total_rows=len(rows), failed_rows=len(errors))
            report_path = self._write_report(errors, job_id)
            record = self._record(job_id, project_id, source_type, status, summary, errors, report_path, started)
            with self.repository.transaction(project_id):
                self.repository.append_import_job(record)
            self._log_outcome(record)
            return record

        # committing
        with self.repository.transaction(project_id):
            result = self._commit(rows, project_id)
            status = JobStatus.PARTIAL if result.errors else JobStatus.SUCCESS
            report_path = self._write_report(result.errors, job_id)
            record = self._record(
                job_id,
                project_id,
                source_type,
                status,
                result.summary(len(rows)),
                result.errors,
                report_path,
                started,
            )
            self.repository.append_import_job(record)
        self._log_outcome(record)
        return record

    # -- commit ----------------------------------------------------------
    def _commit(self, rows: Sequence[NormalizedRow], project_id: int) -> CommitResult:
        result = CommitResult()
        # run-scoped: task code -> task stored in this run
        task_map: dict[str, TaskRecord] = {}
        deferred_parents: list[tuple[NormalizedRow, TaskRecord]] = []

        with ProgressTracker(len(rows), description="Tasks", enabled=self._progress_enabled()) as progress:
            for row in rows:
                try:
                    with self.repository.savepoint():
                        task, created, parent_pending = self._upsert_task(row, project_id, task_map)
                except Exception as e:
                    logger.warning("line=%d task import failed: %s", row.line_number, e)
                    result.fail_row(row, e)
                    progress.set_postfix(failed=len(result.failed_lines))
                    progress.advance()
                    continue
                if created:
                    result.tasks_created += 1
                else:
                    result.tasks_updated += 1
                if row.task_code is not None:
                    task_map[row.task_code] = task
                if parent_pending:
                    deferred_parents.append((row, task))
                progress.advance()

        for row, task in deferred_parents:
            self._link_parent(row, task, project_id, task_map, result)

        with ProgressTracker(len(rows), description="Dependencies", enabled=self._progress_enabled()) as progress:
            for row in rows:
                seen = len(result.errors)
                self._create_row_dependencies(row, project_id, task_map, result)
                if len(result.errors) > seen:
                    progress.set_postfix(errors=len(result.errors))
                progress.advance()

        return result

    def _resolve_task(self, code: str, project_id: int, task_map: dict[str, TaskRecord]) -> TaskRecord | None:
        """Tasks stored in this run first, then the persisted store."""
        task = task_map.get(code)
        if task is None:
            task = self.repository.find_task_by_code(project_id, code)
        return task

    def _upsert_task(
        self,
        row: NormalizedRow,
        project_id: int,
        task_map: dict[str, TaskRecord],
    ) -> tuple[TaskRecord, bool, bool]:
        """Returns (stored task, created?, parent link deferred?)."""
        existing = None
        if row.task_code is not None:
            existing = self.repository.find_task_by_code(project_id, row.task_code)

        start = parse_date(row.start_date)
        end = parse_date(row.end_date)
        if self.config.adjust_to_working_days:
            start = self.calendar.adjust_to_working_day(start)
            end = self.calendar.adjust_to_working_day(end)

        # absent fields keep the stored value on update, defaults only on create
        if row.progress is not None:
            progress = int(row.progress)
        else:
            progress = existing.progress if existing else 0
        if row.status is not None:
            status = normalize_status(row.status)
        else:
            status = existing.status if existing else TaskStatus.PLANNED.value
        if row.is_milestone is not None:
            is_milestone = parse_boolean(row.is_milestone)
        else:
            is_milestone = existing.is_milestone if existing else False

        parent_task_id = existing.parent_task_id if existing else None
        parent_pending = False
        if row.parent_task_code is not None:
            parent = self._resolve_task(row.parent_task_code, project_id, task_map)
            if parent is None:
                parent_pending = True
            else:
                parent_task_id = parent.id

        task = TaskRecord(
            id=existing.id if existing else None,
            project_id=project_id,
            task_code=row.task_code,
            name=row.name,
            assignee=row.assignee if row.assignee is not None else (existing.assignee if existing else None),
            start_date=start,
            end_date=end,
            progress=progress,
            status=status,
            parent_task_id=parent_task_id,
            is_milestone=is_milestone,
            notes=row.notes if row.notes is not None else (existing.notes if existing else None),
        )
        return self.repository.save_task(task), existing is None, parent_pending

    def _link_parent(
        self,
        row: NormalizedRow,
        task: TaskRecord,
        project_id: int,
        task_map: dict[str, TaskRecord],
        result: CommitResult,
    ) -> None:
        current = task_map.get(row.task_code, task) if row.task_code is not None else task
        try:
            with self.repository.savepoint():
                parent = self._resolve_task(row.parent_task_code, project_id, task_map)
                if parent is None:
                    raise RepositoryError(f"Parent task not found with code: {row.parent_task_code}")
                linked = self.repository.save_task(replace(current, parent_task_id=parent.id))
        except Exception as e:
            logger.warning("line=%d parent link failed: %s", row.line_number, e)
            result.add_error(
                row.line_number,
                "parent_task_code",
                row.parent_task_code,
                ErrorCode.IMPORT_ERROR,
                f"Failed to link parent task: {e}",
            )
            return
        if row.task_code is not None:
            task_map[row.task_code] = linked

    def _create_row_dependencies(
        self,
        row: NormalizedRow,
        project_id: int,
        task_map: dict[str, TaskRecord],
        result: CommitResult,
    ) -> None:
        if row.task_code is None or not row.predecessor_codes:
            return
        # rows that failed phase 1 never get their dependencies
        if row.line_number in result.failed_lines:
            return
        task = task_map.get(row.task_code)
        if task is None:
            return

        dep_type = normalize_dependency_type(row.dependency_type)
        for code in row.predecessor_codes:
            try:
                with self.repository.savepoint():
                    predecessor = self._resolve_task(code, project_id, task_map)
                    if predecessor is None:
                        raise DependencyError(f"Predecessor task not found with code: {code}")
                    created = ensure_dependency(self.repository, task.id, predecessor.id, dep_type)
            except Exception as e:
                logger.warning("line=%d dependency %s -> %s failed: %s", row.line_number, code, row.task_code, e)
                result.add_error(
                    row.line_number,
                    "predecessor_task_codes",
                    code,
                    ErrorCode.DEPENDENCY_ERROR,
                    f"Failed to create dependency: {e}",
                )
                continue
            if created:
                result.dependencies_created += 1

    # -- helpers ---------------------------------------------------------
    def _progress_enabled(self) -> bool | None:
        # None lets the tracker decide from the TTY
        return None if self.show_progress else False

    def _write_report(self, errors: Sequence[ValidationError], job_id: str) -> str | None:
        """Report path, or None when there is nothing to report or the write failed."""
        if not errors:
            return None
        try:
            return self.report_writer.write(errors, job_id)
        except Exception as e:
            logger.error("failed to write error report job=%s: %s", job_id, e)
            return None

    @staticmethod
    def _record(
        job_id: str,
        project_id: int,
        source_type: SourceType,
        status: JobStatus,
        summary: ImportSummary,
        errors: list[ValidationError],
        report_path: str | None,
        started: float,
    ) -> ImportJobRecord:
        return ImportJobRecord(
            job_id=job_id,
            project_id=project_id,
            source_type=source_type,
            status=status,
            executed_at=datetime.now(UTC),
            summary=summary,
            errors=list(errors),
            error_report_path=report_path,
            elapsed_seconds=time.perf_counter() - started,
        )

    @staticmethod
    def _log_outcome(record: ImportJobRecord) -> None:
        s = record.summary
        if record.status in (JobStatus.FAILED, JobStatus.PARTIAL):
            logger.warning(
                "job=%s status=%s errors=%d report=%s",
                record.job_id,
                record.status.value,
                len(record.errors),
                record.error_report_path,
            )
        logger.info(
            "job=%s status=%s created=%d updated=%d dependencies=%d",
            record.job_id,
            record.status.value,
            s.tasks_created,
            s.tasks_updated,
            s.dependencies_created,
        )
