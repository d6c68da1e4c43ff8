from __future__ import annotations

from ..models.import_job import ImportJobRecord

"""SUMMARY line rendering for one import run.

Format:
SUMMARY job={job_id} status={status} source={source} rows={total}
success={successful} failed={failed} created={created} updated={updated}
dependencies={dependencies} errors={errors} elapsed_sec={elapsed}
"""

__all__ = [
    "render_summary_line",
    "format_elapsed",
]


def format_elapsed(seconds: float) -> str:
    """Elapsed time without trailing zeros or scientific notation."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}".rstrip("0").rstrip(".")


def render_summary_line(record: ImportJobRecord) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from task_importer.models import ImportSummary, JobStatus, SourceType
        >>> record = ImportJobRecord(
        ...     job_id="abc", project_id=1, source_type=SourceType.CSV,
        ...     status=JobStatus.SUCCESS, executed_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        ...     summary=ImportSummary(total_rows=2, successful_rows=2, tasks_created=2),
        ...     elapsed_seconds=0.5,
        ... )
        >>> render_summary_line(record)  # doctest: +ELLIPSIS
        'SUMMARY job=abc status=SUCCESS source=CSV rows=2 success=2 failed=0 created=2 ...'
    """
    s = record.summary
    return (
        f"SUMMARY job={record.job_id} "
        f"status={record.status.value} "
        f"source={record.source_type.value} "
        f"rows={s.total_rows} "
        f"success={s.successful_rows} "
        f"failed={s.failed_rows} "
        f"created={s.tasks_created} "
        f"updated={s.tasks_updated} "
        f"dependencies={s.dependencies_created} "
        f"errors={len(record.errors)} "
        f"elapsed_sec={format_elapsed(record.elapsed_seconds)}"
    )
