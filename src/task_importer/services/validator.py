from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from ..models.row_data import NormalizedRow
from ..models.task import TaskRecord
from ..models.validation_error import ErrorCode, ValidationError
from .cycle_detector import CycleDetector
from .field_parsers import (
    VALID_DEPENDENCY_TYPES,
    VALID_STATUSES,
    is_boolean_token,
    is_integer_token,
    normalize_dependency_type,
    normalize_status,
    try_parse_date,
)

"""Import validation: field, format, reference and cycle checks.

validate() never stops early: every row gets every check, and all errors are
returned in row order, then check order. Circular dependency errors follow the
per-row errors, in the order the edges are declared in the file.
"""

__all__ = [
    "ImportValidator",
    "MAX_NAME_LENGTH",
    "MAX_TASK_CODE_LENGTH",
    "MAX_ASSIGNEE_LENGTH",
]

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255
MAX_TASK_CODE_LENGTH = 64
MAX_ASSIGNEE_LENGTH = 120

_DATE_FORMAT_HINT = "yyyy-MM-dd, yyyy/MM/dd, MM/dd/yyyy, or dd/MM/yyyy"


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class ImportValidator:
    """Validates parsed rows against the project's existing tasks."""

    def validate(
        self,
        rows: Sequence[NormalizedRow],
        existing_tasks: Iterable[TaskRecord],
        persisted_edges: Iterable[tuple[str, str]] = (),
    ) -> list[ValidationError]:
        """Validate all rows.

        Args:
            rows: Rows in file order
            existing_tasks: Snapshot of the project's stored tasks
            persisted_edges: Stored dependencies as (predecessor_code,
                successor_code) pairs, merged into the cycle check

        Returns:
            List of errors, empty when the file is fully valid
        """
        codes_in_file = {row.task_code for row in rows if row.task_code is not None}
        existing_codes = {task.task_code for task in existing_tasks if task.task_code is not None}
        known_codes = codes_in_file | existing_codes

        errors: list[ValidationError] = []
        for row in rows:
            errors.extend(self.validate_row(row, known_codes))
        errors.extend(self._validate_circular_dependencies(rows, persisted_edges))

        logger.debug("validated rows=%d errors=%d", len(rows), len(errors))
        return errors

    def validate_row(self, row: NormalizedRow, known_codes: set[str]) -> list[ValidationError]:
        errors: list[ValidationError] = []

        def add(field: str, value: str | None, code: ErrorCode, message: str) -> None:
            errors.append(ValidationError(row.line_number, field, value, code, message))

        # 1. name
        if _is_blank(row.name):
            add("name", row.name, ErrorCode.REQUIRED_FIELD, "Task name is required")
        elif len(row.name) > MAX_NAME_LENGTH:
            add("name", row.name, ErrorCode.FIELD_TOO_LONG,
                f"Task name must not exceed {MAX_NAME_LENGTH} characters")

        # 2. dates: presence, then format
        if _is_blank(row.start_date):
            add("start_date", row.start_date, ErrorCode.REQUIRED_FIELD, "Start date is required")
        if _is_blank(row.end_date):
            add("end_date", row.end_date, ErrorCode.REQUIRED_FIELD, "End date is required")
        start = self._check_date("start_date", row.start_date, add)
        end = self._check_date("end_date", row.end_date, add)

        # 3. range
        if start is not None and end is not None and start > end:
            add("start_date", row.start_date, ErrorCode.INVALID_DATE_RANGE,
                "Start date must not be after end date")

        # 4. progress
        if row.progress is not None:
            if not is_integer_token(row.progress):
                add("progress", row.progress, ErrorCode.INVALID_FORMAT, "Progress must be a valid number")
            elif not 0 <= int(row.progress) <= 100:
                add("progress", row.progress, ErrorCode.INVALID_RANGE, "Progress must be between 0 and 100")

        # 5. status
        if row.status is not None and normalize_status(row.status) is None:
            add("status", row.status, ErrorCode.INVALID_VALUE,
                f"Status must be one of: {', '.join(VALID_STATUSES)}")

        # 6. milestone flag
        if row.is_milestone is not None and not is_boolean_token(row.is_milestone):
            add("is_milestone", row.is_milestone, ErrorCode.INVALID_FORMAT,
                "is_milestone must be true/false, 1/0 or yes/no")

        # 7. lengths
        if row.task_code is not None and len(row.task_code) > MAX_TASK_CODE_LENGTH:
            add("task_code", row.task_code, ErrorCode.FIELD_TOO_LONG,
                f"Task code must not exceed {MAX_TASK_CODE_LENGTH} characters")
        if row.assignee is not None and len(row.assignee) > MAX_ASSIGNEE_LENGTH:
            add("assignee", row.assignee, ErrorCode.FIELD_TOO_LONG,
                f"Assignee must not exceed {MAX_ASSIGNEE_LENGTH} characters")

        # 8. parent reference
        if row.parent_task_code is not None:
            if row.parent_task_code == row.task_code:
                add("parent_task_code", row.parent_task_code, ErrorCode.INVALID_VALUE,
                    "Task cannot be its own parent")
            elif row.parent_task_code not in known_codes:
                add("parent_task_code", row.parent_task_code, ErrorCode.REFERENCE_NOT_FOUND,
                    "Parent task code not found in file or database")

        # 9. predecessor references, one error per missing code
        for code in row.predecessor_codes:
            if code not in known_codes:
                add("predecessor_task_codes", code, ErrorCode.REFERENCE_NOT_FOUND,
                    "Predecessor task code not found in file or database")

        # 10. dependency type
        if row.dependency_type is not None and normalize_dependency_type(row.dependency_type) is None:
            add("dependency_type", row.dependency_type, ErrorCode.INVALID_VALUE,
                f"Dependency type must be one of: {', '.join(VALID_DEPENDENCY_TYPES)}")

        return errors

    @staticmethod
    def _check_date(field: str, value: str | None, add) -> date | None:
        if _is_blank(value):
            return None
        parsed = try_parse_date(value)
        if parsed is None:
            add(field, value, ErrorCode.INVALID_FORMAT, f"Date must be in format {_DATE_FORMAT_HINT}")
        return parsed

    def _validate_circular_dependencies(
        self,
        rows: Sequence[NormalizedRow],
        persisted_edges: Iterable[tuple[str, str]],
    ) -> list[ValidationError]:
        declared = [
            (row, code)
            for row in rows
            if row.task_code is not None
            for code in row.predecessor_codes
        ]
        if not declared:
            return []

        # predecessor -> successor
        edges = list(persisted_edges)
        edges.extend((code, row.task_code) for row, code in declared)
        detector = CycleDetector.from_edges(edges)

        errors: list[ValidationError] = []
        for row, code in declared:
            if detector.would_create_cycle(row.task_code, code):
                chain = detector.cycle_chain(row.task_code, code)
                errors.append(
                    ValidationError(
                        row.line_number,
                        "predecessor_task_codes",
                        code,
                        ErrorCode.CIRCULAR_DEPENDENCY,
                        f"Adding dependency from {row.task_code} to {code} would create a circular "
                        f"reference ({' -> '.join(chain)})",
                    )
                )
        return errors
