from __future__ import annotations

from dataclasses import dataclass

"""NormalizedRow model for the task import pipeline.

A NormalizedRow is one parsed input record as produced by either tabular reader
(CSV or spreadsheet). Every value is kept as the raw string taken from the file;
parsing into dates, integers and booleans happens in the validator and the
import engine.
"""

__all__ = [
    "NormalizedRow",
    "split_codes",
]


def split_codes(raw: str | None) -> tuple[str, ...]:
    """Split a comma separated code list, trimming entries and dropping blanks."""
    if raw is None:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class NormalizedRow:
    """Logical representation of one task row after header mapping.

    line_number matches the physical row of the source, header included
    (header = line 1, first data row = line 2).
    """
    line_number: int
    task_code: str | None = None
    name: str | None = None
    assignee: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    progress: str | None = None
    status: str | None = None
    parent_task_code: str | None = None
    is_milestone: str | None = None
    predecessor_task_codes: str | None = None  # comma separated
    dependency_type: str | None = None
    notes: str | None = None

    @property
    def predecessor_codes(self) -> tuple[str, ...]:
        return split_codes(self.predecessor_task_codes)
