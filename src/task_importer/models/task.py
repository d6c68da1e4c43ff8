from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

"""Task and dependency domain models.

These are the persisted forms exchanged with the storage collaborator. The
invariants are enforced on construction so that a bad upsert fails before it
reaches the store.
"""

__all__ = [
    "TaskStatus",
    "DependencyType",
    "TaskRecord",
    "DependencyEdge",
]


class TaskStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"
    ON_HOLD = "on_hold"


class DependencyType(str, Enum):
    """Finish-to-Start / Start-to-Start / Finish-to-Finish / Start-to-Finish."""
    FS = "FS"
    SS = "SS"
    FF = "FF"
    SF = "SF"


@dataclass(frozen=True)
class TaskRecord:
    """A task belonging to a project.

    Key is (project_id, task_code) when task_code is set; id is assigned by
    the store on first save and is None before that.
    """
    project_id: int
    name: str
    start_date: date
    end_date: date
    id: int | None = None
    task_code: str | None = None
    assignee: str | None = None
    progress: int = 0
    status: str = TaskStatus.PLANNED.value
    parent_task_id: int | None = None
    is_milestone: bool = False
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError("Start date must not be after end date")
        if not 0 <= self.progress <= 100:
            raise ValueError("Progress must be between 0 and 100")
        if self.status not in {s.value for s in TaskStatus}:
            raise ValueError(f"Unknown task status: {self.status}")
        if self.id is not None and self.parent_task_id == self.id:
            raise ValueError("Task cannot be its own parent")


@dataclass(frozen=True)
class DependencyEdge:
    """Edge between a successor task (task_id) and its predecessor."""
    task_id: int
    predecessor_task_id: int
    type: str = DependencyType.FS.value
    id: int | None = None

    def __post_init__(self) -> None:
        if self.task_id == self.predecessor_task_id:
            raise ValueError("Task cannot depend on itself")
        if self.type not in {t.value for t in DependencyType}:
            raise ValueError(f"Unknown dependency type: {self.type}")
