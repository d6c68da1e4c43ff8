from __future__ import annotations

import logging

from ..db.repository import ImportRepository
from ..models.task import DependencyEdge, DependencyType
from .cycle_detector import CycleDetector

"""Single dependency creation against the store.

Used by phase 2 of the import and by the CLI cycle audit. The cycle check walks
the stored graph through repository.find_successor_ids, so it sees every edge
written earlier in the same transaction.
"""

__all__ = [
    "DependencyError",
    "CircularDependencyError",
    "DuplicateDependencyError",
    "create_dependency",
    "ensure_dependency",
    "audit_project_cycles",
]

logger = logging.getLogger(__name__)


class DependencyError(Exception):
    """Base exception for rejected dependency edges."""


class CircularDependencyError(DependencyError):
    def __init__(self, task_id: int, predecessor_id: int, chain: list[int]) -> None:
        path = " -> ".join(str(n) for n in chain)
        super().__init__(
            f"Adding dependency from task {task_id} to {predecessor_id} would create a circular reference ({path})"
        )
        self.task_id = task_id
        self.predecessor_id = predecessor_id
        self.chain = chain


class DuplicateDependencyError(DependencyError):
    def __init__(self, task_id: int, predecessor_id: int) -> None:
        super().__init__(f"Dependency already exists: task {task_id} already depends on {predecessor_id}")
        self.task_id = task_id
        self.predecessor_id = predecessor_id


def create_dependency(
    repository: ImportRepository,
    task_id: int,
    predecessor_id: int,
    dep_type: str = DependencyType.FS.value,
) -> DependencyEdge:
    """Create edge predecessor_id -> task_id.

    Raises:
        DependencyError: self edge
        DuplicateDependencyError: edge already stored
        CircularDependencyError: edge would close a loop in the stored graph
    """
    if task_id == predecessor_id:
        raise DependencyError("Task cannot depend on itself")
    if repository.find_dependency(task_id, predecessor_id) is not None:
        raise DuplicateDependencyError(task_id, predecessor_id)

    detector = CycleDetector(repository.find_successor_ids)
    if detector.would_create_cycle(task_id, predecessor_id):
        raise CircularDependencyError(task_id, predecessor_id, detector.cycle_chain(task_id, predecessor_id))

    edge = repository.save_dependency(
        DependencyEdge(task_id=task_id, predecessor_task_id=predecessor_id, type=dep_type)
    )
    logger.debug("dependency created %s -> %s type=%s", predecessor_id, task_id, dep_type)
    return edge


def ensure_dependency(
    repository: ImportRepository,
    task_id: int,
    predecessor_id: int,
    dep_type: str = DependencyType.FS.value,
) -> bool:
    """Idempotent create: True when a new edge was written, False when it already existed."""
    try:
        create_dependency(repository, task_id, predecessor_id, dep_type)
    except DuplicateDependencyError:
        return False
    return True


def audit_project_cycles(repository: ImportRepository, project_id: int) -> set[int]:
    """Ids of every stored task in the project that lies on a dependency cycle."""
    task_ids = [t.id for t in repository.find_tasks_by_project(project_id)]
    edges = [(e.predecessor_task_id, e.task_id) for e in repository.find_dependencies_by_project(project_id)]
    involved = CycleDetector.from_edges(edges).detect_all_cycles(task_ids)
    if involved:
        logger.warning("project_id=%s has %d task(s) on dependency cycles", project_id, len(involved))
    return involved
