from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace

from ..models.import_job import ImportJobRecord
from ..models.task import DependencyEdge, TaskRecord
from .repository import ImportRepository, RepositoryError

"""Dict-backed repository.

Used by the test-suite and by the CLI mock mode (DISABLE_DB_CONNECT=1). Writes
are rolled back by restoring a snapshot taken when the transaction or savepoint
was entered.
"""

__all__ = [
    "InMemoryRepository",
]


class InMemoryRepository(ImportRepository):
    def __init__(self, projects: Iterable[int] = ()) -> None:
        self.projects: set[int] = set(projects)
        self.tasks: dict[int, TaskRecord] = {}
        self.dependencies: dict[int, DependencyEdge] = {}
        self.jobs: list[ImportJobRecord] = []
        self._task_ids = itertools.count(1)
        self._edge_ids = itertools.count(1)
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def add_project(self, project_id: int) -> None:
        self.projects.add(project_id)

    # -- lookups ---------------------------------------------------------
    def project_exists(self, project_id: int) -> bool:
        return project_id in self.projects

    def find_tasks_by_project(self, project_id: int) -> list[TaskRecord]:
        return [t for t in self.tasks.values() if t.project_id == project_id]

    def find_task_by_code(self, project_id: int, task_code: str) -> TaskRecord | None:
        for task in self.tasks.values():
            if task.project_id == project_id and task.task_code == task_code:
                return task
        return None

    def find_dependencies_by_project(self, project_id: int) -> list[DependencyEdge]:
        task_ids = {t.id for t in self.find_tasks_by_project(project_id)}
        return [e for e in self.dependencies.values() if e.task_id in task_ids]

    def find_dependency(self, task_id: int, predecessor_task_id: int) -> DependencyEdge | None:
        for edge in self.dependencies.values():
            if edge.task_id == task_id and edge.predecessor_task_id == predecessor_task_id:
                return edge
        return None

    def find_successor_ids(self, task_id: int) -> list[int]:
        return [e.task_id for e in self.dependencies.values() if e.predecessor_task_id == task_id]

    # -- writes ----------------------------------------------------------
    def save_task(self, task: TaskRecord) -> TaskRecord:
        if task.project_id not in self.projects:
            raise RepositoryError(f"Project not found with id: {task.project_id}")
        if task.parent_task_id is not None and task.parent_task_id not in self.tasks:
            raise RepositoryError(f"Parent task not found with id: {task.parent_task_id}")
        if task.id is None:
            if task.task_code is not None and self.find_task_by_code(task.project_id, task.task_code):
                raise RepositoryError(f"Duplicate task code: {task.task_code}")
            task = replace(task, id=next(self._task_ids))
        elif task.id not in self.tasks:
            raise RepositoryError(f"Task not found with id: {task.id}")
        self.tasks[task.id] = task
        return task

    def save_dependency(self, edge: DependencyEdge) -> DependencyEdge:
        for task_id in (edge.task_id, edge.predecessor_task_id):
            if task_id not in self.tasks:
                raise RepositoryError(f"Task not found with id: {task_id}")
        if edge.id is None:
            if self.find_dependency(edge.task_id, edge.predecessor_task_id) is not None:
                raise RepositoryError(
                    f"Dependency already exists: {edge.predecessor_task_id} -> {edge.task_id}"
                )
            edge = replace(edge, id=next(self._edge_ids))
        self.dependencies[edge.id] = edge
        return edge

    def append_import_job(self, record: ImportJobRecord) -> None:
        self.jobs.append(record)

    # -- transactions ----------------------------------------------------
    def _snapshot(self) -> tuple[dict, dict, list]:
        return dict(self.tasks), dict(self.dependencies), list(self.jobs)

    def _restore(self, snapshot: tuple[dict, dict, list]) -> None:
        self.tasks, self.dependencies, self.jobs = snapshot

    def _project_lock(self, project_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(project_id, threading.Lock())

    @contextmanager
    def transaction(self, project_id: int) -> Iterator[None]:
        with self._project_lock(project_id):
            snapshot = self._snapshot()
            try:
                yield
            except BaseException:
                self._restore(snapshot)
                raise

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        snapshot = self._snapshot()
        try:
            yield
        except Exception:
            self._restore(snapshot)
            raise
