from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager

from ..models.import_job import ImportJobRecord
from ..models.task import DependencyEdge, TaskRecord

"""Storage collaborator interface used by the import engine.

The engine only ever talks to an ImportRepository. Two implementations exist:
- InMemoryRepository: tests and DISABLE_DB_CONNECT=1 mock mode
- PostgresRepository: psycopg2 cursor against the project/task schema

Transaction contract:
- transaction(project_id) wraps the whole commit phase; it serializes runs on
  the same project and undoes every write if the block raises
- savepoint() wraps a single row or edge write; an exception inside it undoes
  only that write and is re-raised to the caller
"""

__all__ = [
    "ImportRepository",
    "RepositoryError",
]


class RepositoryError(Exception):
    """Raised for storage failures the engine reports per row."""


class ImportRepository(ABC):
    """Lookup, save and audit-log operations needed by one import run."""

    @abstractmethod
    def project_exists(self, project_id: int) -> bool: ...

    @abstractmethod
    def find_tasks_by_project(self, project_id: int) -> list[TaskRecord]: ...

    @abstractmethod
    def find_task_by_code(self, project_id: int, task_code: str) -> TaskRecord | None: ...

    @abstractmethod
    def save_task(self, task: TaskRecord) -> TaskRecord:
        """Insert (id is None) or update a task; returns the stored form with id set."""

    @abstractmethod
    def find_dependencies_by_project(self, project_id: int) -> list[DependencyEdge]: ...

    @abstractmethod
    def find_dependency(self, task_id: int, predecessor_task_id: int) -> DependencyEdge | None: ...

    @abstractmethod
    def find_successor_ids(self, task_id: int) -> Iterable[int]:
        """Ids of tasks that list task_id as their predecessor."""

    @abstractmethod
    def save_dependency(self, edge: DependencyEdge) -> DependencyEdge: ...

    @abstractmethod
    def append_import_job(self, record: ImportJobRecord) -> None:
        """Append one audit entry; prior entries are never read back or changed."""

    @abstractmethod
    def transaction(self, project_id: int) -> AbstractContextManager[None]: ...

    @abstractmethod
    def savepoint(self) -> AbstractContextManager[None]: ...

    def iter_persisted_edge_codes(self, project_id: int) -> Iterator[tuple[str, str]]:
        """Stored edges as (predecessor_code, successor_code) for tasks that have a code."""
        codes = {t.id: t.task_code for t in self.find_tasks_by_project(project_id)}
        for edge in self.find_dependencies_by_project(project_id):
            predecessor = codes.get(edge.predecessor_task_id)
            successor = codes.get(edge.task_id)
            if predecessor is not None and successor is not None:
                yield predecessor, successor
