from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

import psycopg2
from psycopg2.extras import Json

from ..models.import_job import ImportJobRecord
from ..models.task import DependencyEdge, TaskRecord
from .repository import ImportRepository, RepositoryError

"""PostgreSQL repository over a psycopg2 cursor.

Expected tables:
- project (id)
- task (id, project_id, task_code, name, assignee, start_date, end_date,
  progress, status, parent_task_id, is_milestone, notes)
- task_dependency (id, task_id, predecessor_task_id, type)
- import_job (job_id, project_id, source_type, status, executed_at, summary
  jsonb, error_report_path)

Transaction boundaries are explicit BEGIN / COMMIT / ROLLBACK statements on the
cursor, so the connection is expected to run with autocommit enabled. The
commit phase holds pg_advisory_xact_lock(project_id), which serializes imports
into the same project and is released with the transaction.
"""

__all__ = [
    "PostgresRepository",
]

logger = logging.getLogger(__name__)

TASK_COLUMNS = (
    "id",
    "project_id",
    "task_code",
    "name",
    "assignee",
    "start_date",
    "end_date",
    "progress",
    "status",
    "parent_task_id",
    "is_milestone",
    "notes",
)
_TASK_SELECT = f"SELECT {', '.join(TASK_COLUMNS)} FROM task"
_DEPENDENCY_SELECT = "SELECT d.id, d.task_id, d.predecessor_task_id, d.type FROM task_dependency d"


def _row_to_task(row: Sequence[Any]) -> TaskRecord:
    return TaskRecord(**dict(zip(TASK_COLUMNS, row)))


def _row_to_edge(row: Sequence[Any]) -> DependencyEdge:
    edge_id, task_id, predecessor_task_id, dep_type = row
    return DependencyEdge(task_id=task_id, predecessor_task_id=predecessor_task_id, type=dep_type, id=edge_id)


class PostgresRepository(ImportRepository):
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor
        self._savepoint_seq = 0

    def _execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise RepositoryError(str(e).strip()) from e

    # -- lookups ---------------------------------------------------------
    def project_exists(self, project_id: int) -> bool:
        self._execute("SELECT 1 FROM project WHERE id = %s", (project_id,))
        return self.cursor.fetchone() is not None

    def find_tasks_by_project(self, project_id: int) -> list[TaskRecord]:
        self._execute(f"{_TASK_SELECT} WHERE project_id = %s ORDER BY id", (project_id,))
        return [_row_to_task(r) for r in self.cursor.fetchall()]

    def find_task_by_code(self, project_id: int, task_code: str) -> TaskRecord | None:
        self._execute(f"{_TASK_SELECT} WHERE project_id = %s AND task_code = %s", (project_id, task_code))
        row = self.cursor.fetchone()
        return _row_to_task(row) if row is not None else None

    def find_dependencies_by_project(self, project_id: int) -> list[DependencyEdge]:
        self._execute(
            f"{_DEPENDENCY_SELECT} JOIN task t ON t.id = d.task_id WHERE t.project_id = %s ORDER BY d.id",
            (project_id,),
        )
        return [_row_to_edge(r) for r in self.cursor.fetchall()]

    def find_dependency(self, task_id: int, predecessor_task_id: int) -> DependencyEdge | None:
        self._execute(
            f"{_DEPENDENCY_SELECT} WHERE d.task_id = %s AND d.predecessor_task_id = %s",
            (task_id, predecessor_task_id),
        )
        row = self.cursor.fetchone()
        return _row_to_edge(row) if row is not None else None

    def find_successor_ids(self, task_id: int) -> list[int]:
        self._execute("SELECT task_id FROM task_dependency WHERE predecessor_task_id = %s", (task_id,))
        return [r[0] for r in self.cursor.fetchall()]

    # -- writes ----------------------------------------------------------
    def save_task(self, task: TaskRecord) -> TaskRecord:
        values = [getattr(task, c) for c in TASK_COLUMNS[1:]]
        if task.id is None:
            cols = ", ".join(TASK_COLUMNS[1:])
            placeholders = ", ".join(["%s"] * len(values))
            self._execute(f"INSERT INTO task ({cols}) VALUES ({placeholders}) RETURNING id", values)
            (new_id,) = self.cursor.fetchone()
            return replace(task, id=new_id)

        assignments = ", ".join(f"{c} = %s" for c in TASK_COLUMNS[1:])
        self._execute(f"UPDATE task SET {assignments} WHERE id = %s", [*values, task.id])
        if self.cursor.rowcount == 0:
            raise RepositoryError(f"Task not found with id: {task.id}")
        return task

    def save_dependency(self, edge: DependencyEdge) -> DependencyEdge:
        self._execute(
            "INSERT INTO task_dependency (task_id, predecessor_task_id, type) VALUES (%s, %s, %s) RETURNING id",
            (edge.task_id, edge.predecessor_task_id, edge.type),
        )
        (new_id,) = self.cursor.fetchone()
        return replace(edge, id=new_id)

    def append_import_job(self, record: ImportJobRecord) -> None:
        self._execute(
            "INSERT INTO import_job (job_id, project_id, source_type, status, executed_at, summary, error_report_path)"
            " VALUES (%s, %s, %s, %s, %s, %s, %s)",
            (
                record.job_id,
                record.project_id,
                record.source_type.value,
                record.status.value,
                record.executed_at,
                Json(record.summary.to_dict()),
                record.error_report_path,
            ),
        )

    # -- transactions ----------------------------------------------------
    @contextmanager
    def transaction(self, project_id: int) -> Iterator[None]:
        self._execute("BEGIN")
        try:
            self._execute("SELECT pg_advisory_xact_lock(%s)", (project_id,))
            yield
        except BaseException:
            try:
                self.cursor.execute("ROLLBACK")
            except psycopg2.Error:
                logger.warning("rollback failed for project_id=%s", project_id, exc_info=True)
            raise
        self._execute("COMMIT")

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        self._savepoint_seq += 1
        name = f"import_sp_{self._savepoint_seq}"
        self._execute(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            self._execute(f"ROLLBACK TO SAVEPOINT {name}")
            raise
        self._execute(f"RELEASE SAVEPOINT {name}")
