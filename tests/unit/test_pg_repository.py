from __future__ import annotations

from datetime import UTC, date, datetime
from unittest.mock import MagicMock

import psycopg2
import pytest
from psycopg2.extras import Json

from task_importer.db.pg_repository import TASK_COLUMNS, PostgresRepository
from task_importer.db.repository import RepositoryError
from task_importer.models.import_job import ImportJobRecord, ImportSummary, JobStatus, SourceType
from task_importer.models.task import DependencyEdge, TaskRecord


def _statements(cursor: MagicMock) -> list[str]:
    return [c.args[0] for c in cursor.execute.call_args_list]


@pytest.fixture()
def cursor() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def repo(cursor) -> PostgresRepository:
    return PostgresRepository(cursor)


def test_project_exists(repo, cursor):
    """Project lookup queries the project table."""
    cursor.fetchone.return_value = (1,)
    assert repo.project_exists(7)
    cursor.fetchone.return_value = None
    assert not repo.project_exists(8)
    assert cursor.execute.call_args.args[1] == (8,)


def test_find_task_by_code_maps_columns(repo, cursor):
    """Result columns map onto TaskRecord fields."""
    row = (3, 1, "T-1", "Design", None, date(2026, 1, 5), date(2026, 1, 9), 10, "planned", None, False, None)
    assert len(row) == len(TASK_COLUMNS)
    cursor.fetchone.return_value = row
    task = repo.find_task_by_code(1, "T-1")
    assert task == TaskRecord(
        id=3, project_id=1, task_code="T-1", name="Design", start_date=date(2026, 1, 5), end_date=date(2026, 1, 9), progress=10
    )
    sql, params = cursor.execute.call_args.args
    assert "WHERE project_id = %s AND task_code = %s" in sql
    assert params == (1, "T-1")


def test_save_task_insert_returns_id(repo, cursor):
    """Inserts read the new id from RETURNING."""
    cursor.fetchone.return_value = (11,)
    saved = repo.save_task(TaskRecord(project_id=1, name="n", start_date=date(2026, 1, 5), end_date=date(2026, 1, 5)))
    assert saved.id == 11
    sql = _statements(cursor)[-1]
    assert sql.startswith("INSERT INTO task (") and "RETURNING id" in sql


def test_save_task_update(repo, cursor):
    """Updates fail when no row matched."""
    cursor.rowcount = 1
    task = TaskRecord(id=4, project_id=1, name="n", start_date=date(2026, 1, 5), end_date=date(2026, 1, 5))
    assert repo.save_task(task) == task
    sql, params = cursor.execute.call_args.args
    assert sql.startswith("UPDATE task SET") and sql.endswith("WHERE id = %s")
    assert params[-1] == 4

    cursor.rowcount = 0
    with pytest.raises(RepositoryError):
        repo.save_task(task)


def test_save_dependency(repo, cursor):
    """Edges are inserted with their type."""
    cursor.fetchone.return_value = (5,)
    edge = repo.save_dependency(DependencyEdge(task_id=2, predecessor_task_id=1, type="FF"))
    assert edge.id == 5
    assert cursor.execute.call_args.args[1] == (2, 1, "FF")


def test_find_successor_ids(repo, cursor):
    """Successors are read for one predecessor."""
    cursor.fetchall.return_value = [(2,), (3,)]
    assert repo.find_successor_ids(1) == [2, 3]


def test_append_import_job_serializes_summary(repo, cursor):
    """The summary is stored as JSON."""
    record = ImportJobRecord(
        job_id="abc",
        project_id=1,
        source_type=SourceType.EXCEL,
        status=JobStatus.PARTIAL,
        executed_at=datetime(2026, 1, 1, tzinfo=UTC),
        summary=ImportSummary(total_rows=3, successful_rows=2, failed_rows=1),
        error_report_path="r.csv",
    )
    repo.append_import_job(record)
    params = cursor.execute.call_args.args[1]
    assert params[:4] == ("abc", 1, "Excel", "PARTIAL")
    assert isinstance(params[5], Json)
    assert params[5].adapted["failed_rows"] == 1


def test_transaction_commits_with_advisory_lock(repo, cursor):
    """Transactions take the project advisory lock and commit."""
    with repo.transaction(9):
        cursor.execute("SELECT 1")
    assert _statements(cursor) == ["BEGIN", "SELECT pg_advisory_xact_lock(%s)", "SELECT 1", "COMMIT"]


def test_transaction_rolls_back_on_error(repo, cursor):
    """Errors inside a transaction roll it back."""
    with pytest.raises(ValueError):
        with repo.transaction(9):
            raise ValueError("boom")
    assert _statements(cursor)[-1] == "ROLLBACK"
    assert "COMMIT" not in _statements(cursor)


def test_savepoint_release_and_rollback(repo, cursor):
    """Savepoints are released on success and rolled back on error."""
    with repo.savepoint():
        pass
    with pytest.raises(RuntimeError):
        with repo.savepoint():
            raise RuntimeError("row failed")
    assert _statements(cursor) == [
        "SAVEPOINT import_sp_1",
        "RELEASE SAVEPOINT import_sp_1",
        "SAVEPOINT import_sp_2",
        "ROLLBACK TO SAVEPOINT import_sp_2",
    ]


def test_driver_errors_become_repository_errors(repo, cursor):
    """psycopg2 errors surface as RepositoryError."""
    cursor.execute.side_effect = psycopg2.Error("relation \"task\" does not exist")
    with pytest.raises(RepositoryError):
        repo.find_tasks_by_project(1)
