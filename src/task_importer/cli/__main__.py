from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from task_importer.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from task_importer.db.memory_repository import InMemoryRepository
from task_importer.db.pg_repository import PostgresRepository
from task_importer.db.repository import ImportRepository, RepositoryError
from task_importer.errors import ProcessingError, ProjectNotFoundError, ReaderError
from task_importer.logging.init import get_logger, log_summary, set_debug, setup_logging
from task_importer.models.config_models import ImportConfig
from task_importer.models.import_job import JobStatus, UploadedFile
from task_importer.readers import read_rows
from task_importer.services.dependencies import audit_project_cycles
from task_importer.services.orchestrator import ImportEngine
from task_importer.services.summary import render_summary_line

"""CLI entrypoint.

    task-import FILE --project-id N [--dry-run] [--config PATH] [--debug]
                [--inspect-data] [--audit-cycles]

Exit codes:
- 0: SUCCESS or DRY_RUN (audit: no cycles)
- 2: FAILED or PARTIAL (audit: cycles found)
- 1: fatal (config, unreadable file, unknown project, database unavailable)

DISABLE_DB_CONNECT=1 runs against an empty in-memory store holding only the
requested project, which is useful for validating a file without a database.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

# error lines echoed to the console; the full list is in the error report
MAX_PRINTED_ERRORS = 20

INSPECT_SAMPLE_ROWS = 3


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[object]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor.

    Connection settings, highest priority first:
        1. DATABASE_URL / PGDSN (whole DSN), then PGHOST / PGPORT / PGUSER /
           PGPASSWORD / PGDATABASE, typically loaded from .env
        2. the database section of the config file
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    # transaction boundaries are explicit BEGIN/COMMIT statements in PostgresRepository
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="task-import", description="CSV / Excel task importer")
    p.add_argument("file", nargs="?", help="CSV (.csv) or Excel (.xlsx, .xls) file to import")
    p.add_argument("--project-id", type=int, required=True, help="Target project id")
    p.add_argument("--dry-run", action="store_true", help="Validate only, do not write anything")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print parsed columns & first rows then exit")
    p.add_argument("--audit-cycles", action="store_true", help="Report stored tasks on dependency cycles")
    args = p.parse_args(argv)
    if args.file is None and (args.inspect_data or not args.audit_cycles):
        p.error("FILE is required unless --audit-cycles is given")
    return args


def _resolve_config(config_path: Path | None) -> ImportConfig:
    """Explicit --config must exist; a missing default config falls back to defaults."""
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            get_logger().debug(f"config: {DEFAULT_CONFIG_PATH} not found, using defaults")
            return ImportConfig()
        config_path = DEFAULT_CONFIG_PATH
    return load_config(config_path)


def _inspect_data(path: Path, cfg: ImportConfig) -> int:
    print(f"FILE: {path.name}")
    try:
        rows = read_rows(path.read_bytes(), path.name, cfg.max_file_size_bytes)
    except ReaderError as e:
        print(f"  read_error: {e}")
        return EXIT_FATAL
    print(f"  rows={len(rows)}")
    for row in rows[:INSPECT_SAMPLE_ROWS]:
        values = {k: v for k, v in vars(row).items() if v is not None and k != "line_number"}
        print(f"  line {row.line_number}: {values}")
    return EXIT_SUCCESS_ALL


def _audit(repository: ImportRepository, project_id: int) -> int:
    logger = get_logger()
    if not repository.project_exists(project_id):
        logger.error(f"audit: project not found with id: {project_id}")
        return EXIT_FATAL
    involved = audit_project_cycles(repository, project_id)
    log_summary(f"audit project_id={project_id} cycle_tasks={len(involved)}")
    if involved:
        logger.warning(f"tasks on cycles: {sorted(involved)}")
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run(repository: ImportRepository, cfg: ImportConfig, args: argparse.Namespace, mode: str) -> int:
    logger = get_logger()
    if args.audit_cycles:
        return _audit(repository, args.project_id)

    path = Path(args.file)
    logger.info(f"mode={mode} file={path.name} project_id={args.project_id} dry_run={args.dry_run}")
    engine = ImportEngine(repository, cfg, show_progress=True)
    try:
        record = engine.execute(UploadedFile.from_path(path), args.project_id, dry_run=args.dry_run)
    except ProjectNotFoundError as e:
        logger.error(f"project: {e}")
        return EXIT_FATAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    for error in record.errors[:MAX_PRINTED_ERRORS]:
        logger.error(
            f"line={error.line_number} field={error.field} code={error.error_code.value} {error.error_message}"
        )
    if len(record.errors) > MAX_PRINTED_ERRORS:
        logger.error(f"... {len(record.errors) - MAX_PRINTED_ERRORS} more, see {record.error_report_path}")
    elif record.error_report_path:
        logger.info(f"error report: {record.error_report_path}")

    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(record)[len("SUMMARY "):])

    if record.status in (JobStatus.SUCCESS, JobStatus.DRY_RUN):
        return EXIT_SUCCESS_ALL
    return EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.file is not None and not Path(args.file).exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(Path(args.file), cfg)

    # DISABLE_DB_CONNECT=1: in-memory store, no database needed
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        return _run(InMemoryRepository(projects=[args.project_id]), cfg, args, mode="mock")

    try:
        with _db_connection(cfg) as cur:
            return _run(PostgresRepository(cur), cfg, args, mode="live")
    except (psycopg2.Error, RepositoryError) as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
