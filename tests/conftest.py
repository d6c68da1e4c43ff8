# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from task_importer.db.memory_repository import InMemoryRepository
from task_importer.logging.init import reset_logging
from task_importer.models.config_models import ImportConfig
from task_importer.models.import_job import UploadedFile

PROJECT_ID = 1


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """error_report_dir: reports
max_file_size_mb: 1
include_persisted_dependencies: true
adjust_to_working_days: false
calendar:
  working_days: [MON, TUE, WED, THU, FRI]
  holidays: ["2026-01-01"]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def repository() -> InMemoryRepository:
    return InMemoryRepository(projects=[PROJECT_ID])


@pytest.fixture()
def import_config(tmp_path: Path) -> ImportConfig:
    return ImportConfig(error_report_dir=str(tmp_path / "reports"))


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def csv_upload():
    """Build an UploadedFile from CSV text."""
    def _make(text: str, filename: str = "tasks.csv") -> UploadedFile:
        return UploadedFile(filename=filename, content=text.encode("utf-8"))
    return _make


@pytest.fixture()
def excel_bytes():
    """Build an .xlsx workbook (single sheet) from a header and rows."""
    def _make(header: list[str], rows: list[list[object]]) -> bytes:
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            pd.DataFrame(rows, columns=header).to_excel(writer, index=False, sheet_name="Tasks")
        return buf.getvalue()
    return _make
