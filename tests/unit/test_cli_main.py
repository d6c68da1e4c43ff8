from __future__ import annotations

from pathlib import Path

import pytest

from task_importer.cli import main as cli_main

CSV_OK = "task_code,name,start_date,end_date\nT-1,Design,2026-01-05,2026-01-09\nT-2,Build,2026-01-12,2026-01-16\n"


@pytest.fixture(autouse=True)
def _mock_mode(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def _write(workdir: Path, name: str, text: str) -> Path:
    path = workdir / "data" / name
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_success_prints_summary(write_config, temp_workdir: Path, capsys):
    """A valid file in mock mode exits 0 and prints the SUMMARY line."""
    path = _write(temp_workdir, "tasks.csv", CSV_OK)
    code = cli_main([str(path), "--project-id", "1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO mode=mock file=tasks.csv project_id=1 dry_run=False" in out
    assert "status=SUCCESS source=CSV rows=2 success=2 failed=0 created=2" in out
    assert "SUMMARY job=" in out


def test_cli_dry_run(write_config, temp_workdir: Path, capsys):
    """--dry-run reports DRY_RUN and creates nothing."""
    path = _write(temp_workdir, "tasks.csv", CSV_OK)
    code = cli_main([str(path), "--project-id", "1", "--dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert "status=DRY_RUN" in out
    assert "created=0" in out


def test_cli_validation_errors_exit_2(write_config, temp_workdir: Path, capsys):
    """Validation errors are echoed, a report is written and the exit code is 2."""
    path = _write(temp_workdir, "bad.csv", "task_code,name,start_date,end_date\nT-1,,2026-01-05,2026-01-09\n")
    code = cli_main([str(path), "--project-id", "1"])
    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR line=2 field=name code=REQUIRED_FIELD" in out
    assert "status=FAILED" in out
    assert "error report: reports" in out
    assert any((temp_workdir / "reports").glob("import-errors-*.csv"))


def test_cli_error_lines_are_capped(write_config, temp_workdir: Path, capsys):
    """Only the first 20 errors are echoed; the rest point at the report."""
    rows = "".join(f"T-{i},,2026-01-05,2026-01-09\n" for i in range(25))
    path = _write(temp_workdir, "many.csv", "task_code,name,start_date,end_date\n" + rows)
    code = cli_main([str(path), "--project-id", "1"])
    out = capsys.readouterr().out
    assert code == 2
    assert out.count("code=REQUIRED_FIELD") == 20
    assert "ERROR ... 5 more, see " in out


def test_cli_file_not_found(write_config, temp_workdir: Path, capsys):
    """A missing input file is fatal."""
    code = cli_main(["missing.csv", "--project-id", "1"])
    assert code == 1
    assert "ERROR file not found: missing.csv" in capsys.readouterr().out


def test_cli_unsupported_extension_is_fatal(write_config, temp_workdir: Path, capsys):
    """An unknown extension is rejected before parsing."""
    path = _write(temp_workdir, "tasks.txt", CSV_OK)
    code = cli_main([str(path), "--project-id", "1"])
    assert code == 1
    assert "ERROR processing:" in capsys.readouterr().out


def test_cli_empty_file_is_fatal(write_config, temp_workdir: Path, capsys):
    """A zero-byte file is fatal."""
    path = _write(temp_workdir, "empty.csv", "")
    code = cli_main([str(path), "--project-id", "1"])
    assert code == 1
    assert "ERROR processing:" in capsys.readouterr().out


def test_cli_without_default_config_uses_defaults(temp_workdir: Path, capsys):
    """No config/import.yml falls back to built-in defaults."""
    path = _write(temp_workdir, "tasks.csv", CSV_OK)
    code = cli_main([str(path), "--project-id", "1"])
    assert code == 0
    assert "status=SUCCESS" in capsys.readouterr().out


def test_cli_explicit_missing_config_is_fatal(temp_workdir: Path, capsys):
    """An explicit --config that does not exist is fatal."""
    path = _write(temp_workdir, "tasks.csv", CSV_OK)
    code = cli_main([str(path), "--project-id", "1", "--config", "nope.yml"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_cli_invalid_config_is_fatal(write_config: Path, temp_workdir: Path, capsys):
    """Schema violations in the config are fatal."""
    write_config.write_text("max_file_size_mb: -1\n", encoding="utf-8")
    path = _write(temp_workdir, "tasks.csv", CSV_OK)
    code = cli_main([str(path), "--project-id", "1"])
    assert code == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_cli_requires_project_id(temp_workdir: Path):
    """--project-id is mandatory."""
    with pytest.raises(SystemExit) as exc:
        cli_main(["tasks.csv"])
    assert exc.value.code == 2


def test_cli_requires_file_without_audit(temp_workdir: Path):
    """FILE may only be omitted with --audit-cycles."""
    with pytest.raises(SystemExit) as exc:
        cli_main(["--project-id", "1"])
    assert exc.value.code == 2


def test_cli_audit_cycles_empty_project(temp_workdir: Path, capsys):
    """Auditing a project without dependencies finds no cycles."""
    code = cli_main(["--project-id", "1", "--audit-cycles"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY audit project_id=1 cycle_tasks=0" in out
