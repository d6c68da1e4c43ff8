from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_WORKING_DAYS,
    DatabaseConfig,
    ImportConfig,
    WorkingDayConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against the packaged config_schema.json
- Apply defaults for every missing key

Holidays may be written as quoted strings or bare YAML dates; both are accepted.
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Raises ConfigError when the schema file is missing/broken or data violates it."""
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path)
        prefix = f"{location}: " if location else ""
        raise ConfigError(f"config validation failed: {prefix}{e.message}") from e


def _normalize_calendar(data: dict[str, Any]) -> None:
    calendar = data.get("calendar")
    if not isinstance(calendar, dict):
        return
    days = calendar.get("working_days")
    if isinstance(days, list):
        calendar["working_days"] = [d.strip().upper()[:3] if isinstance(d, str) else d for d in days]
    holidays = calendar.get("holidays")
    if isinstance(holidays, list):
        calendar["holidays"] = [h.isoformat() if isinstance(h, date) else h for h in holidays]


def _parse_holidays(values: list[str]) -> frozenset[date]:
    try:
        return frozenset(date.fromisoformat(v) for v in values)
    except ValueError as e:
        raise ConfigError(f"invalid holiday date: {e}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _normalize_calendar(data)
    _validate_config_schema(data)

    defaults = ImportConfig()
    cal_raw = data.get("calendar", {})
    calendar = WorkingDayConfig(
        working_days=frozenset(cal_raw.get("working_days", DEFAULT_WORKING_DAYS)),
        holidays=_parse_holidays(cal_raw.get("holidays", [])),
    )
    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    max_size_mb = data.get("max_file_size_mb")
    return ImportConfig(
        error_report_dir=data.get("error_report_dir", defaults.error_report_dir),
        max_file_size_bytes=(
            int(max_size_mb * 1024 * 1024) if max_size_mb is not None else defaults.max_file_size_bytes
        ),
        include_persisted_dependencies=data.get(
            "include_persisted_dependencies", defaults.include_persisted_dependencies
        ),
        adjust_to_working_days=data.get("adjust_to_working_days", defaults.adjust_to_working_days),
        calendar=calendar,
        database=db,
    )
