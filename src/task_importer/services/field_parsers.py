from __future__ import annotations

import re
from datetime import date, datetime

from ..models.task import DependencyType, TaskStatus

"""Parsing helpers for the raw string fields of a NormalizedRow.

The validator uses the is_* / try_* forms to report problems; the import engine
uses the strict forms on rows that already passed validation.
"""

__all__ = [
    "DATE_FORMATS",
    "VALID_STATUSES",
    "VALID_DEPENDENCY_TYPES",
    "try_parse_date",
    "parse_date",
    "is_boolean_token",
    "parse_boolean",
    "is_integer_token",
    "normalize_status",
    "normalize_dependency_type",
]

# Tried in order, first match wins (yyyy-MM-dd, yyyy/MM/dd, MM/dd/yyyy, dd/MM/yyyy)
DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%d/%m/%Y")

# strptime accepts unpadded fields; each format requires two-digit month and day
_DATE_SHAPES = {
    "%Y-%m-%d": re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    "%Y/%m/%d": re.compile(r"^\d{4}/\d{2}/\d{2}$"),
    "%m/%d/%Y": re.compile(r"^\d{2}/\d{2}/\d{4}$"),
    "%d/%m/%Y": re.compile(r"^\d{2}/\d{2}/\d{4}$"),
}

VALID_STATUSES = tuple(s.value for s in TaskStatus)
VALID_DEPENDENCY_TYPES = tuple(t.value for t in DependencyType)

TRUE_TOKENS = frozenset({"true", "1", "yes"})
FALSE_TOKENS = frozenset({"false", "0", "no"})

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def try_parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    text = value.strip()
    for fmt in DATE_FORMATS:
        if not _DATE_SHAPES[fmt].match(text):
            continue
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_date(value: str | None) -> date:
    parsed = try_parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date format: {value}")
    return parsed


def is_boolean_token(value: str) -> bool:
    lower = value.strip().lower()
    return lower in TRUE_TOKENS or lower in FALSE_TOKENS


def parse_boolean(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in TRUE_TOKENS


def is_integer_token(value: str) -> bool:
    return bool(_INTEGER_RE.match(value.strip()))


def normalize_status(value: str) -> str | None:
    lower = value.strip().lower()
    return lower if lower in VALID_STATUSES else None


def normalize_dependency_type(value: str | None) -> str | None:
    """Upper-cased dependency type, FS when absent, None when unknown."""
    if value is None:
        return DependencyType.FS.value
    upper = value.strip().upper()
    return upper if upper in VALID_DEPENDENCY_TYPES else None
