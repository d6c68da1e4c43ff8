from __future__ import annotations

from datetime import date

import pytest

from task_importer.services.field_parsers import (
    is_boolean_token,
    is_integer_token,
    normalize_dependency_type,
    normalize_status,
    parse_boolean,
    parse_date,
    try_parse_date,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2026-02-03", date(2026, 2, 3)),
        ("2026/02/03", date(2026, 2, 3)),
        ("02/03/2026", date(2026, 2, 3)),  # MM/dd/yyyy wins over dd/MM/yyyy
        ("25/12/2026", date(2026, 12, 25)),  # only valid as dd/MM/yyyy
        (" 2026-02-03 ", date(2026, 2, 3)),
    ],
)
def test_try_parse_date_formats_in_order(raw, expected):
    """Formats are tried in order; the first match wins."""
    assert try_parse_date(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [None, "", "2026-13-01", "03-02-2026", "tomorrow", "2026-1-5", "2026/1/05", "1/5/2026", "26-01-05"],
)
def test_try_parse_date_rejects(raw):
    """Unknown layouts and unpadded month or day fields are not dates."""
    assert try_parse_date(raw) is None


def test_parse_date_raises():
    """The strict form raises on bad input."""
    with pytest.raises(ValueError, match="Invalid date format"):
        parse_date("not a date")


@pytest.mark.parametrize("token", ["true", "TRUE", "1", "yes", "Yes", "false", "0", "no", " No "])
def test_boolean_tokens(token):
    """Recognized boolean tokens, any case."""
    assert is_boolean_token(token)


@pytest.mark.parametrize("token", ["y", "n", "2", "on", ""])
def test_boolean_tokens_invalid(token):
    """Other words are not booleans."""
    assert not is_boolean_token(token)


def test_parse_boolean():
    """Only true tokens parse as True."""
    assert parse_boolean("YES") is True
    assert parse_boolean("0") is False
    assert parse_boolean(None) is False


@pytest.mark.parametrize("token,ok", [("0", True), ("100", True), ("-5", True), ("+7", True), ("1.5", False), ("abc", False)])
def test_is_integer_token(token, ok):
    """Signed integers only, no decimals."""
    assert is_integer_token(token) is ok


def test_normalize_status():
    """Statuses are lower-cased or rejected."""
    assert normalize_status("IN_PROGRESS") == "in_progress"
    assert normalize_status("archived") is None


def test_normalize_dependency_type():
    """Dependency types are upper-cased and default to FS."""
    assert normalize_dependency_type(None) == "FS"
    assert normalize_dependency_type("ss") == "SS"
    assert normalize_dependency_type("XX") is None
