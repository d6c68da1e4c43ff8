"""CSV / spreadsheet task import with validation, cycle detection and two-phase commit."""

__version__ = "0.1.0"
