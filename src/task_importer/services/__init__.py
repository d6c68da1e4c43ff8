"""Validation, cycle detection, calendar arithmetic and the import engine."""
