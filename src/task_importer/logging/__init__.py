"""Labeled console logging and the per-run error report."""
