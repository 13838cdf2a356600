"""
Observability layer for data migration runs.

This module provides metrics collection and reporting for migration runs.

Main exports:
- RunMetrics: Tracks metrics for a migration run
- MigrationResult: Outcome of one migration within a run
- RunReporter: Generates Markdown reports
"""
from .metrics import MigrationResult, RunMetrics
from .reporter import RunReporter

__all__ = [
    "MigrationResult",
    "RunMetrics",
    "RunReporter",
]
