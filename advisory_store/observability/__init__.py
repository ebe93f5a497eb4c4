"""
Observability layer for the advisory store.

This module provides metrics collection, quality checks, and reporting
for load runs.

Main exports:
- LoadMetrics: Tracks metrics for a load run
- QualityChecker: Runs data quality checks
- QualityCheckResult: Result of a quality check
- LoadReporter: Generates Markdown reports
"""
from .metrics import LoadMetrics
from .quality_checks import QualityChecker, QualityCheckResult
from .reporter import LoadReporter

__all__ = [
    "LoadMetrics",
    "QualityChecker",
    "QualityCheckResult",
    "LoadReporter",
]
