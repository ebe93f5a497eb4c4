"""
Metrics collection for load runs.

This module provides LoadMetrics, a dataclass that tracks what a single
load run wrote and what it had to give up on:
- Batches committed and batches rolled back
- Advisory and affected package rows written
- Failed batches with the advisory that triggered the rollback

Design decisions:
- Single metrics object per run for simplicity
- Failures are recorded per batch since the batch is the unit of atomicity
- Serializable to_dict() for JSON export
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class LoadMetrics:
    """
    Metrics for a single load run.

    Tracks committed and rolled back batches plus row counts.
    """
    run_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None

    # Core counts
    advisories_read: int = 0
    advisories_loaded: int = 0
    packages_loaded: int = 0
    batches_committed: int = 0
    batches_failed: int = 0
    errors: int = 0

    # One entry per rolled back batch or run-level error
    failures: List[Dict[str, Any]] = field(default_factory=list)

    def record_batch(self, advisories: int, packages: int):
        """
        Record a committed batch.

        Args:
            advisories: Advisory rows written
            packages: Affected package rows written
        """
        self.batches_committed += 1
        self.advisories_loaded += advisories
        self.packages_loaded += packages

    def record_failed_batch(self, batch_index: int, size: int, error: Exception):
        """
        Record a batch that was rolled back.

        Args:
            batch_index: Zero-based position of the batch in the run
            size: Number of advisories in the batch
            error: Exception raised by the loader
        """
        self.batches_failed += 1
        self.record_error(str(error), {
            "batch": batch_index,
            "size": size,
            "error_type": type(error).__name__,
            "ghsa": getattr(error, "ghsa", None),
        })

    def record_error(self, error: str, context: Dict = None):
        """
        Record an error encountered during the run.

        Args:
            error: Error message
            context: Optional dict with additional context (e.g., ghsa)
        """
        self.errors += 1
        self.failures.append({
            "message": error,
            "context": context or {}
        })

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert metrics to dictionary for JSON serialization.

        Returns:
            Dictionary representation suitable for JSON storage
        """
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "advisories_read": self.advisories_read,
            "advisories_loaded": self.advisories_loaded,
            "packages_loaded": self.packages_loaded,
            "batches_committed": self.batches_committed,
            "batches_failed": self.batches_failed,
            "errors": self.errors,
            "failures": self.failures,
        }
