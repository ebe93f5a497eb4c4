"""
Data quality checks for loaded advisories.

This module implements QualityChecker, which runs SQL-based validation checks
against the advisories and affected_packages tables after a load.

Checks implemented:
- No empty sets: Derived set columns are NULL rather than '[]'
- No orphan packages: Every affected package row has an advisory
- CVE prefix: Stored CVE values start with "CVE-"
- Modified present: Every advisory carries its modified timestamp

Design decisions:
- Each check returns a QualityCheckResult with pass/fail and details
- Checks are SQL-based (run against database, not Python)
- Checks read under the connection lock so they never observe a batch
  in flight
"""
from dataclasses import dataclass
from typing import Any, Dict, List

DERIVED_SET_COLUMNS = ["ecosystems", "ref_commits", "ref_pull_requests"]


@dataclass
class QualityCheckResult:
    """
    Result of a single quality check.

    Attributes:
        check_name: Unique identifier for the check
        passed: True if check passed, False otherwise
        message: Human-readable summary of the result
        details: Optional dict with additional context (e.g., counts)
    """
    check_name: str
    passed: bool
    message: str
    details: Dict[str, Any] = None


class QualityChecker:
    """
    Runs data quality checks against the advisory store.

    Each check method executes a SQL query against the database and returns
    a QualityCheckResult indicating pass/fail status.
    """

    def __init__(self, database):
        """
        Initialize quality checker.

        Args:
            database: Database instance
        """
        self.db = database

    def run_all_checks(self) -> List[QualityCheckResult]:
        """
        Run all quality checks.

        Returns:
            List of QualityCheckResult objects, one per check
        """
        return [
            self.check_no_empty_sets(),
            self.check_no_orphan_packages(),
            self.check_cve_prefix(),
            self.check_modified_present(),
        ]

    def _count(self, query: str) -> int:
        with self.db.locked_connection() as conn:
            return conn.execute(query).fetchone()[0]

    def check_no_empty_sets(self) -> QualityCheckResult:
        """
        Ensure derived set columns never hold an empty JSON array.

        An empty derived set must be stored as NULL.
        """
        condition = " OR ".join(f"{column} = '[]'" for column in DERIVED_SET_COLUMNS)
        result = self._count(f"SELECT count(*) FROM advisories WHERE {condition}")

        return QualityCheckResult(
            check_name="no_empty_sets",
            passed=result == 0,
            message=f"{result} advisories with empty derived sets" if result > 0 else "No empty derived sets",
            details={"empty_count": result}
        )

    def check_no_orphan_packages(self) -> QualityCheckResult:
        """Ensure every affected package row belongs to a stored advisory."""
        result = self._count("""
            SELECT count(*) FROM affected_packages p
            WHERE NOT EXISTS (SELECT 1 FROM advisories a WHERE a.ghsa = p.ghsa)
        """)

        return QualityCheckResult(
            check_name="no_orphan_packages",
            passed=result == 0,
            message=f"{result} orphan package rows" if result > 0 else "All package rows have an advisory",
            details={"orphan_count": result}
        )

    def check_cve_prefix(self) -> QualityCheckResult:
        """Check that stored CVE identifiers start with "CVE-"."""
        result = self._count("""
            SELECT count(*) FROM advisories
            WHERE cve IS NOT NULL AND NOT starts_with(cve, 'CVE-')
        """)

        return QualityCheckResult(
            check_name="cve_prefix",
            passed=result == 0,
            message=f"{result} invalid CVE values" if result > 0 else "All CVE values valid",
            details={"invalid_count": result}
        )

    def check_modified_present(self) -> QualityCheckResult:
        """Every advisory needs a modified timestamp for change detection."""
        result = self._count("""
            SELECT count(*) FROM advisories
            WHERE modified IS NULL OR trim(modified) = ''
        """)

        return QualityCheckResult(
            check_name="modified_present",
            passed=result == 0,
            message=f"{result} advisories missing modified" if result > 0 else "All advisories have modified",
            details={"missing_count": result}
        )
