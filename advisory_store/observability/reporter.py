"""
Generate human-readable load reports in Markdown format.

This module provides LoadReporter, which transforms LoadMetrics and quality
check results into formatted Markdown reports.

Report sections:
- Header with run metadata (ID, timestamp, duration)
- Summary table with row and batch counts
- Failed batches with the advisory that caused the rollback
- Data quality check results

Design decisions:
- Markdown output for readability and version control friendliness
- Uses tabulate library for table formatting (GitHub-flavored)
- Reports saved with timestamp for historical tracking
"""
from datetime import datetime
from pathlib import Path
from typing import List

from tabulate import tabulate

from .metrics import LoadMetrics
from .quality_checks import QualityCheckResult


class LoadReporter:
    """Generates Markdown reports from load run metrics."""

    def generate_report(
        self,
        metrics: LoadMetrics,
        quality_results: List[QualityCheckResult]
    ) -> str:
        """
        Generate full load report in Markdown format.

        Args:
            metrics: LoadMetrics object from a completed run
            quality_results: List of quality check results

        Returns:
            Markdown-formatted report as string
        """
        lines = []

        # Header
        lines.append("# Advisory Load Report")
        lines.append(f"**Run ID:** {metrics.run_id}")
        lines.append(f"**Started:** {metrics.started_at.isoformat()}")
        if metrics.completed_at:
            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            lines.append(f"**Duration:** {duration:.1f} seconds")
        lines.append("")

        # Summary table
        lines.append("## Summary")
        summary_data = [
            ["Advisories Read", metrics.advisories_read],
            ["Advisories Loaded", metrics.advisories_loaded],
            ["Affected Packages Loaded", metrics.packages_loaded],
            ["Batches Committed", metrics.batches_committed],
            ["Batches Rolled Back", metrics.batches_failed],
            ["Errors", metrics.errors],
        ]
        lines.append(tabulate(summary_data, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        # Failed batches
        failed = [f for f in metrics.failures if "batch" in f["context"]]
        if failed:
            lines.append("## Rolled Back Batches")
            failure_data = [
                [
                    f["context"]["batch"],
                    f["context"]["size"],
                    f["context"].get("ghsa") or "-",
                    f["context"]["error_type"],
                ]
                for f in failed
            ]
            lines.append(tabulate(failure_data, headers=["Batch", "Size", "Advisory", "Error"], tablefmt="github"))
            lines.append("")

        # Quality checks
        lines.append("## Data Quality Checks")
        quality_data = []
        for qr in quality_results:
            status = "✓" if qr.passed else "✗"
            quality_data.append([status, qr.check_name, qr.message])
        lines.append(tabulate(quality_data, headers=["Status", "Check", "Details"], tablefmt="github"))
        lines.append("")

        return "\n".join(lines)

    def save_report(self, report: str, output_dir: Path) -> Path:
        """
        Save report to file with timestamp.

        Args:
            report: Markdown report content
            output_dir: Directory to save report in

        Returns:
            Path to saved report file
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        filepath = output_dir / f"load-report-{timestamp}.md"
        filepath.write_text(report)
        return filepath
