#!/usr/bin/env python3
"""
Load runner for the advisory store.

This module coordinates a complete load from a local OSV export:
1. Configuration: Read and validate config.yaml
2. Storage: Open the database and create the schema
3. Loading: Read advisories and insert them in fixed-size batches
4. Quality: Run data quality checks on the stored rows
5. Reporting: Write a Markdown load report

Each batch is one transaction. A batch that fails is rolled back, recorded
and skipped; the runner does not retry or split it.

Usage:
    python run_loader.py [--config path/to/config.yaml]
"""
import sys
import yaml
import logging
import argparse
from datetime import datetime
from itertools import islice
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from ingestion.models import GitHubAdvisory
from ingestion.osv_reader import OsvReader
from storage import AdvisoryLoader, Database, StoreError
from observability import LoadMetrics, LoadReporter, QualityChecker

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Read and validate the YAML configuration.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a required key is missing or invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    required_keys = [("database", "path"), ("input", "path")]
    for section, key in required_keys:
        if not isinstance(config.get(section), dict) or not config[section].get(key):
            raise ValueError(f"Missing required config key: {section}.{key}")

    config.setdefault("loader", {})
    config.setdefault("output", {})
    batch_size = config["loader"].setdefault("batch_size", DEFAULT_BATCH_SIZE)
    if not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"loader.batch_size must be a positive integer, got {batch_size!r}")
    config["output"].setdefault("report_dir", "output")

    return config


def batched(advisories: Iterable[GitHubAdvisory], size: int) -> Iterator[List[GitHubAdvisory]]:
    """Yield consecutive lists of at most `size` advisories."""
    iterator = iter(advisories)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


class AdvisoryLoadRunner:
    """
    Coordinates reading, loading, checking and reporting for one run.

    Design decisions:
    - Batch failures are recorded in metrics and do not stop the run
    - Any other failure aborts the run
    - Quality checks always see committed data only
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize runner with configuration.

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = Path(config_path)
        self.config = load_config(self.config_path)

        self.db = Database(self.config["database"]["path"])
        self.loader = AdvisoryLoader(self.db)
        self.quality_checker = QualityChecker(self.db)
        self.reporter = LoadReporter()
        self.batch_size = self.config["loader"]["batch_size"]

        logger.info(f"Loader initialized with config: {config_path}")

    def run(self) -> LoadMetrics:
        """
        Execute a complete load run.

        Returns:
            LoadMetrics object with execution statistics

        Raises:
            RuntimeError: If reading input, checking or reporting fails
        """
        run_id = f"run_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}"
        metrics = LoadMetrics(run_id=run_id, started_at=datetime.utcnow())

        logger.info(f"=== Starting Load Run: {run_id} ===")

        try:
            input_config = self.config["input"]
            reader = OsvReader(input_config["path"], ecosystems=input_config.get("ecosystems"))

            for index, batch in enumerate(batched(reader, self.batch_size)):
                metrics.advisories_read += len(batch)
                self._load_batch(index, batch, metrics)

            if reader.skipped:
                logger.warning(f"Skipped {reader.skipped} unreadable advisory records")

            quality_results = self.quality_checker.run_all_checks()

            metrics.completed_at = datetime.utcnow()
            report = self.reporter.generate_report(metrics, quality_results)
            report_path = self.reporter.save_report(report, Path(self.config["output"]["report_dir"]))

            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            logger.info(f"=== Load Complete ===")
            logger.info(f"Duration: {duration:.1f}s")
            logger.info(f"Advisories: {metrics.advisories_loaded}/{metrics.advisories_read}")
            logger.info(f"Report: {report_path}")

        except Exception as e:
            metrics.record_error(str(e))
            logger.error(f"Load failed: {e}", exc_info=True)
            raise RuntimeError(f"Load execution failed: {e}") from e

        return metrics

    def _load_batch(self, index: int, batch: List[GitHubAdvisory], metrics: LoadMetrics):
        try:
            result = self.loader.bulk_insert(batch)
        except StoreError as e:
            logger.error(f"  Batch {index} rolled back ({len(batch)} advisories): {e}")
            metrics.record_failed_batch(index, len(batch), e)
            return

        metrics.record_batch(result.advisories, result.affected_packages)

    def close(self):
        self.db.close()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Load OSV advisories into the advisory store"
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        runner = AdvisoryLoadRunner(config_path=args.config)
        try:
            metrics = runner.run()
        finally:
            runner.close()

        print("\n" + "=" * 60)
        print("Load Summary")
        print("=" * 60)
        print(f"Run ID: {metrics.run_id}")
        print(f"Advisories: {metrics.advisories_loaded} of {metrics.advisories_read}")
        print(f"Affected packages: {metrics.packages_loaded}")
        print(f"Batches rolled back: {metrics.batches_failed}")
        print("=" * 60)

        sys.exit(1 if metrics.batches_failed else 0)

    except Exception as e:
        logger.error(f"Load failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
