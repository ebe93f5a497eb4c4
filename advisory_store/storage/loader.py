"""
Atomic batch loader for advisory records.

bulk_insert() is the only write path into the store. Each call:
1. Takes the connection lock (blocking) for the whole batch
2. Opens one transaction
3. Normalizes every advisory and inserts its advisories row followed by
   its affected_packages rows, in input order
4. Commits, or rolls back everything on the first failure

A batch is the unit of atomicity: either every advisory in the call is
persisted or none is. Reloading an existing ghsa is a primary key violation,
not an upsert.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import duckdb

from ingestion.models import GitHubAdvisory
from normalization import SerializationError, normalize_advisory
from .database import ADVISORY_COLUMNS, AFFECTED_PACKAGE_COLUMNS, Database
from .errors import BatchSerializationError, TransactionError

logger = logging.getLogger(__name__)

INSERT_ADVISORY = f"""
    INSERT INTO advisories ({", ".join(ADVISORY_COLUMNS)})
    VALUES ({", ".join("?" for _ in ADVISORY_COLUMNS)})
"""

INSERT_AFFECTED_PACKAGE = f"""
    INSERT INTO affected_packages ({", ".join(AFFECTED_PACKAGE_COLUMNS)})
    VALUES ({", ".join("?" for _ in AFFECTED_PACKAGE_COLUMNS)})
"""


@dataclass
class BatchResult:
    """Row counts written by one committed batch."""
    advisories: int = 0
    affected_packages: int = 0


class AdvisoryLoader:
    """
    Loads batches of advisories into the advisories and affected_packages tables.

    Any number of loaders may share one Database; their batches are
    serialized by the database's connection lock and never interleave.
    """

    def __init__(self, database: Database):
        """
        Initialize loader with database connection.

        Args:
            database: Database instance to load data into
        """
        self.db = database

    def bulk_insert(self, advisories: Iterable[GitHubAdvisory]) -> BatchResult:
        """
        Normalize and insert a batch of advisories in one transaction.

        Args:
            advisories: Decoded advisory records, written in iteration order

        Returns:
            BatchResult with the number of rows written per table

        Raises:
            LockAcquisitionError: Connection unusable, nothing attempted
            TransactionError: A database operation failed, batch rolled back
            BatchSerializationError: A derived column could not be encoded,
                batch rolled back
        """
        with self.db.locked_connection() as conn:
            try:
                conn.begin()
            except duckdb.Error as e:
                raise TransactionError(f"Failed to begin transaction: {e}") from e

            result = BatchResult()
            current: Optional[str] = None
            try:
                for advisory in advisories:
                    current = getattr(advisory, "id", None)
                    normalized = normalize_advisory(advisory)
                    conn.execute(INSERT_ADVISORY, normalized.advisory_row())
                    result.advisories += 1

                    for package in normalized.packages:
                        conn.execute(INSERT_AFFECTED_PACKAGE, [
                            package.ghsa,
                            package.name,
                            package.ecosystem,
                            package.ranges,
                            package.versions,
                        ])
                        result.affected_packages += 1

            except SerializationError as e:
                self._rollback(conn, current)
                raise BatchSerializationError(f"Advisory {current}: {e}", ghsa=current) from e
            except duckdb.Error as e:
                self._rollback(conn, current)
                raise TransactionError(f"Insert failed for advisory {current}: {e}", ghsa=current) from e
            except (AttributeError, KeyError, TypeError) as e:
                self._rollback(conn, current)
                raise TransactionError(f"Malformed advisory {current}: {e}", ghsa=current) from e
            except BaseException:
                self._rollback(conn, current)
                raise

            try:
                conn.commit()
            except duckdb.Error as e:
                # DuckDB rolls back a transaction whose commit failed
                logger.error("Commit failed, batch of %d advisories discarded: %s", result.advisories, e)
                raise TransactionError(f"Failed to commit batch: {e}") from e

        logger.info(
            "Committed batch: %d advisories, %d affected packages",
            result.advisories, result.affected_packages
        )
        return result

    def _rollback(self, conn: duckdb.DuckDBPyConnection, ghsa: Optional[str]):
        try:
            conn.rollback()
        except duckdb.Error as e:
            logger.critical("Rollback failed after error on advisory %s: %s", ghsa, e)
            self.db.mark_poisoned(f"rollback failed after error on advisory {ghsa}: {e}")
        else:
            logger.error("Rolled back batch after error on advisory %s", ghsa)
