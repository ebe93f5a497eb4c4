"""
Database connection and schema management for the advisory store.

This module provides:
- DuckDB connection lifecycle management
- The advisories and affected_packages tables
- A lock-guarded handle so only one writer uses the connection at a time

Design decisions:
- One connection per Database, shared by every loader built on it
- Derived sets and lists are stored as JSON text, not join tables
- Schema is created on construction; an existing table with a different
  column layout is fatal
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import duckdb

from .errors import LockAcquisitionError, SchemaError

logger = logging.getLogger(__name__)

ADVISORY_COLUMNS = [
    "ghsa",
    "schema_version",
    "modified",
    "published",
    "withdrawn",
    "cve",
    "ecosystems",
    "summary",
    "details",
    "severity",
    "cwes",
    "github_reviewed",
    "github_reviewed_at",
    "nvd_published_at",
    "ref_commits",
    "ref_pull_requests",
]

AFFECTED_PACKAGE_COLUMNS = ["ghsa", "name", "ecosystem", "ranges", "versions"]

TABLE_COLUMNS: Dict[str, List[str]] = {
    "advisories": ADVISORY_COLUMNS,
    "affected_packages": AFFECTED_PACKAGE_COLUMNS,
}

CREATE_ADVISORIES_TABLE = """
    CREATE TABLE IF NOT EXISTS advisories (
        ghsa VARCHAR PRIMARY KEY,
        schema_version VARCHAR,
        modified VARCHAR NOT NULL,
        published VARCHAR,
        withdrawn VARCHAR,
        cve VARCHAR,
        ecosystems VARCHAR,
        summary VARCHAR,
        details VARCHAR,
        severity VARCHAR,
        cwes VARCHAR,
        github_reviewed INTEGER,
        github_reviewed_at VARCHAR,
        nvd_published_at VARCHAR,
        ref_commits VARCHAR,
        ref_pull_requests VARCHAR
    )
"""

# No primary key: several rows per ghsa are expected
CREATE_AFFECTED_PACKAGES_TABLE = """
    CREATE TABLE IF NOT EXISTS affected_packages (
        ghsa VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        ecosystem VARCHAR NOT NULL,
        ranges VARCHAR,
        versions VARCHAR
    )
"""


class Database:
    """
    Owns the DuckDB connection and the advisory schema.

    The connection is shared; writers must go through locked_connection(),
    which serializes callers in acquisition order and refuses to hand out a
    connection left in an unknown transaction state.
    """

    def __init__(self, db_path: str = "advisories.duckdb"):
        """
        Open the database and create the schema.

        Args:
            db_path: Path to DuckDB database file (created if doesn't exist),
                or ":memory:"

        Raises:
            SchemaError: If the tables cannot be created or have the wrong shape
        """
        self.db_path = db_path
        self.conn: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.Lock()
        self._poisoned: Optional[str] = None
        self.initialize_schema()

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create database connection.

        Returns:
            Active DuckDB connection
        """
        if self.conn is None:
            self.conn = duckdb.connect(self.db_path)
        return self.conn

    def close(self):
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None

    def initialize_schema(self):
        """
        Create both tables if they don't exist and verify their columns.

        Raises:
            SchemaError: On creation failure or column mismatch
        """
        with self._lock:
            try:
                conn = self.connect()
                conn.execute(CREATE_ADVISORIES_TABLE)
                conn.execute(CREATE_AFFECTED_PACKAGES_TABLE)

                for table, expected in TABLE_COLUMNS.items():
                    actual = self._table_columns(conn, table)
                    if actual != expected:
                        raise SchemaError(
                            f"Table {table} has incompatible columns: expected {expected}, found {actual}"
                        )
            except (duckdb.Error, SchemaError) as e:
                if self.conn is not None:
                    self.conn.close()
                    self.conn = None
                if isinstance(e, SchemaError):
                    raise
                raise SchemaError(f"Failed to create advisory tables: {e}") from e

        logger.debug("Advisory schema ready at %s", self.db_path)

    @staticmethod
    def _table_columns(conn: duckdb.DuckDBPyConnection, table: str) -> List[str]:
        rows = conn.execute("""
            SELECT column_name FROM information_schema.columns
            WHERE table_schema = 'main' AND table_name = ?
            ORDER BY ordinal_position
        """, [table]).fetchall()
        return [row[0] for row in rows]

    @contextmanager
    def locked_connection(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Hold the connection lock for the duration of the block.

        Blocks until the lock is free; there is no timeout.

        Raises:
            LockAcquisitionError: If a previous holder left the connection
                in an unrecoverable state
        """
        with self._lock:
            if self._poisoned is not None:
                raise LockAcquisitionError(f"Connection unusable: {self._poisoned}")
            yield self.connect()

    def mark_poisoned(self, reason: str):
        """
        Refuse further use of the connection.

        Must be called while holding locked_connection().
        """
        self._poisoned = reason

    @property
    def is_poisoned(self) -> bool:
        return self._poisoned is not None

    def count_rows(self, table: str, ghsa: Optional[str] = None) -> int:
        """
        Count rows in one of the advisory tables.

        Args:
            table: "advisories" or "affected_packages"
            ghsa: Restrict the count to one advisory

        Returns:
            Number of rows
        """
        if table not in TABLE_COLUMNS:
            raise ValueError(f"Unknown table: {table}")

        with self.locked_connection() as conn:
            if ghsa is None:
                result = conn.execute(f"SELECT count(*) FROM {table}").fetchone()
            else:
                result = conn.execute(f"SELECT count(*) FROM {table} WHERE ghsa = ?", [ghsa]).fetchone()
        return result[0] if result else 0

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
