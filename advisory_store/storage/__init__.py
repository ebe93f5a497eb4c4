"""
Storage layer for the advisory store.

This module provides data persistence using DuckDB.

Components:
- Database: Connection management, schema initialization, connection lock
- AdvisoryLoader: Atomic batch load of advisories and affected packages
- StoreError and subclasses: Batch load failures

Usage:
    from storage import Database, AdvisoryLoader

    db = Database("advisories.duckdb")
    loader = AdvisoryLoader(db)
    loader.bulk_insert(advisories)
"""

from .database import Database
from .errors import (
    BatchSerializationError,
    LockAcquisitionError,
    SchemaError,
    StoreError,
    TransactionError,
)
from .loader import AdvisoryLoader, BatchResult

__all__ = [
    "Database",
    "AdvisoryLoader",
    "BatchResult",
    "StoreError",
    "SchemaError",
    "LockAcquisitionError",
    "TransactionError",
    "BatchSerializationError",
]
