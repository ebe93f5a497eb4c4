"""
Exceptions raised by the storage layer.

Every failed batch load surfaces as a StoreError subclass. Nothing is
retried here: callers decide whether to retry or split the batch, using
`ghsa` to locate the advisory that failed when it is known.
"""
from typing import Optional


class StoreError(RuntimeError):
    """Base class for storage failures."""

    def __init__(self, message: str, ghsa: Optional[str] = None):
        super().__init__(message)
        self.ghsa = ghsa


class SchemaError(StoreError):
    """Tables could not be created or exist with an incompatible shape."""


class LockAcquisitionError(StoreError):
    """The shared connection cannot be handed out; the batch was not attempted."""


class TransactionError(StoreError):
    """A begin/insert/commit failed and the whole batch was rolled back."""


class BatchSerializationError(StoreError):
    """A derived column could not be encoded and the whole batch was rolled back."""
