"""Store error hierarchy and retry policy for transient SQLite contention."""

import logging

import aiosqlite
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


# ── Exception Hierarchy ──────────────────────────────────────────────────────


class StoreError(Exception):
    """Base class for all record store errors."""


class StoreFailure(StoreError):
    """Opaque failure of the underlying database."""


class TransientStoreError(StoreFailure):
    """The database was locked or busy. Safe to retry."""


class ConstraintError(StoreError):
    """A write violated a NOT NULL, CHECK, UNIQUE or foreign key constraint."""


class RecordNotFoundError(StoreError):
    """No record exists for the given identifier."""

    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(f"No {table} record with id {record_id}")
        self.table = table
        self.record_id = record_id


class InvalidQueryError(StoreError):
    """Unknown table or column referenced by a query."""


_TRANSIENT_MARKERS = ("database is locked", "database table is locked", "busy")


def classify_store_error(exc: aiosqlite.Error) -> StoreError:
    """Map a raw sqlite error onto the store error hierarchy.

    Args:
        exc: The error raised by aiosqlite / sqlite3.

    Returns:
        ConstraintError for integrity violations, TransientStoreError for
        lock contention, StoreFailure for anything else.
    """
    if isinstance(exc, aiosqlite.IntegrityError):
        return ConstraintError(str(exc))
    message = str(exc).lower()
    if isinstance(exc, aiosqlite.OperationalError) and any(
        marker in message for marker in _TRANSIENT_MARKERS
    ):
        return TransientStoreError(str(exc))
    return StoreFailure(str(exc))


# ── Retry ─────────────────────────────────────────────────────────────────


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Tenacity ``before_sleep`` callback that logs each retry."""
    attempt = retry_state.attempt_number
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Store write retry %d after error: %s", attempt, exc)


resilient_write = retry(
    retry=retry_if_exception_type(TransientStoreError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    before_sleep=log_retry_attempt,
    reraise=True,
)
"""Tenacity decorator for retrying writes on ``TransientStoreError``."""
