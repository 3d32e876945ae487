"""SQLite connection lifecycle: one short-lived connection per operation.

The context manager always closes the connection, including when the
body raises. Transactions are left to the caller (``with conn:``).
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fhirstore.exceptions import InvalidArgumentError, StorageFaultError

DEFAULT_BUSY_TIMEOUT = 30.0


def validate_db_path(db_path: str | Path) -> Path:
    """Reject paths that cannot be shared across connections."""
    text = str(db_path)
    if not text or text == ":memory:" or text.startswith("file::memory:"):
        raise InvalidArgumentError(
            "ResourceStore needs a file-backed database; in-memory databases "
            "are private to a single connection"
        )
    return Path(db_path)


@contextmanager
def sqlite_conn(
    db_path: str | Path,
    *,
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
) -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection that is always closed on exit.

    Writes open their transaction with BEGIN IMMEDIATE, so the write lock
    is taken before any row is read. Lock waits last up to
    ``busy_timeout`` seconds before the engine gives up with "database is
    locked".
    """
    try:
        conn = sqlite3.connect(str(db_path), timeout=busy_timeout, isolation_level="IMMEDIATE")
    except sqlite3.Error as exc:
        raise StorageFaultError(f"Cannot open database {db_path}: {exc}") from exc
    try:
        yield conn
    finally:
        conn.close()
