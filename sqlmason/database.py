"""SQLite collaborator used to commit and synchronize the schema cache."""

import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from .config import DB_TIMEOUT
from .utils.logging import logger


class DatabaseCollaborator(Protocol):
    """The three operations the orchestrator needs from a backing store."""

    def execute(self, sql: str) -> None: ...

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None: ...

    def query_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]: ...


class DatabaseManager:
    """Thin wrapper over a sqlite3 connection.

    Errors raised by sqlite3 propagate untranslated. Every call is a single
    round trip; nothing is retried.
    """

    def __init__(self, db_path: str | Path, timeout: float = DB_TIMEOUT):
        """Initialize the database manager."""
        self.db_path = str(db_path)

        self.conn = sqlite3.connect(self.db_path, timeout=timeout)
        self.conn.row_factory = sqlite3.Row

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def execute(self, sql: str) -> None:
        """Run a non-query statement (CREATE TABLE, INSERT) and commit it."""
        try:
            self.conn.execute(sql)
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            logger.debug("Statement failed on {db}:\n{sql}", db=self.db_path, sql=sql)
            raise

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        """Fetch a single row, or None."""
        return self.conn.execute(sql, tuple(params)).fetchone()

    def query_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        """Fetch every row in result order."""
        return self.conn.execute(sql, tuple(params)).fetchall()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.conn.rollback()

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
