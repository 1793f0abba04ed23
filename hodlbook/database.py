"""SQLite database connection management."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PATH = "./data/hodlbook.db"


class DatabaseError(Exception):
    """Raised when the database cannot be opened or used."""


class Database:
    """An open SQLite database at ``path`` (default ``./data/hodlbook.db``).

    The directory holding the database is created if needed and checked
    for write access before the database is opened.
    """

    def __init__(self, path: str = "") -> None:
        path = path or DEFAULT_PATH
        directory = os.path.dirname(path) or "."

        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise DatabaseError(f"failed to create data directory {directory}: {exc}") from exc

        if not os.path.isdir(directory):
            raise DatabaseError(f"data path {directory} is not a directory")

        probe = Path(directory) / ".write_test"
        try:
            probe.write_bytes(b"test")
        except OSError as exc:
            raise DatabaseError(f"data directory {directory} is not writable: {exc}") from exc
        try:
            probe.unlink()
        except OSError:
            pass

        try:
            self._conn: sqlite3.Connection | None = sqlite3.connect(
                path, uri=path.startswith("file:"), check_same_thread=False
            )
        except sqlite3.Error as exc:
            raise DatabaseError(
                f"failed to connect to database: {exc} (path: {path}, dir exists: true)"
            ) from exc

        self.path = path
        logger.info("Database connected: %s", path)

    def get(self) -> sqlite3.Connection:
        """Return the open connection."""
        if self._conn is None:
            raise DatabaseError("database not initialized")
        return self._conn

    def close(self) -> None:
        """Close the connection; closing twice is harmless."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()