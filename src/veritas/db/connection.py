"""SQLite connections for the Veritas store.

One connection per unit of work (CLI command, HTTP request, worker thread).
Every connection is prepared the same way: sqlite-vec loaded, ``sqlite3.Row``
rows, foreign keys on, WAL journal and a busy timeout so concurrent writers
wait instead of failing immediately.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
)


class Database:
    """Connection factory for one database file.

    Args:
        db_path: Path to the SQLite file (created on first connect).
        timeout: Seconds to wait on a locked database before
            ``sqlite3.OperationalError`` is raised.
    """

    def __init__(self, db_path: Path | str, timeout: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None

    @property
    def exists(self) -> bool:
        return self.db_path.is_file()

    def connect(self) -> sqlite3.Connection:
        """Open and prepare a new connection. The caller closes it."""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        try:
            _prepare(conn)
        except Exception:
            conn.close()
            raise
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


def _prepare(conn: sqlite3.Connection) -> None:
    conn.row_factory = sqlite3.Row
    conn.enable_load_extension(True)
    try:
        sqlite_vec.load(conn)
    finally:
        conn.enable_load_extension(False)
    for pragma in _PRAGMAS:
        conn.execute(pragma)
