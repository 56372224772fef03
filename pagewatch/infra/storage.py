"""SQLite connection management for the dedup state backend."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator

SEEN_RECORDS_SCHEMA = """
CREATE TABLE IF NOT EXISTS seen_records (
    source TEXT NOT NULL,
    source_order INTEGER NOT NULL,
    position INTEGER NOT NULL,
    title TEXT NOT NULL,
    fields TEXT NOT NULL,
    PRIMARY KEY (source, position)
)
"""


class SQLiteManager:
    """Hand out one shared connection per database file."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        """Open (or reuse) the connection for ``path``; the table exists afterwards."""

        key = path.resolve()
        with self._lock:
            conn = self._connections.get(key)
            if conn is None:
                key.parent.mkdir(parents=True, exist_ok=True)
                # Cycles may run on a scheduler worker thread
                conn = sqlite3.connect(key, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                try:
                    with conn:
                        conn.execute(SEEN_RECORDS_SCHEMA)
                except sqlite3.DatabaseError:
                    conn.close()
                    raise
                self._connections[key] = conn
        return conn

    @contextmanager
    def transaction(self, path: Path) -> Iterator[sqlite3.Connection]:
        """Commit everything done inside the block, or roll all of it back."""

        conn = self.connect(path)
        with conn:
            yield conn

    def close(self, path: Path) -> None:
        with self._lock:
            conn = self._connections.pop(path.resolve(), None)
        if conn is not None:
            conn.close()


__all__ = ["SEEN_RECORDS_SCHEMA", "SQLiteManager"]
