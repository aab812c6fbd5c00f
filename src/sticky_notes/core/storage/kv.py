"""SQLite-backed synchronous key-value store for the secondary mirror."""

import sqlite3
from pathlib import Path

from loguru import logger

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SqliteKeyValueStore:
    """A flat string key-value table, last write wins.

    If the database file cannot be opened, an in-memory database is used
    instead; values then live only as long as the process.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.path)
            self.conn.executescript(_SCHEMA_SQL)
        except (OSError, sqlite3.Error) as e:
            logger.warning("Cannot open key-value store {!r} ({}), using memory", self.path, e)
            self.path = ":memory:"
            self.conn = sqlite3.connect(self.path)
            self.conn.executescript(_SCHEMA_SQL)
        self.conn.commit()

    def get(self, key: str) -> str | None:
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
            (key, value),
        )
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()
