"""SQLite-backed key-value persistence."""

import json
import sqlite3
from pathlib import Path
from typing import Any

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,  -- JSON document
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class Database:
    """SQLite database wrapper exposing named JSON entries."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Connect to the database."""
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        return self.conn

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        self.connect()
        self.init_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def init_schema(self):
        """Initialize the database schema."""
        if not self.conn:
            raise RuntimeError("Database not connected")
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def get(self, key: str) -> Any | None:
        """Return the decoded value stored under key, or None."""
        if not self.conn:
            raise RuntimeError("Database not connected")
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def get_raw(self, key: str) -> str | None:
        """Return the stored JSON text under key, or None."""
        if not self.conn:
            raise RuntimeError("Database not connected")
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: Any):
        """Serialize value and store it under key in a single commit."""
        if not self.conn:
            raise RuntimeError("Database not connected")
        self.conn.execute(
            """
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, json.dumps(value)),
        )
        self.conn.commit()

    def delete(self, key: str):
        """Remove the entry stored under key."""
        if not self.conn:
            raise RuntimeError("Database not connected")
        self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()

