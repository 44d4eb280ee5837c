# src/storage/slot_store.py

"""SQLite-backed named slots holding serialized application state."""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from src.config.settings import Settings

logger = logging.getLogger("padel_tracker.slots")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SlotStore:
    """Key-value store where each key holds one opaque text value.

    Writes overwrite the previous value; there is no versioning.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.STATE_DB_PATH
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("SlotStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def get(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None``."""
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (key,),
        ).fetchone()
        return str(row[0]) if row else None

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ts = datetime.now(timezone.utc).isoformat()
        self._conn.execute(
            "INSERT INTO kv_store (key, value, updated_at) "
            "VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "value=excluded.value, updated_at=excluded.updated_at",
            (key, value, ts),
        )
        self._conn.commit()
        logger.debug("Slot '%s' written (%d chars)", key, len(value))

    def updated_at(self, key: str) -> datetime | None:
        """Return when *key* was last written, or ``None``."""
        row = self._conn.execute(
            "SELECT updated_at FROM kv_store WHERE key = ?",
            (key,),
        ).fetchone()
        return datetime.fromisoformat(row[0]) if row else None
