# src/storage/client_storage.py

"""SQLite-backed key/value store for client-side persisted state."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("storefront.storage")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS client_state (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class ClientStorage:
    """Persistent string key → string value store.

    Values survive restarts but not an explicit :meth:`clear`.
    JSON helpers treat unparseable values as absent and drop them.
    """

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.CLIENT_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("ClientStorage opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Raw strings ──────────────────────────────────────

    def get_item(self, key: str) -> str | None:
        """Return the stored value for *key*, or None."""
        row = self._conn.execute(
            "SELECT value FROM client_state WHERE key = ?", (key,),
        ).fetchone()
        return None if row is None else str(row[0])

    def set_item(self, key: str, value: str) -> None:
        """Insert or replace *key*."""
        self._conn.execute(
            "INSERT INTO client_state (key, value, updated_at) "
            "VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "value=excluded.value, updated_at=excluded.updated_at",
            (key, value, datetime.now().isoformat()),
        )
        self._conn.commit()

    def remove_item(self, key: str) -> None:
        """Delete *key* if present."""
        self._conn.execute(
            "DELETE FROM client_state WHERE key = ?", (key,),
        )
        self._conn.commit()

    def remove_prefix(self, prefix: str) -> int:
        """Delete every key starting with *prefix*; return the count."""
        escaped = (
            prefix.replace("\\", "\\\\")
            .replace("%", "\\%")
            .replace("_", "\\_")
        )
        cur = self._conn.execute(
            "DELETE FROM client_state WHERE key LIKE ? ESCAPE '\\'",
            (f"{escaped}%",),
        )
        self._conn.commit()
        return cur.rowcount

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys, optionally restricted to *prefix*."""
        rows = self._conn.execute(
            "SELECT key FROM client_state ORDER BY key",
        ).fetchall()
        return [str(r[0]) for r in rows if str(r[0]).startswith(prefix)]

    def clear(self) -> None:
        """Remove everything."""
        self._conn.execute("DELETE FROM client_state")
        self._conn.commit()

    # ── JSON values ──────────────────────────────────────

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON value at *key*; corrupt values are dropped."""
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(
                "Dropping unparseable stored value for key '%s'", key,
            )
            self.remove_item(key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        """Encode *value* as JSON and store it."""
        self.set_item(key, json.dumps(value, ensure_ascii=False))
