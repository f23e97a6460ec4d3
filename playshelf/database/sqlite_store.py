"""
SQLite-backed slot store.

Primary backend with the same interface as JSONStore:
    load_all(), write(key, value), close()

Benefits over JSONStore:
    - Row-level writes (one slot per row, no full-document rewrite)
    - ACID guarantees: a crash mid-write never leaves a torn document
"""
import json
import os
import sqlite3
import time
from typing import Any, Dict, Optional

from ..config import log


class SQLiteStore:
    """
    One row per slot, value serialised as JSON text.
    Auto-commits on every write.
    """
    name = "sqlite"

    def __init__(self, db_file: str, legacy_json_file: Optional[str] = None):
        self.db_file = db_file
        self.legacy_json_file = legacy_json_file
        self._conn: Optional[sqlite3.Connection] = None
        try:
            self._ensure_connection()
            self._migrate_from_json()
        except Exception:
            self.close()
            raise

    def _ensure_connection(self) -> None:
        """Open the connection and create the schema. Raises if SQLite is unusable."""
        if self._conn is not None:
            return

        os.makedirs(os.path.dirname(self.db_file) or ".", exist_ok=True)
        self._conn = sqlite3.connect(
            self.db_file,
            check_same_thread=False,
            isolation_level=None,  # autocommit
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS slots (
                slot TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at INTEGER DEFAULT 0
            )
        """)

    # ------------------------------------------------------------------
    # Public interface (matches JSONStore)
    # ------------------------------------------------------------------

    def load_all(self) -> Dict[str, Any]:
        """Every slot in the table; rows that fail to decode are skipped."""
        self._ensure_connection()
        data: Dict[str, Any] = {}
        for row in self._conn.execute("SELECT slot, value FROM slots"):
            try:
                data[row["slot"]] = json.loads(row["value"])
            except (TypeError, ValueError) as e:
                log(f"⚠️ Skipping corrupted slot {row['slot']}: {e}")
        return data

    def write(self, key: str, value: Any) -> None:
        self._ensure_connection()
        payload = json.dumps(value, ensure_ascii=False)
        self._conn.execute(
            "INSERT OR REPLACE INTO slots (slot, value, updated_at) VALUES (?, ?, ?)",
            (key, payload, int(time.time())),
        )

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _migrate_from_json(self) -> None:
        """One-time import of a fallback settings.json into an empty table."""
        if not self.legacy_json_file or not os.path.exists(self.legacy_json_file):
            return

        count = self._conn.execute("SELECT COUNT(*) FROM slots").fetchone()[0]
        if count > 0:
            return

        try:
            with open(self.legacy_json_file, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except (OSError, ValueError) as e:
            log(f"⚠️ Could not read {self.legacy_json_file} for migration: {e}")
            return

        if not isinstance(raw_data, dict) or not raw_data:
            return

        log("📦 Migrating JSON store → SQLite...")
        self._conn.execute("BEGIN")
        try:
            for key, value in raw_data.items():
                self.write(key, value)
            self._conn.execute("COMMIT")
        except Exception as e:
            self._conn.execute("ROLLBACK")
            log(f"❌ Migration failed: {e}")
            return

        bak_path = self.legacy_json_file + ".bak"
        try:
            os.replace(self.legacy_json_file, bak_path)
            log(f"📁 JSON store backed up to {os.path.basename(bak_path)}")
        except OSError as e:
            log(f"⚠️ Could not rename JSON store: {e}")
