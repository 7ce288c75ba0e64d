# storage.py
import sqlite3
from datetime import datetime, timezone

DEFAULT_DB_PATH = "reminders.db"


class Storage:
    def __init__(self, db_path=DEFAULT_DB_PATH):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        # The dashboard and the CLI may have the same file open
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA synchronous=NORMAL;")

        self._init_schema()

    def _init_schema(self):
        # Latest snapshot, always a single row
        self.conn.execute("""
        CREATE TABLE IF NOT EXISTS snapshot (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            body TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """)

        # Config table
        self.conn.execute("""
        CREATE TABLE IF NOT EXISTS config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """)

        self.conn.commit()

    def close(self):
        self.conn.close()

    # ---------------- Snapshot helpers ----------------
    def load_snapshot(self):
        cur = self.conn.cursor()
        cur.execute("SELECT body FROM snapshot WHERE id=1")
        row = cur.fetchone()
        return row["body"] if row else None

    def save_snapshot(self, body):
        now = datetime.now(timezone.utc).isoformat()
        self.conn.execute("""
            INSERT INTO snapshot (id, body, updated_at)
            VALUES (1, ?, ?)
            ON CONFLICT(id) DO UPDATE SET body=excluded.body, updated_at=excluded.updated_at
        """, (body, now))
        self.conn.commit()

    def snapshot_updated_at(self):
        cur = self.conn.cursor()
        cur.execute("SELECT updated_at FROM snapshot WHERE id=1")
        row = cur.fetchone()
        return row["updated_at"] if row else None

    # ---------------- Config helpers ----------------
    def get_config(self, key, default=None):
        cur = self.conn.cursor()
        cur.execute("SELECT value FROM config WHERE key=?", (key,))
        row = cur.fetchone()
        return row["value"] if row else default

    def set_config(self, key, value):
        now = datetime.now(timezone.utc).isoformat()
        self.conn.execute("""
            INSERT INTO config (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
        """, (key, str(value), now))
        self.conn.commit()

    def list_config(self):
        cur = self.conn.cursor()
        cur.execute("SELECT key, value, updated_at FROM config ORDER BY key")
        return cur.fetchall()
