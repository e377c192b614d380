"""
db.py
SQLite helpers + the key-value record store (users, attendance, income, backups)
and the admin accounts table.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

DB_FILE = Path(__file__).with_name("gym.db")

# Record store keys
USERS = "users"
ATTENDANCE = "attendance"
INCOME = "income"
LAST_BACKUP = "lastBackup"
AUTO_BACKUP_ENABLED = "autoBackupEnabled"
GYM_SYSTEM_BACKUP = "gymSystemBackup"

_MISSING = object()


@contextmanager
def get_conn(db_file: str | Path | None = None):
    conn = sqlite3.connect(db_file or DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = (), db_file: str | Path | None = None) -> int:
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def fetch_one(sql: str, params: tuple = (), db_file: str | Path | None = None):
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(sql: str, params: tuple = (), db_file: str | Path | None = None) -> list[sqlite3.Row]:
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def _create_tables(db_file: str | Path | None = None) -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS admin_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('admin','coach')),
            created_at TEXT NOT NULL
        )
        """,
        db_file=db_file,
    )

    # One row per store key; value is JSON text
    execute(
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        db_file=db_file,
    )


class RecordStore:
    """
    Key-value persistence over named keys. Values are JSON-serialized.

    Failures never propagate: reads fall back to the default, writes return False.
    There are no transactions across keys.
    """

    def __init__(self, db_file: str | Path | None = None):
        self.db_file = db_file or DB_FILE
        _create_tables(self.db_file)

    def get(self, key: str, default=_MISSING):
        if default is _MISSING:
            default = []
        try:
            row = fetch_one("SELECT value FROM kv_store WHERE key = ?", (key,), db_file=self.db_file)
            return json.loads(row["value"]) if row else default
        except (sqlite3.Error, ValueError):
            logger.exception("Could not load %s from the record store", key)
            return default

    def set(self, key: str, data) -> bool:
        try:
            payload = json.dumps(data, ensure_ascii=False)
            execute(
                """
                INSERT INTO kv_store(key, value, updated_at) VALUES(?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, payload, datetime.now().isoformat(timespec="seconds")),
                db_file=self.db_file,
            )
            return True
        except (sqlite3.Error, TypeError, ValueError):
            logger.exception("Could not save %s to the record store", key)
            return False

    def remove(self, key: str) -> bool:
        try:
            execute("DELETE FROM kv_store WHERE key = ?", (key,), db_file=self.db_file)
            return True
        except sqlite3.Error:
            logger.exception("Could not remove %s from the record store", key)
            return False

    def clear(self) -> bool:
        try:
            execute("DELETE FROM kv_store", db_file=self.db_file)
            return True
        except sqlite3.Error:
            logger.exception("Could not clear the record store")
            return False

    def keys(self) -> list[str]:
        rows = fetch_all("SELECT key FROM kv_store ORDER BY key", db_file=self.db_file)
        return [r["key"] for r in rows]


def init_db(db_file: str | Path | None = None) -> None:
    """Create the tables if they do not exist yet."""
    _create_tables(db_file)


def get_account(username: str, db_file: str | Path | None = None):
    return fetch_one("SELECT * FROM admin_users WHERE username = ?", (username,), db_file=db_file)


def insert_account(username: str, password_hash: str, role: str, db_file: str | Path | None = None) -> int:
    now = datetime.now().isoformat(timespec="seconds")
    return execute(
        "INSERT INTO admin_users(username, password_hash, role, created_at) VALUES(?,?,?,?)",
        (username, password_hash, role, now),
        db_file=db_file,
    )


def update_password_hash(username: str, password_hash: str, db_file: str | Path | None = None) -> None:
    execute(
        "UPDATE admin_users SET password_hash = ? WHERE username = ?",
        (password_hash, username),
        db_file=db_file,
    )
