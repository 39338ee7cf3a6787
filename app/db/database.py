from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from app.config import settings

def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn

@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    conn = _connect(settings.DB_PATH)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

def _try_add_column(conn: sqlite3.Connection, table: str, col_def: str) -> None:
    """Add a column to an existing table, ignoring 'duplicate column'."""
    try:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {col_def};")
    except sqlite3.OperationalError:
        pass

def init_db() -> None:
    settings.DB_PATH.parent.mkdir(parents=True, exist_ok=True)

    with get_conn() as conn:
        # ---- Users ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                password_hash TEXT NOT NULL,
                display_name TEXT NOT NULL DEFAULT '',
                email_confirmed INTEGER NOT NULL DEFAULT 1,
                confirmation_token TEXT,
                created_at TEXT NOT NULL
            );
            """
        )

        # ---- Sessions ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                token TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        # ---- History ----
        # The optional media/provenance columns were added after the first
        # release; older databases gain them here.
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                word TEXT NOT NULL,
                meaning TEXT NOT NULL DEFAULT '',
                type TEXT NOT NULL DEFAULT '',
                explanation TEXT NOT NULL DEFAULT '',
                example TEXT NOT NULL DEFAULT '',
                example_cn TEXT NOT NULL DEFAULT '',
                tags TEXT NOT NULL DEFAULT '[]',
                phonetic TEXT NOT NULL DEFAULT '',
                timestamp TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )
        _try_add_column(conn, "history", "audio_url TEXT")
        _try_add_column(conn, "history", "image_url TEXT")
        _try_add_column(conn, "history", "is_ai INTEGER NOT NULL DEFAULT 0")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_user_time ON history(user_id, timestamp);"
        )
