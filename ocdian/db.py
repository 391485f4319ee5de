"""SQLite storage layer: named key-value blobs plus the ERP session log."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from ocdian.config import get_db_path as _config_get_db_path
from ocdian.models import ErpSession, ErpSessionCreate

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS erp_sessions (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    challenge        TEXT    NOT NULL DEFAULT '',
    duration_seconds INTEGER NOT NULL,
    anxiety_before   INTEGER NOT NULL,
    anxiety_after    INTEGER,
    completed_at     TEXT    NOT NULL
);
"""


def _get_db_path() -> Path:
    """Return the database file path from config (or default)."""
    return _config_get_db_path()


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a connection and ensure the schema exists."""
    path = db_path or _get_db_path()
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.executescript(_SCHEMA)
    return conn


# ---------------------------------------------------------------------------
# Key-value blobs
# ---------------------------------------------------------------------------


def get_blob(conn: sqlite3.Connection, key: str) -> Optional[str]:
    """Return the blob stored under *key*, or None."""
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def put_blob(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Store *value* under *key*, replacing any previous blob."""
    conn.execute(
        """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
           ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                          updated_at = excluded.updated_at""",
        (key, value, datetime.now().isoformat()),
    )
    conn.commit()


# ---------------------------------------------------------------------------
# ERP sessions
# ---------------------------------------------------------------------------


def _row_to_erp_session(row: sqlite3.Row) -> ErpSession:
    """Convert a database row to an ErpSession model."""
    return ErpSession(
        id=row["id"],
        challenge=row["challenge"],
        duration_seconds=row["duration_seconds"],
        anxiety_before=row["anxiety_before"],
        anxiety_after=row["anxiety_after"],
        completed_at=datetime.fromisoformat(row["completed_at"]),
    )


def log_erp_session(conn: sqlite3.Connection, session_in: ErpSessionCreate) -> ErpSession:
    """Record a completed exposure session and return it."""
    now = datetime.now().isoformat()
    cur = conn.execute(
        "INSERT INTO erp_sessions "
        "(challenge, duration_seconds, anxiety_before, anxiety_after, completed_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (
            session_in.challenge,
            session_in.duration_seconds,
            session_in.anxiety_before,
            session_in.anxiety_after,
            now,
        ),
    )
    conn.commit()
    row = conn.execute(
        "SELECT * FROM erp_sessions WHERE id = ?", (cur.lastrowid,)
    ).fetchone()
    return _row_to_erp_session(row)


def list_erp_sessions(conn: sqlite3.Connection, limit: int = 20) -> list[ErpSession]:
    """List past exposure sessions, most recent first."""
    rows = conn.execute(
        "SELECT * FROM erp_sessions ORDER BY completed_at DESC, id DESC LIMIT ?",
        (limit,),
    ).fetchall()
    return [_row_to_erp_session(r) for r in rows]
