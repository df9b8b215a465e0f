# services/storage.py
from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from config import settings

logger = logging.getLogger(__name__)

# explicit override; None means settings.database_path, read on every call
DB_PATH: Optional[Path] = None


class AlreadyFavouriteError(ValueError):
    pass


# ---------- DB helpers ----------

def db_path() -> Path:
    return Path(DB_PATH) if DB_PATH is not None else Path(settings.database_path)


def _connect() -> sqlite3.Connection:
    conn = sqlite3.connect(db_path())
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    db_path().parent.mkdir(parents=True, exist_ok=True)
    with _connect() as conn:
        cur = conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            display_name TEXT
        )
        """)
        # one row per (user, grouped event id)
        cur.execute("""
        CREATE TABLE IF NOT EXISTS favourites (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            event_id TEXT NOT NULL,
            event_data TEXT NOT NULL,      -- JSON event card
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (user_id, event_id)
        )
        """)
        conn.commit()


# ---------- Users ----------

def upsert_user(user_id: str, display_name: Optional[str]) -> None:
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO users (user_id, display_name)
            VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET display_name=excluded.display_name
            """,
            (user_id, display_name),
        )
        conn.commit()


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    with _connect() as conn:
        row = conn.execute(
            "SELECT user_id, display_name FROM users WHERE user_id=?", (user_id,)
        ).fetchone()
        if not row:
            return None
        return {"user_id": row["user_id"], "display_name": row["display_name"]}


# ---------- Favourites ----------

def add_favourite(user_id: str, event: Dict[str, Any]) -> None:
    event_id = event.get("id")
    if not event_id:
        raise ValueError("event has no id")
    try:
        with _connect() as conn:
            conn.execute(
                """
                INSERT INTO favourites (user_id, event_id, event_data)
                VALUES (?, ?, ?)
                """,
                (user_id, event_id, json.dumps(event, ensure_ascii=False)),
            )
            conn.commit()
    except sqlite3.IntegrityError as exc:
        raise AlreadyFavouriteError("Event already in favourites") from exc


def remove_favourite(user_id: str, event_id: str) -> bool:
    with _connect() as conn:
        cur = conn.execute(
            "DELETE FROM favourites WHERE user_id=? AND event_id=?", (user_id, event_id)
        )
        conn.commit()
        return cur.rowcount > 0


def list_favourites(user_id: str, limit: int = 200) -> List[Dict[str, Any]]:
    with _connect() as conn:
        rows = conn.execute(
            """
            SELECT event_data FROM favourites WHERE user_id=?
            ORDER BY created_at DESC, id DESC LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
    out: List[Dict[str, Any]] = []
    for r in rows:
        try:
            out.append(json.loads(r["event_data"]))
        except json.JSONDecodeError:
            logger.warning("skipping unreadable favourite for user=%s", user_id)
    return out


def is_favourite(user_id: str, event_id: str) -> bool:
    with _connect() as conn:
        row = conn.execute(
            "SELECT 1 FROM favourites WHERE user_id=? AND event_id=?", (user_id, event_id)
        ).fetchone()
        return row is not None


def favourite_ids(user_id: str) -> Set[str]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT event_id FROM favourites WHERE user_id=?", (user_id,)
        ).fetchall()
        return {r["event_id"] for r in rows}
