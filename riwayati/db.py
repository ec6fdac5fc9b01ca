"""Database helpers for the novel service.

Novels and their chapters live in an SQLite database with two tables,
``novels`` and ``chapters``. Every helper takes an open connection as
its first argument; the HTTP layer opens one connection per request
(see ``riwayati.main.get_db``) so that nothing here depends on a
process-wide handle. Writes are committed immediately.

Chapters reference their novel through a foreign key declared with
``ON DELETE CASCADE``. SQLite only enforces foreign keys when the
``foreign_keys`` pragma is on, which ``connect()`` takes care of; use it
rather than ``sqlite3.connect`` directly.

``order_index`` is an advisory sort key. It is neither unique nor
renumbered when a chapter is deleted, so consumers must sort by the
field and tolerate gaps.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional


def connect(db_path: str) -> sqlite3.Connection:
    """Return a new SQLite connection with dict-like rows and foreign keys on.

    ``check_same_thread`` is disabled because FastAPI may open the
    connection in a worker thread and use it from the event loop. A
    connection is still only ever used by one request at a time.
    """
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create the ``novels`` and ``chapters`` tables if they do not exist.

    Idempotent: it can be called on every startup without harming
    existing data.
    """
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS novels (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL CHECK (length(trim(title)) > 0),
            author TEXT,
            description TEXT,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS chapters (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            novel_id INTEGER,
            title TEXT NOT NULL,
            content TEXT,
            order_index INTEGER,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (novel_id) REFERENCES novels(id) ON DELETE CASCADE
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_chapters_novel_id ON chapters(novel_id)")
    conn.commit()


def create_novel(conn: sqlite3.Connection, title: Optional[str], author: Optional[str] = None,
                 description: Optional[str] = None) -> int:
    """Insert a novel and return its new id.

    A missing or blank ``title`` violates the table constraints and
    raises ``sqlite3.IntegrityError``.
    """
    cur = conn.cursor()
    cur.execute(
        "INSERT INTO novels (title, author, description) VALUES (?, ?, ?)",
        (title, author, description),
    )
    conn.commit()
    return cur.lastrowid


def list_novels(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    """Return all novels, most recently created first, without chapters."""
    cur = conn.execute("SELECT * FROM novels ORDER BY created_at DESC, id DESC")
    return [dict(row) for row in cur.fetchall()]


def get_chapters(conn: sqlite3.Connection, novel_id: int) -> List[Dict[str, Any]]:
    """Return all chapters for a novel, ordered by ``order_index``."""
    cur = conn.execute(
        "SELECT * FROM chapters WHERE novel_id = ? ORDER BY order_index ASC, id ASC",
        (novel_id,),
    )
    return [dict(row) for row in cur.fetchall()]


def get_novel(conn: sqlite3.Connection, novel_id: int) -> Optional[Dict[str, Any]]:
    """Return the novel with its ``chapters`` list, or None if absent."""
    row = conn.execute("SELECT * FROM novels WHERE id = ?", (novel_id,)).fetchone()
    if row is None:
        return None
    novel = dict(row)
    novel["chapters"] = get_chapters(conn, novel_id)
    return novel


def delete_novel(conn: sqlite3.Connection, novel_id: int) -> int:
    """Delete a novel and, through the cascade, all of its chapters.

    Returns the number of novel rows removed; an unknown id removes
    nothing and is not an error.
    """
    cur = conn.execute("DELETE FROM novels WHERE id = ?", (novel_id,))
    conn.commit()
    return cur.rowcount


def create_chapter(conn: sqlite3.Connection, novel_id: int, title: Optional[str],
                   content: Optional[str], order_index: Optional[int]) -> int:
    """Insert a chapter and return its new id.

    Raises ``sqlite3.IntegrityError`` when ``novel_id`` does not name an
    existing novel or ``title`` is missing. ``order_index`` is stored
    as given; no uniqueness is checked.
    """
    cur = conn.cursor()
    cur.execute(
        "INSERT INTO chapters (novel_id, title, content, order_index) VALUES (?, ?, ?, ?)",
        (novel_id, title, content, order_index),
    )
    conn.commit()
    return cur.lastrowid


def get_chapter(conn: sqlite3.Connection, chapter_id: int) -> Optional[Dict[str, Any]]:
    """Return a chapter row as a dict, or None if absent."""
    row = conn.execute("SELECT * FROM chapters WHERE id = ?", (chapter_id,)).fetchone()
    return dict(row) if row else None


def update_chapter(conn: sqlite3.Connection, chapter_id: int, title: Optional[str],
                   content: Optional[str]) -> int:
    """Overwrite a chapter's title and content.

    Both fields are replaced; this is not a patch. ``order_index`` and
    ``created_at`` are left alone. Returns the number of rows changed.
    """
    cur = conn.execute(
        "UPDATE chapters SET title = ?, content = ? WHERE id = ?",
        (title, content, chapter_id),
    )
    conn.commit()
    return cur.rowcount


def delete_chapter(conn: sqlite3.Connection, chapter_id: int) -> int:
    """Delete a single chapter. Sibling ``order_index`` values are not touched."""
    cur = conn.execute("DELETE FROM chapters WHERE id = ?", (chapter_id,))
    conn.commit()
    return cur.rowcount
