"""
SQLite-backed document store.

The relational deployment keeps the same document-per-collection
shape as the GitHub one: the ``documents`` table holds the current
JSON text and content hash of each path, and ``document_history``
keeps every committed version with its commit message.  Conditional
writes are a single ``UPDATE ... WHERE sha = ?`` (or an ``INSERT``
for a new document), so SQLite serialises concurrent writers and the
loser sees zero affected rows.

A new connection is opened per call and closed afterwards; no
connection is shared between requests.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import List, Optional

from .errors import ConflictError, UpstreamUnavailableError
from .store import CollectionSnapshot, Record, content_token, decode_records, encode_records

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    path TEXT PRIMARY KEY,
    content TEXT NOT NULL,
    sha TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS document_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT NOT NULL,
    sha TEXT NOT NULL,
    message TEXT,
    content TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteBlobStore:
    """Documents stored as rows of a local SQLite database."""

    def __init__(self, database_path: str) -> None:
        if not os.path.isabs(database_path):
            database_path = str(Path(database_path).resolve())
        self.database_path = database_path
        self.init_db()

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new connection with name-addressable rows."""
        conn = sqlite3.connect(self.database_path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the tables if this is a fresh database file."""
        conn = self.get_connection()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def read(self, path: str) -> CollectionSnapshot:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT content, sha FROM documents WHERE path = ?",
                (path,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise UpstreamUnavailableError(f"Could not read {path}", error=str(exc)) from exc
        finally:
            conn.close()
        if row is None:
            return CollectionSnapshot()
        return CollectionSnapshot(
            records=decode_records(row["content"].encode("utf-8"), path),
            token=row["sha"],
        )

    def write(self, path: str, records: List[Record], token: Optional[str], message: str) -> str:
        raw = encode_records(records)
        new_sha = content_token(raw)
        content = raw.decode("utf-8")
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            if token is None:
                cursor.execute(
                    "INSERT INTO documents (path, content, sha) VALUES (?, ?, ?)",
                    (path, content, new_sha),
                )
            else:
                cursor.execute(
                    """
                    UPDATE documents
                    SET content = ?, sha = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE path = ? AND sha = ?
                    """,
                    (content, new_sha, path, token),
                )
                if cursor.rowcount == 0:
                    conn.rollback()
                    raise ConflictError(f"Document {path} changed since it was read")
            cursor.execute(
                "INSERT INTO document_history (path, sha, message, content) VALUES (?, ?, ?, ?)",
                (path, new_sha, message, content),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ConflictError(f"Document {path} was created concurrently") from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise UpstreamUnavailableError(f"Could not write {path}", error=str(exc)) from exc
        finally:
            conn.close()
        logger.info("Committed %s (%d records) as %s", path, len(records), new_sha)
        return new_sha

    def history(self, path: str) -> List[dict]:
        """Return the committed versions of ``path``, oldest first."""
        conn = self.get_connection()
        try:
            rows = conn.execute(
                "SELECT sha, message, created_at FROM document_history WHERE path = ? ORDER BY id ASC",
                (path,),
            ).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()

    def close(self) -> None:
        pass
