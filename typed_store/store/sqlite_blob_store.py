"""
SQLite blob store: default storage for associated stores.
One connection per call; every put/delete commits before returning.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Set, Union

from typed_store.db.migrations import ensure_blob_table
from typed_store.schema import validate_identifier

from .blob_store import BlobStore
from .sqlite_session import sqlite_conn

logger = logging.getLogger(__name__)

# SQLite default SQLITE_MAX_VARIABLE_NUMBER on older builds
_FETCH_CHUNK = 500


class SQLiteBlobStore(BlobStore):
    """
    BlobStore over a SQLite file. Tables are created on first use.
    clock supplies updated_at_utc; pass a fixed one for reproducible rows.
    """

    def __init__(self, db_path: Union[str, Path], clock: Optional[Callable[[], datetime]] = None) -> None:
        self.db_path = str(db_path)
        self.clock = clock or _utc_now
        self._ready: Set[str] = set()

    def _stamp(self) -> str:
        """updated_at_utc value: UTC, second precision, Z suffix."""
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    def _prepare(self, conn: sqlite3.Connection, table: str) -> None:
        if table in self._ready:
            return
        ensure_blob_table(conn, table)
        conn.commit()
        self._ready.add(table)

    def fetch(self, table: str, owner_id: str) -> Optional[bytes]:
        validate_identifier(table, "table")
        with sqlite_conn(self.db_path) as conn:
            self._prepare(conn, table)
            cur = conn.execute(f"SELECT data FROM {table} WHERE owner_id = ?", (str(owner_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return _as_bytes(row[0])

    def fetch_many(self, table: str, owner_ids: Iterable[str]) -> Dict[str, bytes]:
        validate_identifier(table, "table")
        ids = list(dict.fromkeys(str(i) for i in owner_ids))
        out: Dict[str, bytes] = {}
        if not ids:
            return out
        with sqlite_conn(self.db_path) as conn:
            self._prepare(conn, table)
            for start in range(0, len(ids), _FETCH_CHUNK):
                chunk = ids[start : start + _FETCH_CHUNK]
                placeholders = ", ".join("?" for _ in chunk)
                cur = conn.execute(
                    f"SELECT owner_id, data FROM {table} WHERE owner_id IN ({placeholders})",
                    chunk,
                )
                for owner_id, data in cur.fetchall():
                    out[owner_id] = _as_bytes(data)
        logger.debug("Fetched %d/%d record(s) from %s", len(out), len(ids), table)
        return out

    def put(self, table: str, owner_id: str, blob: bytes) -> None:
        validate_identifier(table, "table")
        with sqlite_conn(self.db_path) as conn:
            self._prepare(conn, table)
            conn.execute(
                f"""
                INSERT INTO {table} (owner_id, data, updated_at_utc)
                VALUES (?, ?, ?)
                ON CONFLICT(owner_id) DO UPDATE SET
                    data = excluded.data,
                    updated_at_utc = excluded.updated_at_utc;
                """,
                (str(owner_id), sqlite3.Binary(blob), self._stamp()),
            )
            conn.commit()

    def delete(self, table: str, owner_id: str) -> bool:
        validate_identifier(table, "table")
        with sqlite_conn(self.db_path) as conn:
            self._prepare(conn, table)
            cur = conn.execute(f"DELETE FROM {table} WHERE owner_id = ?", (str(owner_id),))
            conn.commit()
            return cur.rowcount > 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_bytes(data: object) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)
