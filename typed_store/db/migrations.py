"""
Idempotent DDL for associated-store tables.

All schema changes use CREATE TABLE IF NOT EXISTS so they can be re-run
safely at any time.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable

from typed_store.schema import validate_identifier

logger = logging.getLogger(__name__)


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name = ?", (table,))
    return cur.fetchone() is not None


def ensure_blob_table(conn: sqlite3.Connection, table: str) -> None:
    """Create one associated-store table: one row per owner, one blob column."""
    validate_identifier(table, "table")
    if table_exists(conn, table):
        return
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            owner_id TEXT PRIMARY KEY,
            data BLOB,
            updated_at_utc TEXT
        );
        """
    )
    logger.debug("Created associated store table %s", table)


def run_migrations(conn: sqlite3.Connection, tables: Iterable[str]) -> None:
    """
    Apply table DDL for every associated store idempotently.

    Safe to call on every startup: only creates what's missing.
    """
    for table in tables:
        ensure_blob_table(conn, table)
    conn.commit()
