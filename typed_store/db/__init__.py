"""
Database layer: DDL for the SQLite reference blob store.
"""

from __future__ import annotations

from .migrations import ensure_blob_table, run_migrations, table_exists

__all__ = ["ensure_blob_table", "run_migrations", "table_exists"]
