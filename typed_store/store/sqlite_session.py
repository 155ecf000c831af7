"""
SQLite connection lifecycle for the blob store and CLI.
Connections are opened per call and always closed, so a store file can be
moved or deleted as soon as a call returns.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Union


@contextmanager
def sqlite_conn(
    db_path: Union[str, Path],
    *,
    timeout: float = 5.0,
    create_parent: bool = True,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Yield a connection with foreign_keys=ON; closed on exit, rolled back on error.
    timeout bounds how long a write waits on another writer's lock.
    """
    path = Path(db_path).expanduser().resolve()
    if create_parent:
        path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=timeout)
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        yield conn
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
