"""
BlobStore interface: key-addressable blob rows for associated stores.
One table per associated store; one row per owner (owner_id primary key).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

# Default blob store instance (set by get_blob_store)
_blob_store: Optional["BlobStore"] = None


class BlobStore(ABC):
    """Opaque storage for encoded attribute maps. Implementations may block on I/O."""

    @abstractmethod
    def fetch(self, table: str, owner_id: str) -> Optional[bytes]:
        """Return the blob for owner_id, or None if no record exists."""
        ...

    @abstractmethod
    def fetch_many(self, table: str, owner_ids: Iterable[str]) -> Dict[str, bytes]:
        """Return {owner_id: blob} for the owners that have a record."""
        ...

    @abstractmethod
    def put(self, table: str, owner_id: str, blob: bytes) -> None:
        """Create or replace the record for owner_id, committed immediately."""
        ...

    @abstractmethod
    def delete(self, table: str, owner_id: str) -> bool:
        """Remove the record for owner_id. Returns True if a record existed."""
        ...


def get_blob_store() -> BlobStore:
    """Return the current blob store. Defaults to SQLite at config.db_path()."""
    global _blob_store
    if _blob_store is None:
        from typed_store.config import db_path

        from .sqlite_blob_store import SQLiteBlobStore

        _blob_store = SQLiteBlobStore(db_path())
    return _blob_store


def set_blob_store(blob_store: Optional[BlobStore]) -> None:
    """Set the global blob store (None resets to the configured default on next use)."""
    global _blob_store
    _blob_store = blob_store
