"""
Store: backend adapters (inline / associated) and blob storage primitives.
No schema logic. SQLite is the default blob store for associated stores.
"""

from __future__ import annotations

from .associated_backend import AssociatedBackend
from .backend import Backend, backend_for
from .blob_store import BlobStore, get_blob_store, set_blob_store
from .inline_backend import InlineBackend
from .sqlite_blob_store import SQLiteBlobStore

__all__ = [
    "AssociatedBackend",
    "Backend",
    "BlobStore",
    "InlineBackend",
    "SQLiteBlobStore",
    "backend_for",
    "get_blob_store",
    "set_blob_store",
]
