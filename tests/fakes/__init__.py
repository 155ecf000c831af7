"""Fake blob stores and host record tables for typed_store tests (no real I/O)."""

from .blob_stores import FakeBlobStore
from .records import FakeRecordTable, Post, make_post_type

__all__ = [
    "FakeBlobStore",
    "FakeRecordTable",
    "Post",
    "make_post_type",
]
