"""
Inline backend: blob read from and staged into the owner's own column.
"""

from __future__ import annotations

import pytest

from typed_store.core.errors import BackendUnavailableError, DecodeError
from typed_store.schema import BackendConfig, SchemaRegistry, StorageMode
from typed_store.store.backend import backend_for
from typed_store.store.inline_backend import InlineBackend


class Row:
    def __init__(self, prefs=None):
        self.id = 1
        self.prefs = prefs
        self.dirty = []

    def mark_dirty(self, column):
        self.dirty.append(column)


class PlainRow:
    prefs = None


def _schema(owner_type=Row):
    def build(s):
        s.string("theme", default="light")
        s.integer("limit")

    return SchemaRegistry().define(owner_type, "prefs", BackendConfig(StorageMode.INLINE, "prefs"), build)


def test_backend_for_selects_inline():
    assert isinstance(backend_for(_schema()), InlineBackend)


def test_load_empty_column_is_empty_map():
    assert InlineBackend().load(Row(), _schema()) == {}
    assert InlineBackend().load(Row(prefs=b""), _schema()) == {}


def test_load_decodes_column():
    assert InlineBackend().load(Row(prefs='{"limit":3}'), _schema()) == {"limit": 3}


def test_load_malformed_column_raises_decode_error():
    with pytest.raises(DecodeError):
        InlineBackend().load(Row(prefs=b"{oops"), _schema())


def test_save_stages_blob_and_marks_column_dirty():
    row = Row()
    InlineBackend().save(row, _schema(), {"theme": "dark"})
    assert row.prefs == b'{"theme":"dark"}'
    assert row.dirty == ["prefs"]


def test_save_without_mark_dirty_hook():
    row = PlainRow()
    InlineBackend().save(row, _schema(PlainRow), {"limit": 1})
    assert row.prefs == b'{"limit":1}'


def test_failing_column_read_surfaces_backend_error():
    class Broken:
        @property
        def prefs(self):
            raise OSError("row detached")

    with pytest.raises(BackendUnavailableError) as exc_info:
        InlineBackend().load(Broken(), _schema(Broken))
    assert isinstance(exc_info.value.__cause__, OSError)
