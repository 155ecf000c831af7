"""
Inline backend: the encoded blob lives in one column of the owner's own row.
save() only stages the value on the owner; the host's save writes it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping

from typed_store.codec import decode_map, encode_map

from .backend import Backend, storage_call

if TYPE_CHECKING:
    from typed_store.schema import StoreSchema

logger = logging.getLogger(__name__)


class InlineBackend(Backend):
    """Reads/writes the owner attribute named by schema.backend.location."""

    def load(self, owner: Any, schema: "StoreSchema") -> Dict[str, Any]:
        column = schema.backend.location
        with storage_call("load", schema):
            blob = getattr(owner, column, None)
        return decode_map(blob, schema)

    def save(self, owner: Any, schema: "StoreSchema", values: Mapping[str, Any]) -> None:
        column = schema.backend.location
        blob = encode_map(values, schema)
        setattr(owner, column, blob)
        mark_dirty = getattr(owner, "mark_dirty", None)
        if callable(mark_dirty):
            mark_dirty(column)
        logger.debug("Staged %d byte(s) into %s.%s", len(blob), type(owner).__name__, column)
