"""
Associated backend: the encoded blob lives in a separate record keyed by the
owner's identity. The record is fetched at most once per owner instance and
cached; saves are written through immediately.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from typed_store.codec import decode_map, encode_map
from typed_store.core.errors import OwnerNotPersistedError
from typed_store.core.types import owner_identity

from .backend import Backend, storage_call
from .blob_store import BlobStore, get_blob_store

if TYPE_CHECKING:
    from typed_store.schema import StoreSchema

logger = logging.getLogger(__name__)

# Cache marker for "fetched, no record exists"
_MISSING = b""


class AssociatedBackend(Backend):
    """Lazily fetches and caches one record per owner instance."""

    def __init__(self) -> None:
        self._cached: Optional[bytes] = None
        self._fetched = False
        self.fetch_count = 0

    @property
    def fetched(self) -> bool:
        return self._fetched

    @property
    def record_exists(self) -> bool:
        return self._fetched and self._cached != _MISSING

    @staticmethod
    def blob_store_for(schema: "StoreSchema") -> BlobStore:
        return schema.backend.blob_store or get_blob_store()

    def prime(self, blob: Optional[bytes]) -> None:
        """Seed the cache from a batch fetch; None means no record exists."""
        self._cached = _MISSING if blob is None else bytes(blob)
        self._fetched = True

    def load(self, owner: Any, schema: "StoreSchema") -> Dict[str, Any]:
        if not self._fetched:
            owner_id = owner_identity(owner, schema.backend.owner_key)
            if owner_id is None:
                # Unsaved owner: no record can exist yet, and nothing is cached
                return {}
            with storage_call("load", schema):
                blob = self.blob_store_for(schema).fetch(schema.backend.location, owner_id)
            self.fetch_count += 1
            self.prime(blob)
            logger.debug(
                "Fetched %s record for %s %s (%s)",
                schema.backend.location,
                type(owner).__name__,
                owner_id,
                "found" if blob is not None else "absent",
            )
        return decode_map(self._cached, schema)

    def save(self, owner: Any, schema: "StoreSchema", values: Mapping[str, Any]) -> None:
        owner_id = owner_identity(owner, schema.backend.owner_key)
        if owner_id is None:
            raise OwnerNotPersistedError(
                f"Cannot write store '{schema.name}' for an unsaved {type(owner).__name__}: "
                f"'{schema.backend.owner_key}' is not set"
            )
        blob = encode_map(values, schema)
        with storage_call("save", schema):
            self.blob_store_for(schema).put(schema.backend.location, owner_id, blob)
        self.prime(blob)
        logger.debug("Wrote %d byte(s) to %s for %s %s", len(blob), schema.backend.location, type(owner).__name__, owner_id)

    def delete(self, owner: Any, schema: "StoreSchema") -> bool:
        """Remove the owner's record (cascade on owner destroy)."""
        owner_id = owner_identity(owner, schema.backend.owner_key)
        if owner_id is None:
            return False
        with storage_call("delete", schema):
            existed = self.blob_store_for(schema).delete(schema.backend.location, owner_id)
        self.prime(None)
        return existed

    def reset(self) -> None:
        self._cached = None
        self._fetched = False
