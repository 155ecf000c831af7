"""
Backend interface: load/save one store's attribute map for one owner.
Two variants selected by StorageMode at schema definition time (see backend_for).
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping

from typed_store.core.errors import BackendUnavailableError

if TYPE_CHECKING:
    from typed_store.schema import StoreSchema

# Storage failures surfaced as BackendUnavailableError
STORAGE_ERRORS = (sqlite3.Error, OSError, ConnectionError)


@contextmanager
def storage_call(operation: str, schema: "StoreSchema") -> Iterator[None]:
    """Convert storage-layer failures into BackendUnavailableError (cause chained, no retry)."""
    try:
        yield
    except STORAGE_ERRORS as exc:
        raise BackendUnavailableError(
            f"{operation} failed for store '{schema.name}' ({schema.backend.location}): {exc}"
        ) from exc


class Backend(ABC):
    """
    One adapter per AttributeStore, so per-owner caches live with the store.
    """

    @abstractmethod
    def load(self, owner: Any, schema: "StoreSchema") -> Dict[str, Any]:
        """Return the persisted attribute map for owner ({} when nothing is stored)."""
        ...

    @abstractmethod
    def save(self, owner: Any, schema: "StoreSchema", values: Mapping[str, Any]) -> None:
        """Encode values and write (or stage) them for owner."""
        ...

    def reset(self) -> None:
        """Forget any per-owner cache. Default: nothing cached."""
        return None


def backend_for(schema: "StoreSchema") -> Backend:
    """Instantiate the adapter for schema's storage mode."""
    from typed_store.schema import StorageMode

    from .associated_backend import AssociatedBackend
    from .inline_backend import InlineBackend

    backends = {
        StorageMode.INLINE: InlineBackend,
        StorageMode.ASSOCIATED: AssociatedBackend,
    }
    return backends[schema.backend.mode]()
