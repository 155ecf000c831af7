"""
Commit coordinator: flushes every store of an owner from the host's save lifecycle.

Ordering on save:
  1. associated stores of an owner that already has an identity are written
     (separate storage, committed immediately, best effort before the row write)
  2. inline stores are staged onto the owner so the host writes blob and row together
  3. after the row write, associated stores deferred because the owner had no
     identity yet are written

Associated writes are not atomic with the owner row. Any divergence between
them is raised as PartialCommitError, never swallowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List

from typed_store.core.errors import BackendUnavailableError, PartialCommitError
from typed_store.core.types import owner_identity
from typed_store.declare import instantiated_stores
from typed_store.schema import StorageMode
from typed_store.store.associated_backend import AssociatedBackend

if TYPE_CHECKING:
    from typed_store.attribute_store import AttributeStore
    from typed_store.lifecycle import LifecycleHooks
    from typed_store.schema import SchemaRegistry

logger = logging.getLogger(__name__)

# Instance attribute holding associated stores deferred until after_save
_DEFERRED_ATTR = "_typed_store_deferred"


class CommitCoordinator:
    """Glue between the owner lifecycle hooks and the owner's AttributeStores."""

    def __init__(self, registry: "SchemaRegistry") -> None:
        self.registry = registry

    def subscribe(self, hooks: "LifecycleHooks") -> None:
        hooks.on_before_save(self.before_save)
        hooks.on_after_save(self.after_save)
        hooks.on_after_reload(self.after_reload)
        hooks.on_after_destroy(self.after_destroy)

    def _stores(self, owner: Any) -> List["AttributeStore"]:
        stores = instantiated_stores(owner)
        return [stores[s.name] for s in self.registry.schemas_for(type(owner)) if s.name in stores]

    @staticmethod
    def _write_associated(stores: List["AttributeStore"], committed: List[str], message: str, always_partial: bool) -> None:
        for store in stores:
            try:
                if store.commit():
                    committed.append(store.name)
            except BackendUnavailableError as exc:
                if committed or always_partial:
                    raise PartialCommitError(committed, [store.name], message) from exc
                raise

    def before_save(self, owner: Any) -> List[str]:
        """Commit associated stores, then stage inline ones. Returns associated stores written."""
        committed: List[str] = []
        deferred: List["AttributeStore"] = []
        ready: List["AttributeStore"] = []
        inline: List["AttributeStore"] = []
        for store in self._stores(owner):
            if not store.dirty:
                continue
            backend = store.schema.backend
            if backend.mode is StorageMode.INLINE:
                inline.append(store)
            elif owner_identity(owner, backend.owner_key) is None:
                deferred.append(store)
            else:
                ready.append(store)

        self._write_associated(ready, committed, "Associated store write failed before owner save", False)
        for store in inline:
            store.commit()
        owner.__dict__[_DEFERRED_ATTR] = deferred
        if committed or inline:
            logger.debug(
                "before_save %s: associated=%s inline=%s deferred=%s",
                type(owner).__name__,
                committed,
                [s.name for s in inline],
                [s.name for s in deferred],
            )
        return committed

    def after_save(self, owner: Any) -> List[str]:
        """Write associated stores deferred until the owner had an identity. The owner row is already committed."""
        deferred = owner.__dict__.pop(_DEFERRED_ATTR, [])
        committed: List[str] = []
        self._write_associated(deferred, committed, "Associated store write failed after owner save", True)
        return committed

    def save(self, owner: Any, write_row: Callable[[Any], Any]) -> Any:
        """Run before_save, write_row(owner) and after_save as one host save."""
        committed = self.before_save(owner)
        try:
            result = write_row(owner)
        except Exception as exc:
            owner.__dict__.pop(_DEFERRED_ATTR, None)
            if committed:
                raise PartialCommitError(committed, ["<owner row>"], "Owner row write failed after associated stores were written") from exc
            raise
        self.after_save(owner)
        return result

    def after_reload(self, owner: Any) -> None:
        """Discard pending writes on every instantiated store of owner."""
        for store in self._stores(owner):
            store.discard()
        owner.__dict__.pop(_DEFERRED_ATTR, None)

    def after_destroy(self, owner: Any) -> List[str]:
        """Delete the owner's associated records. Returns stores whose record existed."""
        removed: List[str] = []
        for schema in self.registry.schemas_for(type(owner)):
            if schema.backend.mode is not StorageMode.ASSOCIATED:
                continue
            if AssociatedBackend().delete(owner, schema):
                removed.append(schema.name)
        for store in self._stores(owner):
            store.discard()
        return removed
