"""
AttributeStore: per-owner view over one named store.

Reads resolve pending -> persisted -> default. Writes are coerced, validated and
buffered in the pending overlay until commit(); discard() drops them. Not
synchronized: one store belongs to one owner instance on one thread.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from typed_store.codec import coerce, validate_allowed
from typed_store.core.errors import UnknownAttributeError
from typed_store.core.types import OwnerView
from typed_store.store.backend import Backend, backend_for

if TYPE_CHECKING:
    from typed_store.schema import AttributeDefinition, StoreSchema

logger = logging.getLogger(__name__)


def resolve_default(definition: "AttributeDefinition", owner: Any) -> Any:
    """Literal default, or the default function evaluated against a read-only view of owner."""
    default = definition.default
    if default is None:
        return None
    if callable(default):
        return coerce(default(OwnerView(owner)), definition.type, attribute=definition.name)
    return default


class AttributeStore:
    """Typed key/value view bound to exactly one owner instance and one schema."""

    def __init__(self, owner: Any, schema: "StoreSchema", backend: Optional[Backend] = None) -> None:
        self.owner = owner
        self.schema = schema
        self.backend = backend if backend is not None else backend_for(schema)
        self._persisted: Dict[str, Any] = {}
        self._pending: Dict[str, Any] = {}
        self._loaded = False

    def __repr__(self) -> str:
        state = "loaded" if self._loaded else "unloaded"
        return f"<AttributeStore {self.schema.name} of {type(self.owner).__name__} ({state}, {len(self._pending)} pending)>"

    # ------------------------------------------------------------------ #
    # state
    # ------------------------------------------------------------------ #
    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def dirty(self) -> bool:
        return bool(self._pending)

    @property
    def pending(self) -> Dict[str, Any]:
        return dict(self._pending)

    @property
    def persisted(self) -> Dict[str, Any]:
        return dict(self._persisted)

    def _definition(self, name: str) -> "AttributeDefinition":
        try:
            return self.schema.attributes[name]
        except KeyError:
            raise UnknownAttributeError(self.schema.name, name) from None

    # ------------------------------------------------------------------ #
    # hydration
    # ------------------------------------------------------------------ #
    def ensure_loaded(self) -> None:
        """Hydrate the persisted layer from the backend once."""
        if self._loaded:
            return
        values = self.backend.load(self.owner, self.schema)
        self._persisted = dict(values)
        self._loaded = True
        logger.debug("Hydrated %r with %d stored key(s)", self, len(values))

    def hydrate(self, values: Mapping[str, Any]) -> None:
        """Install an already-fetched persisted snapshot (batch prefetch). Pending edits are kept."""
        self._persisted = dict(values)
        self._loaded = True

    # ------------------------------------------------------------------ #
    # reads / writes
    # ------------------------------------------------------------------ #
    def get(self, name: str) -> Any:
        definition = self._definition(name)
        self.ensure_loaded()
        if name in self._pending:
            return self._pending[name]
        if name in self._persisted:
            return self._persisted[name]
        return resolve_default(definition, self.owner)

    def truthy(self, name: str) -> bool:
        """Boolean form of get(name): None and falsy values are False."""
        return bool(self.get(name))

    def set(self, name: str, raw: Any) -> Any:
        """Coerce, validate and buffer a write. Returns the coerced value; pending is unchanged on error."""
        definition = self._definition(name)
        value = coerce(raw, definition.type, attribute=name)
        validate_allowed(value, definition.allowed, attribute=name)
        self._pending[name] = value
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Resolved value of every schema attribute, in declaration order."""
        return {name: self.get(name) for name in self.schema.attributes}

    def changes(self) -> Dict[str, Tuple[Any, Any]]:
        """{name: (value before the pending write, pending value)} for every pending key."""
        if not self._pending:
            return {}
        self.ensure_loaded()
        out: Dict[str, Tuple[Any, Any]] = {}
        for name, new in self._pending.items():
            if name in self._persisted:
                old = self._persisted[name]
            else:
                old = resolve_default(self.schema.attributes[name], self.owner)
            out[name] = (old, new)
        return out

    # ------------------------------------------------------------------ #
    # commit / discard
    # ------------------------------------------------------------------ #
    def merged(self) -> Dict[str, Any]:
        """Persisted values overridden by pending ones (plus resolved defaults if materialized)."""
        self.ensure_loaded()
        values = dict(self._persisted)
        values.update(self._pending)
        if self.schema.backend.materialize_defaults:
            for name, definition in self.schema.attributes.items():
                if name not in values:
                    values[name] = resolve_default(definition, self.owner)
        return values

    def commit(self) -> bool:
        """
        Write the merged view through the backend. No-op (False) without pending writes.
        A failing save propagates and leaves pending intact for a retry.
        """
        if not self._pending:
            return False
        values = self.merged()
        self.backend.save(self.owner, self.schema, values)
        self._persisted = values
        self._pending = {}
        logger.debug("Committed %r", self)
        return True

    def discard(self) -> None:
        """Drop pending writes and the persisted snapshot; the next read re-hydrates."""
        if self._pending:
            logger.debug("Discarding %d pending write(s) on %r", len(self._pending), self)
        self._pending = {}
        self._persisted = {}
        self._loaded = False
        self.backend.reset()
