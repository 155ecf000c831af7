"""
Declaration entry point and per-instance accessors.

declare_store() registers a schema for an owner type and installs, per attribute,
a read/write property (plus an is_<name> truthiness property for booleans) and a
store(name) method. Stores are created lazily and memoized in the owner
instance's __dict__, so owners with __slots__ and no __dict__ are not supported.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from typed_store.attribute_store import AttributeStore
from typed_store.codec import AttributeType
from typed_store.core.errors import AccessorConflictError, SchemaError
from typed_store.schema import (
    BackendConfig,
    SchemaBuilder,
    SchemaRegistry,
    StorageMode,
    StoreSchema,
    get_registry,
)

logger = logging.getLogger(__name__)

_STORES_ATTR = "_typed_stores"
_REGISTRY_ATTR = "_typed_store_registry"
_OPTIONS = frozenset({"table", "column", "key", "blob_store", "materialize_defaults"})


class StoreAttribute:
    """Data descriptor routing owner.<name> reads/writes through the owning AttributeStore."""

    typed_store_accessor = True

    def __init__(self, store_name: str, attribute: str) -> None:
        self.store_name = store_name
        self.attribute = attribute

    def __get__(self, owner: Any, objtype: Optional[type] = None) -> Any:
        if owner is None:
            return self
        return store_for(owner, self.store_name).get(self.attribute)

    def __set__(self, owner: Any, value: Any) -> None:
        store_for(owner, self.store_name).set(self.attribute, value)

    def __repr__(self) -> str:
        return f"<StoreAttribute {self.store_name}.{self.attribute}>"


class StorePredicate(StoreAttribute):
    """Read-only truthiness form of a boolean attribute (owner.is_<name>)."""

    def __get__(self, owner: Any, objtype: Optional[type] = None) -> Any:
        if owner is None:
            return self
        return store_for(owner, self.store_name).truthy(self.attribute)

    def __set__(self, owner: Any, value: Any) -> None:
        raise AttributeError(f"is_{self.attribute} is read-only; assign {self.attribute} instead")


def _store_method(self: Any, name: str) -> AttributeStore:
    """Return the AttributeStore named name for this instance."""
    return store_for(self, name)


_store_method.typed_store_accessor = True  # type: ignore[attr-defined]


def registry_for(owner_type: type) -> SchemaRegistry:
    """Registry an owner type was declared against (the process-wide one by default)."""
    registry = getattr(owner_type, _REGISTRY_ATTR, None)
    if registry is None:
        return get_registry()
    return registry


def instantiated_stores(owner: Any) -> Dict[str, AttributeStore]:
    """Stores already created on owner (no store is created by this call)."""
    return owner.__dict__.get(_STORES_ATTR, {})


def store_for(owner: Any, name: str) -> AttributeStore:
    """The AttributeStore for name on owner: same object for the lifetime of the instance."""
    stores = owner.__dict__.setdefault(_STORES_ATTR, {})
    store = stores.get(name)
    if store is None:
        schema = registry_for(type(owner)).lookup(type(owner), name)
        store = AttributeStore(owner, schema)
        stores[name] = store
    return store


def backend_config_from_options(store_name: str, options: Optional[Mapping[str, Any]]) -> BackendConfig:
    """Translate declaration options ({"table": "same" | table_name, ...}) into a BackendConfig."""
    options = dict(options or {})
    unknown = set(options) - _OPTIONS
    if unknown:
        raise SchemaError(f"Unknown option(s) for store '{store_name}': {sorted(unknown)}")
    table = options.get("table", "same")
    if table == "same":
        mode = StorageMode.INLINE
        location = options.get("column", store_name)
    else:
        if "column" in options:
            raise SchemaError(f"Store '{store_name}': 'column' only applies to table='same'")
        mode = StorageMode.ASSOCIATED
        location = table
    return BackendConfig(
        mode=mode,
        location=location,
        owner_key=options.get("key", "id"),
        blob_store=options.get("blob_store"),
        materialize_defaults=bool(options.get("materialize_defaults", False)),
    )


def _accessor_names(schema: StoreSchema) -> Dict[str, StoreAttribute]:
    out: Dict[str, StoreAttribute] = {}
    for definition in schema:
        out[definition.name] = StoreAttribute(schema.name, definition.name)
        if definition.type is AttributeType.BOOLEAN:
            out[f"is_{definition.name}"] = StorePredicate(schema.name, definition.name)
    return out


def _check_conflicts(owner_type: type, schema: StoreSchema) -> None:
    for name in _accessor_names(schema):
        if hasattr(owner_type, name):
            raise AccessorConflictError(
                f"Store '{schema.name}' attribute accessor '{name}' would shadow "
                f"an existing attribute of {owner_type.__name__}"
            )
    if schema.backend.mode is StorageMode.INLINE and schema.backend.location in _accessor_names(schema):
        raise AccessorConflictError(
            f"Store '{schema.name}' column '{schema.backend.location}' collides with one of its attributes"
        )


def declare_store(
    owner_type: type,
    store_name: str,
    options: Optional[Mapping[str, Any]],
    builder: Callable[[SchemaBuilder], Any],
    registry: Optional[SchemaRegistry] = None,
) -> StoreSchema:
    """
    Define a typed store on owner_type and install its accessors.

    options["table"] == "same" stores the blob inline in the owner column named
    options.get("column", store_name); any other value names the associated table.
    """
    if registry is None:
        registry = registry_for(owner_type)
    existing = owner_type.__dict__.get(_REGISTRY_ATTR)
    if existing is not None and existing is not registry:
        raise SchemaError(f"{owner_type.__name__} is already bound to another schema registry")

    backend_config = backend_config_from_options(store_name, options)
    schema = registry.define(
        owner_type,
        store_name,
        backend_config,
        builder,
        before_register=lambda s: _check_conflicts(owner_type, s),
    )

    setattr(owner_type, _REGISTRY_ATTR, registry)
    for name, accessor in _accessor_names(schema).items():
        setattr(owner_type, name, accessor)
    current = getattr(owner_type, "store", None)
    if current is None:
        setattr(owner_type, "store", _store_method)
    elif not getattr(current, "typed_store_accessor", False):
        logger.debug("%s already defines store(); use typed_store.store_for() instead", owner_type.__name__)
    registry.hooks(owner_type)
    return schema


# ---------------------------------------------------------------------------
# Host-facing lifecycle entry points
# ---------------------------------------------------------------------------


def hooks_for(owner: Any):
    """LifecycleHooks for an owner instance or type."""
    owner_type = owner if isinstance(owner, type) else type(owner)
    return registry_for(owner_type).hooks(owner_type)


def before_save(owner: Any) -> None:
    hooks_for(owner).before_save(owner)


def after_save(owner: Any) -> None:
    hooks_for(owner).after_save(owner)


def after_reload(owner: Any) -> None:
    hooks_for(owner).after_reload(owner)


def after_destroy(owner: Any) -> None:
    hooks_for(owner).after_destroy(owner)
