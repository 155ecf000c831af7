"""
Schema registry: per owner type, the ordered attribute definitions of each named store.

The registry is populated during type initialization (define) and is read-only
afterwards (seal). A process-wide default instance is available via
get_registry(); tests and embedders can pass or install their own.
"""

from __future__ import annotations

import enum
import keyword
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from typed_store.codec import AttributeType, coerce, validate_allowed
from typed_store.core.errors import (
    DuplicateAttributeError,
    DuplicateStoreError,
    RegistrySealedError,
    SchemaError,
    UndefinedStoreError,
    UnknownTypeError,
)

if TYPE_CHECKING:
    from typed_store.lifecycle import LifecycleHooks
    from typed_store.store.blob_store import BlobStore

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StorageMode(enum.Enum):
    """Where a store's encoded blob lives."""

    INLINE = "inline"
    ASSOCIATED = "associated"


def validate_identifier(value: str, what: str) -> str:
    """Return value if it is a plain SQL/Python identifier, else raise SchemaError."""
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        raise SchemaError(f"Invalid {what} {value!r}: must match {_IDENTIFIER_RE.pattern}")
    return value


@dataclass(frozen=True)
class AttributeDefinition:
    """One typed attribute of a store. Immutable; shared by all owner instances."""

    name: str
    type: AttributeType
    default: Any = None
    allowed: Optional[frozenset] = None

    @property
    def has_callable_default(self) -> bool:
        return callable(self.default)


@dataclass(frozen=True)
class BackendConfig:
    """Backend selection for a store, fixed at definition time."""

    mode: StorageMode
    location: str
    owner_key: str = "id"
    blob_store: Optional["BlobStore"] = field(default=None, compare=False)
    materialize_defaults: bool = False

    def __post_init__(self) -> None:
        what = "column" if self.mode is StorageMode.INLINE else "table"
        validate_identifier(self.location, what)
        validate_identifier(self.owner_key, "owner key")


@dataclass(frozen=True)
class StoreSchema:
    """Ordered attribute definitions of one named store on one owner type."""

    owner_type: type
    name: str
    attributes: Mapping[str, AttributeDefinition]
    backend: BackendConfig

    def __getitem__(self, name: str) -> AttributeDefinition:
        return self.attributes[name]

    def __contains__(self, name: object) -> bool:
        return name in self.attributes

    def __iter__(self) -> Iterator[AttributeDefinition]:
        return iter(self.attributes.values())

    def __len__(self) -> int:
        return len(self.attributes)

    @property
    def names(self) -> List[str]:
        return list(self.attributes)


class SchemaBuilder:
    """
    Collects attribute definitions for one store. Passed to the builder callback.

    Usage:
        def build(s):
            s.boolean("allow_comments", default=True)
            s.string("theme", default="light", allowed={"light", "dark"})
            s.datetime("trial_ends_at", default=lambda owner: owner.created_at)
    """

    def __init__(self, store_name: str) -> None:
        self._store_name = store_name
        self._attributes: Dict[str, AttributeDefinition] = {}

    def attribute(
        self,
        type_token: Any,
        name: str,
        default: Any = None,
        allowed: Optional[Iterable[Any]] = None,
    ) -> AttributeDefinition:
        """Register an attribute by type token ("boolean", "string", ...) or AttributeType."""
        attr_type = _resolve_type(type_token)
        validate_identifier(name, "attribute name")
        if keyword.iskeyword(name):
            raise SchemaError(f"Invalid attribute name {name!r}: Python keyword")
        if name in self._attributes:
            raise DuplicateAttributeError(self._store_name, name)

        allowed_set: Optional[frozenset] = None
        if allowed is not None:
            allowed_set = frozenset(coerce(v, attr_type, attribute=name) for v in allowed)
        if default is not None and not callable(default):
            default = coerce(default, attr_type, attribute=name)
            validate_allowed(default, allowed_set, attribute=name)

        definition = AttributeDefinition(name=name, type=attr_type, default=default, allowed=allowed_set)
        self._attributes[name] = definition
        return definition

    def boolean(self, name: str, default: Any = None, allowed: Optional[Iterable[Any]] = None) -> AttributeDefinition:
        return self.attribute(AttributeType.BOOLEAN, name, default=default, allowed=allowed)

    def string(self, name: str, default: Any = None, allowed: Optional[Iterable[Any]] = None) -> AttributeDefinition:
        return self.attribute(AttributeType.STRING, name, default=default, allowed=allowed)

    def integer(self, name: str, default: Any = None, allowed: Optional[Iterable[Any]] = None) -> AttributeDefinition:
        return self.attribute(AttributeType.INTEGER, name, default=default, allowed=allowed)

    def text(self, name: str, default: Any = None, allowed: Optional[Iterable[Any]] = None) -> AttributeDefinition:
        return self.attribute(AttributeType.TEXT, name, default=default, allowed=allowed)

    def float(self, name: str, default: Any = None, allowed: Optional[Iterable[Any]] = None) -> AttributeDefinition:
        return self.attribute(AttributeType.FLOAT, name, default=default, allowed=allowed)

    def datetime(self, name: str, default: Any = None, allowed: Optional[Iterable[Any]] = None) -> AttributeDefinition:
        return self.attribute(AttributeType.DATETIME, name, default=default, allowed=allowed)

    def build(self) -> Mapping[str, AttributeDefinition]:
        return MappingProxyType(dict(self._attributes))


def _resolve_type(token: Any) -> AttributeType:
    if isinstance(token, AttributeType):
        return token
    if isinstance(token, str):
        try:
            return AttributeType(token.strip().lower())
        except ValueError:
            pass
    raise UnknownTypeError(token, AttributeType.tokens())


class SchemaRegistry:
    """
    Catalog of store schemas keyed by (owner type, store name).

    Usage:
        registry = SchemaRegistry()
        registry.define(User, "settings", BackendConfig(StorageMode.INLINE, "settings"), build)
        registry.seal()
        schema = registry.lookup(User, "settings")
    """

    def __init__(self) -> None:
        self._schemas: Dict[Tuple[type, str], StoreSchema] = {}
        self._order: Dict[type, List[str]] = {}
        self._hooks: Dict[type, "LifecycleHooks"] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """End the initialization phase; define() raises afterwards."""
        self._sealed = True
        logger.debug("Schema registry sealed with %d store(s)", len(self._schemas))

    def define(
        self,
        owner_type: type,
        store_name: str,
        backend_config: BackendConfig,
        builder_fn: Callable[[SchemaBuilder], Any],
        before_register: Optional[Callable[[StoreSchema], None]] = None,
    ) -> StoreSchema:
        """
        Invoke builder_fn once and register the resulting schema.
        before_register may veto the schema by raising; nothing is registered then.
        """
        if self._sealed:
            raise RegistrySealedError(
                f"Cannot define store '{store_name}' on {owner_type.__name__}: registry is sealed"
            )
        validate_identifier(store_name, "store name")
        if (owner_type, store_name) in self._schemas:
            raise DuplicateStoreError(f"Store '{store_name}' is already defined on {owner_type.__name__}")

        builder = SchemaBuilder(store_name)
        builder_fn(builder)
        schema = StoreSchema(
            owner_type=owner_type,
            name=store_name,
            attributes=builder.build(),
            backend=backend_config,
        )
        if before_register is not None:
            before_register(schema)
        self._schemas[(owner_type, store_name)] = schema
        self._order.setdefault(owner_type, []).append(store_name)
        logger.debug(
            "Defined store %s.%s (%s -> %s, %d attribute(s))",
            owner_type.__name__,
            store_name,
            backend_config.mode.value,
            backend_config.location,
            len(schema),
        )
        return schema

    def lookup(self, owner_type: type, store_name: str) -> StoreSchema:
        """Return the schema for store_name, searching owner_type's MRO."""
        for klass in owner_type.__mro__:
            schema = self._schemas.get((klass, store_name))
            if schema is not None:
                return schema
        raise UndefinedStoreError(owner_type, store_name)

    def schemas_for(self, owner_type: type) -> List[StoreSchema]:
        """All schemas visible on owner_type, base classes first, declaration order within a class."""
        out: List[StoreSchema] = []
        seen = set()
        for klass in reversed(owner_type.__mro__):
            for name in self._order.get(klass, ()):
                if name in seen:
                    continue
                seen.add(name)
                out.append(self.lookup(owner_type, name))
        return out

    def hooks(self, owner_type: type) -> "LifecycleHooks":
        """Lifecycle hooks for owner_type, created on first request with the commit coordinator subscribed."""
        hooks = self._hooks.get(owner_type)
        if hooks is None:
            from typed_store.coordinator import CommitCoordinator
            from typed_store.lifecycle import LifecycleHooks

            hooks = LifecycleHooks()
            CommitCoordinator(self).subscribe(hooks)
            self._hooks[owner_type] = hooks
        return hooks

    def __len__(self) -> int:
        return len(self._schemas)


# Default registry instance (set by get_registry)
_registry: Optional[SchemaRegistry] = None


def get_registry() -> SchemaRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    if _registry is None:
        _registry = SchemaRegistry()
    return _registry


def set_registry(registry: SchemaRegistry) -> None:
    """Install the process-wide registry (e.g. a fresh one per test)."""
    global _registry
    _registry = registry


__all__ = [
    "AttributeDefinition",
    "BackendConfig",
    "SchemaBuilder",
    "SchemaRegistry",
    "StorageMode",
    "StoreSchema",
    "get_registry",
    "set_registry",
    "validate_identifier",
]
