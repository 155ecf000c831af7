"""
Top-level public API surface. Stable facades only.
Canonical entrypoint: import typed_store; declare stores with declare_store(),
fire host lifecycle events with before_save()/after_save()/after_reload()/after_destroy().
Does not import cli.
"""

from __future__ import annotations

from ._version import __version__
from .attribute_store import AttributeStore, resolve_default
from .codec import AttributeType, coerce, decode_map, encode_map, validate_allowed
from .coordinator import CommitCoordinator
from .core.errors import (
    AccessorConflictError,
    BackendUnavailableError,
    CoercionError,
    DecodeError,
    DisallowedValueError,
    DuplicateAttributeError,
    DuplicateStoreError,
    OwnerNotPersistedError,
    PartialCommitError,
    RegistrySealedError,
    SchemaError,
    TypedStoreError,
    UndefinedStoreError,
    UnknownAttributeError,
    UnknownTypeError,
)
from .core.types import OwnerView
from .declare import (
    after_destroy,
    after_reload,
    after_save,
    before_save,
    declare_store,
    hooks_for,
    store_for,
)
from .frame import prefetch, to_frame
from .lifecycle import LifecycleHooks
from .schema import (
    AttributeDefinition,
    BackendConfig,
    SchemaBuilder,
    SchemaRegistry,
    StorageMode,
    StoreSchema,
    get_registry,
    set_registry,
)

# Do not add exports without updating __all__.
__all__ = [
    "AccessorConflictError",
    "AttributeDefinition",
    "AttributeStore",
    "AttributeType",
    "BackendConfig",
    "BackendUnavailableError",
    "CoercionError",
    "CommitCoordinator",
    "DecodeError",
    "DisallowedValueError",
    "DuplicateAttributeError",
    "DuplicateStoreError",
    "LifecycleHooks",
    "OwnerNotPersistedError",
    "OwnerView",
    "PartialCommitError",
    "RegistrySealedError",
    "SchemaBuilder",
    "SchemaError",
    "SchemaRegistry",
    "StorageMode",
    "StoreSchema",
    "TypedStoreError",
    "UndefinedStoreError",
    "UnknownAttributeError",
    "UnknownTypeError",
    "__version__",
    "after_destroy",
    "after_reload",
    "after_save",
    "before_save",
    "coerce",
    "declare_store",
    "decode_map",
    "encode_map",
    "get_registry",
    "hooks_for",
    "prefetch",
    "set_registry",
    "store_for",
    "to_frame",
    "validate_allowed",
]
