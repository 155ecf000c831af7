"""
Shared exception types for typed_store.
Stable surface; extend only. Schema errors are fatal at type-definition time,
value errors reject a single write, backend errors surface I/O failures.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence


class TypedStoreError(Exception):
    """Base exception for typed_store; catch this for any package-raised error."""

    pass


# ---------------------------------------------------------------------------
# Schema misconfiguration
# ---------------------------------------------------------------------------


class SchemaError(TypedStoreError):
    """Raised when a store declaration is invalid."""


class DuplicateAttributeError(SchemaError):
    """Raised when the same attribute name is registered twice within one store."""

    def __init__(self, store: str, attribute: str) -> None:
        self.store = store
        self.attribute = attribute
        super().__init__(f"Attribute '{attribute}' is already defined in store '{store}'")


class DuplicateStoreError(SchemaError):
    """Raised when a store name is defined twice for one owner type."""


class UnknownTypeError(SchemaError):
    """Raised for an unsupported attribute type token."""

    def __init__(self, token: Any, supported: Iterable[str] = ()) -> None:
        self.token = token
        supported = sorted(supported)
        msg = f"Unknown attribute type {token!r}"
        if supported:
            msg += f". Supported: {supported}"
        super().__init__(msg)


class UndefinedStoreError(SchemaError):
    """Raised by lookup() when a store was never defined for an owner type."""

    def __init__(self, owner_type: type, store: str) -> None:
        self.owner_type = owner_type
        self.store = store
        super().__init__(f"No store '{store}' defined for {owner_type.__name__}")


class AccessorConflictError(SchemaError):
    """Raised when a generated accessor would shadow an existing owner attribute."""


class RegistrySealedError(SchemaError):
    """Raised when define() is called after the registry was sealed."""


# ---------------------------------------------------------------------------
# Per-value errors
# ---------------------------------------------------------------------------


class UnknownAttributeError(TypedStoreError, LookupError):
    """Raised when reading or writing a name that is not part of the store schema."""

    def __init__(self, store: str, attribute: str) -> None:
        self.store = store
        self.attribute = attribute
        super().__init__(f"Store '{store}' has no attribute '{attribute}'")


class CoercionError(TypedStoreError, ValueError):
    """Raised when a raw input cannot be interpreted as the attribute's type."""

    def __init__(self, attribute: Optional[str], type: Any, raw: Any) -> None:
        self.attribute = attribute
        self.type = type
        self.raw = raw
        type_name = getattr(type, "value", type)
        where = f" for attribute '{attribute}'" if attribute else ""
        super().__init__(f"Cannot coerce {raw!r} to {type_name}{where}")


class DisallowedValueError(TypedStoreError, ValueError):
    """Raised when a value is outside the attribute's allowed set."""

    def __init__(self, attribute: Optional[str], value: Any, allowed: Iterable[Any]) -> None:
        self.attribute = attribute
        self.value = value
        self.allowed = allowed
        where = f" for attribute '{attribute}'" if attribute else ""
        shown = sorted(allowed, key=repr)
        super().__init__(f"Value {value!r} is not allowed{where}. Allowed: {shown}")


class DecodeError(TypedStoreError, ValueError):
    """Raised when a stored blob is not a valid encoded attribute map."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class BackendUnavailableError(TypedStoreError):
    """Raised when the underlying storage call fails. Surfaced, never retried."""


class OwnerNotPersistedError(BackendUnavailableError):
    """Raised when an associated record is written for an owner without identity."""


class PartialCommitError(TypedStoreError):
    """
    Raised when the owner row and its associated records diverged: some writes
    landed in storage while another one failed.
    """

    def __init__(self, committed: Sequence[str], failed: Sequence[str], message: str = "") -> None:
        self.committed = list(committed)
        self.failed = list(failed)
        msg = message or "Partial commit"
        super().__init__(f"{msg}: committed={self.committed} failed={self.failed}")


__all__ = [
    "AccessorConflictError",
    "BackendUnavailableError",
    "CoercionError",
    "DecodeError",
    "DisallowedValueError",
    "DuplicateAttributeError",
    "DuplicateStoreError",
    "OwnerNotPersistedError",
    "PartialCommitError",
    "RegistrySealedError",
    "SchemaError",
    "TypedStoreError",
    "UndefinedStoreError",
    "UnknownAttributeError",
    "UnknownTypeError",
]
