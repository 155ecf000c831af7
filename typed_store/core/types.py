"""
Shared typing aliases and Protocols for typed_store.
OwnerView is the narrow read-only capability handed to callable defaults.
"""

from __future__ import annotations

import inspect
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class SupportsIdentity(Protocol):
    """Protocol for owners addressable by a primary key (default attribute: id)."""

    id: Any


def owner_identity(owner: Any, key: str = "id") -> Optional[str]:
    """Return the owner's identity as text, or None when the owner was never persisted."""
    value = getattr(owner, key, None)
    if value is None or value == "":
        return None
    return str(value)


class OwnerView:
    """
    Read-only view of an owner instance for default functions.

    Only plain, already-loaded fields are readable: private names, methods and
    typed-store accessors are refused (they could trigger loads or side effects),
    and assignment is refused.
    """

    __slots__ = ("_owner",)

    def __init__(self, owner: Any) -> None:
        object.__setattr__(self, "_owner", owner)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(f"Private field '{name}' is not readable from a default")
        owner = object.__getattribute__(self, "_owner")
        static = _static_lookup(owner, name)
        if getattr(type(static), "typed_store_accessor", False):
            raise AttributeError(f"Typed store attribute '{name}' is not readable from a default")
        value = getattr(owner, name)
        if inspect.ismethod(value) or inspect.isfunction(value):
            raise AttributeError(f"Method '{name}' is not callable from a default")
        return value

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self.__getattr__(name)
        except AttributeError:
            return default

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("OwnerView is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("OwnerView is read-only")

    def __repr__(self) -> str:
        owner = object.__getattribute__(self, "_owner")
        return f"OwnerView({type(owner).__name__})"


def _static_lookup(owner: Any, name: str) -> Any:
    try:
        return inspect.getattr_static(type(owner), name)
    except AttributeError:
        return None


__all__ = ["OwnerView", "SupportsIdentity", "owner_identity"]
