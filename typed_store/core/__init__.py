"""
Stable facade: exception taxonomy and owner capability types only.
Imports are minimal. Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import TypedStoreError
from .types import OwnerView, owner_identity

# Do not add exports without updating __all__.
__all__ = ["OwnerView", "TypedStoreError", "owner_identity"]
