"""
Batch hydration and tabular export over many owners.

prefetch() avoids the N+1 pattern of associated stores: one fetch_many per
store instead of one fetch per owner on first read.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from typed_store.attribute_store import AttributeStore
from typed_store.codec import decode_map
from typed_store.core.types import owner_identity
from typed_store.declare import store_for
from typed_store.schema import StorageMode, StoreSchema
from typed_store.store.associated_backend import AssociatedBackend
from typed_store.store.backend import storage_call

logger = logging.getLogger(__name__)


def prefetch(owners: Iterable[Any], store_name: str) -> List[Any]:
    """
    Hydrate store_name on every owner. Associated stores are fetched with one
    batched call and primed so later reads never fetch again. Returns owners as a list.
    """
    owners = list(owners)
    # id(schema) -> (schema, {owner_id: [stores]}); owners of different types may share a store name
    groups: Dict[int, Tuple[StoreSchema, Dict[str, List[AttributeStore]]]] = {}
    for owner in owners:
        store = store_for(owner, store_name)
        if store.loaded:
            continue
        schema = store.schema
        if schema.backend.mode is not StorageMode.ASSOCIATED or not isinstance(store.backend, AssociatedBackend):
            store.ensure_loaded()
            continue
        owner_id = owner_identity(owner, schema.backend.owner_key)
        if owner_id is None:
            store.ensure_loaded()
            continue
        _, by_id = groups.setdefault(id(schema), (schema, {}))
        by_id.setdefault(owner_id, []).append(store)

    for schema, by_id in groups.values():
        blob_store = AssociatedBackend.blob_store_for(schema)
        with storage_call("prefetch", schema):
            blobs = blob_store.fetch_many(schema.backend.location, list(by_id))
        for owner_id, stores in by_id.items():
            blob = blobs.get(owner_id)
            for store in stores:
                store.backend.prime(blob)
                store.hydrate(decode_map(blob, schema))
        logger.debug(
            "Prefetched %s.%s for %d owner(s), %d record(s) found",
            schema.owner_type.__name__,
            store_name,
            len(by_id),
            len(blobs),
        )
    return owners


def to_frame(owners: Iterable[Any], store_name: str) -> pd.DataFrame:
    """One row per owner (index: owner identity), one column per attribute, resolved values."""
    owners = prefetch(owners, store_name)
    rows = []
    index = []
    columns: List[str] = []
    for owner in owners:
        store = store_for(owner, store_name)
        columns = store.schema.names
        rows.append(store.to_dict())
        index.append(owner_identity(owner, store.schema.backend.owner_key))
    df = pd.DataFrame(rows, index=pd.Index(index, name="owner_id"), columns=columns)
    return df
