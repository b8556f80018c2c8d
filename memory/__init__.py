# Memory module - In-process permissioned stores
# Colon paths, auto-created nested stores, no persistence

from .store import (
    Store, PublicStore, LockedStore,
    JSONPrimitive, JSONValue, StoreResult, StoreValue
)

__all__ = [
    "Store",
    "PublicStore",
    "LockedStore",
    "JSONPrimitive",
    "JSONValue",
    "StoreResult",
    "StoreValue",
]
