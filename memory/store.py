"""
Permissioned Store
------------------
Hierarchical key-value container with per-field access policies.

Paths use ':' to address nested stores:
    store.write("session:user:name", "ada")   # creates session, session:user
    store.read("session:user:name")           # -> "ada"

Rules:
- Permission is checked on the root key only, once per level traversed
- Each nested store is its own permission domain
- Writes through a path create missing stores; reads never create anything
- Trusted subclass code may use `_fields` directly, bypassing policies
"""

from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, Union
import logging

from core.errors import Operation, PermissionDenied
from security.permissions import (
    SEPARATOR, PermissionTable, Policy, Restricted, check_field_name, root_key
)


JSONPrimitive = Union[str, int, float, bool, None]
JSONValue = Union[JSONPrimitive, List[Any], Dict[str, Any]]
StoreResult = Union["Store", JSONValue]
StoreValue = Union[StoreResult, Callable[[], StoreResult]]


class Store:
    """
    Permission-checked mapping from field names to values.

    A value is a JSON value, a nested Store, or a zero-argument callable
    (lazy field) evaluated on every read.

    Subclasses declare fixed field permissions with `restrict()` or a plain
    `PERMISSIONS` mapping; both are collected into a per-class table when
    the class is defined. Each instance works on its own copy of that table.
    """

    default_policy: Union[Policy, str] = Policy.READ_WRITE
    PERMISSIONS: Mapping[str, Union[Policy, str]] = {}

    # Built by __init_subclass__, never edited on instances
    _permissions: Dict[str, Policy] = {}
    _declared: Dict[str, Restricted] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        default = Policy.parse(cls.default_policy)
        permissions = dict(cls._permissions)
        declared = dict(cls._declared)

        for name, policy in cls.__dict__.get("PERMISSIONS", {}).items():
            permissions[check_field_name(name)] = Policy.parse(policy)

        for name, attr in list(cls.__dict__.items()):
            if not isinstance(attr, Restricted):
                continue
            # Undeclared permission captures the class default right now
            permissions[name] = attr.permission if attr.permission is not None else default
            declared[name] = attr
            delattr(cls, name)

        cls._permissions = permissions
        cls._declared = declared

    def __init__(self, default_policy: Optional[Union[Policy, str]] = None):
        if default_policy is None:
            default_policy = type(self).default_policy
        self.default_policy = Policy.parse(default_policy)
        self._table = PermissionTable(overrides=dict(self._permissions))
        self._fields: Dict[str, StoreValue] = {}
        self._logger = logging.getLogger("strongbox.memory.store")

        for name, declaration in self._declared.items():
            if declaration.has_default:
                self._fields[name] = declaration.initial_value()

    # Permissions

    def policy_for(self, key: str) -> Policy:
        """Effective policy for the root segment of `key`."""
        return self._table.policy_for(key, self.default_policy)

    def allowed_to_read(self, key: str) -> bool:
        return self.policy_for(key).readable

    def allowed_to_write(self, key: str) -> bool:
        return self.policy_for(key).writable

    def set_policy(self, key: str, policy: Union[Policy, str]) -> None:
        """
        Explicitly rewrite the permission of one field on this instance.

        Raises:
            ValueError: If `key` is a path; nested fields are governed by
                their own store
        """
        self._table.set(key, policy)

    def clear_policy(self, key: str) -> bool:
        """Drop a field override so the field follows the default policy."""
        return self._table.clear(check_field_name(key))

    @property
    def permissions(self) -> Dict[str, str]:
        return self._table.get_status()

    # Access

    def read(self, path: str) -> Optional[StoreResult]:
        """
        Read the value at `path`.

        Returns None for missing fields and for paths that continue past a
        value that is not a store.

        Raises:
            PermissionDenied: If the root key is not readable at this level
        """
        if not self.allowed_to_read(path):
            self._deny(path, Operation.READ)

        key, separator, rest = path.partition(SEPARATOR)
        value = self._resolve(self._fields.get(key))

        if not separator:
            return value

        if isinstance(value, Store):
            return value.read(rest)

        self._logger.debug(f"Read stopped at non-store field: {key}", extra={"path": path})
        return None

    def write(self, path: str, value: StoreValue) -> StoreValue:
        """
        Write `value` at `path`, creating intermediate stores as needed.

        A non-store value sitting on the path is replaced by a new store.
        That includes a lazy field: `read("lazy:x")` descends into the store
        the producer returns, but `write("lazy:x", v)` replaces the producer
        with a new empty store holding `x`.
        The field's permission override is never changed by a write.

        Raises:
            PermissionDenied: If the root key is not writable at this level
        """
        if not self.allowed_to_write(path):
            self._deny(path, Operation.WRITE)

        key, separator, rest = path.partition(SEPARATOR)

        if not separator:
            self._fields[key] = value
            self._logger.debug(f"Field written: {key}", extra={"path": path})
            return value

        child = self._fields.get(key)
        if not isinstance(child, Store):
            child = self._create_child()
            self._fields[key] = child
            self._logger.debug(f"Nested store created: {key}", extra={"path": path})

        return child.write(rest, value)

    def write_entries(self, entries: Mapping[str, StoreValue]) -> None:
        """
        Write every entry in iteration order.

        The first denied write aborts the batch; earlier writes stay applied.
        """
        for path, value in entries.items():
            self.write(path, value)

    def entries(self) -> Dict[str, Any]:
        """Snapshot of exposed fields. The base store exposes nothing."""
        return {}

    # Introspection

    def keys(self) -> List[str]:
        """Field names held at this level, regardless of policy."""
        return list(self._fields.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._fields))

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(default_policy={self.default_policy.value!r}, "
            f"fields={len(self._fields)}, overrides={len(self._table)})"
        )

    # Internals

    def _create_child(self) -> "Store":
        """Store created when a write path runs through a non-store field."""
        return Store()

    @staticmethod
    def _resolve(value: Any) -> Any:
        if callable(value) and not isinstance(value, (Store, type)):
            return value()
        return value

    def _deny(self, path: str, operation: Operation) -> None:
        key = root_key(path)
        policy = self.policy_for(path)
        self._logger.warning(
            f"Permission DENIED ({operation.value}): {path}",
            extra={"path": path, "operation": operation.value, "policy": policy.value},
        )
        raise PermissionDenied(path, operation, key=key, policy=policy)


class PublicStore(Store):
    """
    Store whose `entries()` exposes every readable field.

    Lazy fields are evaluated; nested stores contribute their own
    `entries()`, so their policies apply at their level. A store reached
    again while it is still being listed (a cycle) is left out.
    """

    def entries(self) -> Dict[str, Any]:
        return self._snapshot(set())

    def _snapshot(self, ancestors: Set[int]) -> Dict[str, Any]:
        ancestors = ancestors | {id(self)}
        snapshot: Dict[str, Any] = {}
        for key, raw in list(self._fields.items()):
            if not self.allowed_to_read(key):
                continue
            value = self._resolve(raw)
            if isinstance(value, Store):
                if id(value) in ancestors:
                    self._logger.debug(f"Cycle skipped in entries: {key}")
                    continue
                if isinstance(value, PublicStore):
                    value = value._snapshot(ancestors)
                else:
                    value = value.entries()
            snapshot[key] = value
        return snapshot

    def _create_child(self) -> Store:
        return PublicStore()


class LockedStore(Store):
    """
    Store guarded by one re-entrant lock per instance.

    The lock is held for a whole read or write, including the descent into
    nested stores and any stores created on the way. Stores created by a
    write are LockedStores too.
    """

    def __init__(self, default_policy: Optional[Union[Policy, str]] = None):
        super().__init__(default_policy)
        self._lock = RLock()

    def policy_for(self, key: str) -> Policy:
        with self._lock:
            return super().policy_for(key)

    def set_policy(self, key: str, policy: Union[Policy, str]) -> None:
        with self._lock:
            super().set_policy(key, policy)

    def clear_policy(self, key: str) -> bool:
        with self._lock:
            return super().clear_policy(key)

    @property
    def permissions(self) -> Dict[str, str]:
        with self._lock:
            return self._table.get_status()

    def read(self, path: str) -> Optional[StoreResult]:
        with self._lock:
            return super().read(path)

    def write(self, path: str, value: StoreValue) -> StoreValue:
        with self._lock:
            return super().write(path, value)

    def write_entries(self, entries: Mapping[str, StoreValue]) -> None:
        with self._lock:
            super().write_entries(entries)

    def entries(self) -> Dict[str, Any]:
        with self._lock:
            return super().entries()

    def keys(self) -> List[str]:
        with self._lock:
            return super().keys()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return super().__contains__(key)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return super().__iter__()

    def __len__(self) -> int:
        with self._lock:
            return super().__len__()

    def _create_child(self) -> Store:
        return LockedStore()
