"""
Permission System
-----------------
Field-level access policies for stores.

Rules:
- Every field resolves to exactly one policy
- Explicit override first, store default otherwise
- Only the root segment of a path is ever checked at one level
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Union
import logging


SEPARATOR = ":"


def root_key(path: str) -> str:
    """Return the segment of `path` before the first separator."""
    return path.split(SEPARATOR, 1)[0]


def check_field_name(name: str) -> str:
    """
    Validate a name used as a permission override.

    Raises:
        ValueError: If the name contains the path separator
    """
    if SEPARATOR in name:
        raise ValueError(
            f"Field name '{name}' contains '{SEPARATOR}'; "
            "set the policy on the nested store instead"
        )
    return name


class Policy(str, Enum):
    """Access policy for a store field."""
    READ_WRITE = "rw"
    READ_ONLY = "r"
    WRITE_ONLY = "w"
    NONE = "none"

    @property
    def readable(self) -> bool:
        return self in (Policy.READ_WRITE, Policy.READ_ONLY)

    @property
    def writable(self) -> bool:
        return self in (Policy.READ_WRITE, Policy.WRITE_ONLY)

    @classmethod
    def parse(cls, value: Union["Policy", str]) -> "Policy":
        """
        Parse a policy from its enum, short code or long name.

        Raises:
            ValueError: If the value names no policy
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            if normalized in _ALIASES:
                return _ALIASES[normalized]
        raise ValueError(f"Unknown policy: {value!r}")


_ALIASES: Dict[str, Policy] = {
    "rw": Policy.READ_WRITE,
    "wr": Policy.READ_WRITE,
    "read-write": Policy.READ_WRITE,
    "r": Policy.READ_ONLY,
    "read-only": Policy.READ_ONLY,
    "w": Policy.WRITE_ONLY,
    "write-only": Policy.WRITE_ONLY,
    "none": Policy.NONE,
}


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass
class Restricted:
    """
    Declaration of a store field with a fixed permission.

    Created by `restrict()` in a store class body and collected into the
    class's permission table when the class is defined.
    """
    permission: Optional[Policy] = None
    default: Any = MISSING
    default_factory: Optional[Callable[[], Any]] = None

    def __post_init__(self):
        if self.permission is not None:
            self.permission = Policy.parse(self.permission)
        if self.default is not MISSING and self.default_factory is not None:
            raise ValueError("cannot specify both default and default_factory")

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING or self.default_factory is not None

    def initial_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


def restrict(
    permission: Optional[Union[Policy, str]] = None,
    default: Any = MISSING,
    default_factory: Optional[Callable[[], Any]] = None,
) -> Any:
    """
    Declare a store field with an explicit permission.

    Usage:
        class Session(Store):
            user = restrict("r", default="guest")
            token = restrict(Policy.NONE)
            nickname = restrict()   # captures Session.default_policy

    Without a permission the field takes the class default policy as it
    stands when the class body is evaluated.
    """
    return Restricted(
        permission=permission,
        default=default,
        default_factory=default_factory,
    )


@dataclass
class PermissionTable:
    """
    Per-field policy overrides.

    The table holds explicit entries only; the owning store supplies the
    fallback policy at lookup time.
    """
    overrides: Dict[str, Policy] = field(default_factory=dict)

    def __post_init__(self):
        self.overrides = {
            check_field_name(name): Policy.parse(policy)
            for name, policy in self.overrides.items()
        }
        self._logger = logging.getLogger("strongbox.security")

    def policy_for(self, key: str, default: Union[Policy, str]) -> Policy:
        """Effective policy for the root segment of `key`."""
        policy = self.overrides.get(root_key(key))
        if policy is None:
            return Policy.parse(default)
        return policy

    def set(self, name: str, policy: Union[Policy, str]) -> None:
        """Explicitly set the policy for a field."""
        check_field_name(name)
        self.overrides[name] = Policy.parse(policy)
        self._logger.debug(f"Policy set: {name} = {self.overrides[name].value}")

    def clear(self, name: str) -> bool:
        """Drop an override. Returns True if one existed."""
        if name in self.overrides:
            del self.overrides[name]
            self._logger.debug(f"Policy cleared: {name}")
            return True
        return False

    def update(self, policies: Mapping[str, Union[Policy, str]]) -> None:
        for name, policy in policies.items():
            self.set(name, policy)

    def copy(self) -> "PermissionTable":
        return PermissionTable(overrides=dict(self.overrides))

    def __contains__(self, name: str) -> bool:
        return name in self.overrides

    def __iter__(self) -> Iterator[str]:
        return iter(self.overrides)

    def __len__(self) -> int:
        return len(self.overrides)

    def get_status(self) -> Dict[str, str]:
        """Get current overrides as plain strings."""
        return {name: policy.value for name, policy in self.overrides.items()}
