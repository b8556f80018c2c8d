"""
Error Handling Module
---------------------
Typed errors raised by the store.

Rules:
- Exactly one failure mode: a permission denial
- Raised synchronously, never retried, never swallowed
- Missing keys and malformed paths are NOT errors
"""

from enum import Enum
from typing import Any, Dict, Optional


class Operation(str, Enum):
    """Kind of access attempted on a store field."""
    READ = "read"
    WRITE = "write"


class StoreError(Exception):
    """Base class for store errors."""


class PermissionDenied(StoreError, PermissionError):
    """
    Raised when the policy of a path's root key forbids an access.

    Carries the offending path and operation for diagnostics.
    """

    def __init__(
        self,
        path: str,
        operation: Operation,
        key: Optional[str] = None,
        policy: Optional[Any] = None,
    ):
        self.path = path
        self.operation = Operation(operation)
        self.key = path.split(":", 1)[0] if key is None else key
        self.policy = policy
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"{self.operation.value} denied for path '{self.path}'"
        if self.policy is not None:
            policy = getattr(self.policy, "value", self.policy)
            message += f" (key '{self.key}' has policy '{policy}')"
        return message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/reporting."""
        return {
            "error": type(self).__name__,
            "path": self.path,
            "operation": self.operation.value,
            "key": self.key,
            "policy": getattr(self.policy, "value", self.policy),
        }

    def __reduce__(self):
        return (type(self), (self.path, self.operation, self.key, self.policy))
