# Security module - Field policies and permission tables
# Explicit override first, store default otherwise

from .permissions import (
    Policy, PermissionTable, Restricted, restrict, root_key, check_field_name,
    SEPARATOR, MISSING
)

__all__ = [
    "Policy",
    "PermissionTable",
    "Restricted",
    "restrict",
    "root_key",
    "check_field_name",
    "SEPARATOR",
    "MISSING",
]
