# Core module - Error types shared by every store
# One failure mode only: PermissionDenied

from .errors import Operation, StoreError, PermissionDenied

__all__ = ["Operation", "StoreError", "PermissionDenied"]
