"""
PermissionGate - Shared storage permission policy for Cloister.

Provides:
- The PermissionGate protocol consumed by StorageGate
- A static gate for sandbox-only hosts
- A scoped storage gate modelling per-API-level host rules

Usage:
    from cloister.PermissionGate import ScopedStoragePermissionGate, PermissionScope

    gate = ScopedStoragePermissionGate(api_level=33, prompter=ask_user)
    state = gate.request(PermissionScope.PUBLIC_STORAGE)
"""

from typing import Optional

from .models import (
    PermissionRequestOptions,
    PermissionScope,
    PermissionState,
    PermissionStatus,
)
from .policy import (
    MEDIA_PERMISSION_API_LEVEL,
    SCOPED_STORAGE_API_LEVEL,
    PermissionGate,
    ScopedStoragePermissionGate,
    StaticPermissionGate,
    request_permission_async,
)


def from_settings() -> PermissionGate:
    """
    Build a gate from configuration.

    A configured CLOISTER_PLATFORM_API_LEVEL selects the scoped storage
    policy; without one the host is treated as sandbox-only.
    """
    from cloister import Config

    api_level: Optional[int] = Config.get("CLOISTER_PLATFORM_API_LEVEL")
    if api_level is None:
        return StaticPermissionGate()
    return ScopedStoragePermissionGate(api_level=api_level)


__all__ = [
    "PermissionGate",
    "StaticPermissionGate",
    "ScopedStoragePermissionGate",
    "request_permission_async",
    "from_settings",
    "PermissionState",
    "PermissionScope",
    "PermissionStatus",
    "PermissionRequestOptions",
    "SCOPED_STORAGE_API_LEVEL",
    "MEDIA_PERMISSION_API_LEVEL",
]
