"""
Shared utilities for Cloister.

Provides access to common functionality used across Gate implementations.
"""

from cloister.shared.gate import (
    GateLogger,
    ConfigLoader,
    PathUtils,
    build_health_status,
)

__all__ = [
    "GateLogger",
    "ConfigLoader",
    "PathUtils",
    "build_health_status",
]
