"""
StorageGate directory resolver.

Maps a (directory alias, relative path) pair to a concrete path.
"""

import os
from typing import Optional, Union

from .models import DirectoryAlias, ErrorKind, StorageConfig


class StorageError(Exception):
    """Base error carrying a stable ErrorKind."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class InvalidPathError(StorageError):
    """Raised when an alias/path pair cannot be resolved."""

    def __init__(self, message: str = "Invalid path"):
        super().__init__(ErrorKind.INVALID_PATH, message)


def alias_of(directory: Union[str, DirectoryAlias, None]) -> Optional[DirectoryAlias]:
    """
    Parse a directory alias.

    Args:
        directory: Alias name, enum member, or None

    Returns:
        The alias, or None for an absent or unknown name (the default root)
    """
    if directory is None:
        return None
    if isinstance(directory, DirectoryAlias):
        return directory
    try:
        return DirectoryAlias(directory)
    except ValueError:
        return None


def base_directory(
    config: StorageConfig,
    directory: Union[str, DirectoryAlias, None]
) -> Optional[str]:
    """Return the base directory for an alias (unknown aliases use data_dir)."""
    alias = alias_of(directory)
    if alias is None:
        return config.data_dir
    return config.roots()[alias]


def strip_leading_separator(relative_path: str) -> str:
    """Remove exactly one leading '/' if present."""
    if relative_path.startswith("/"):
        return relative_path[1:]
    return relative_path


def resolve_path(
    config: StorageConfig,
    relative_path: str,
    directory: Union[str, DirectoryAlias, None] = None
) -> str:
    """
    Resolve a path relative to an alias root.

    The relative path is joined verbatim after dropping a single leading
    separator: repeated separators and '..' segments are kept. Only when
    ``config.confine_paths`` is set are paths escaping the root rejected.

    Args:
        config: Alias configuration
        relative_path: Path relative to the alias root
        directory: Directory alias (None or unknown means the data root)

    Returns:
        Absolute path

    Raises:
        InvalidPathError: If the alias has no base directory on this platform,
            or the path escapes its root while confinement is enabled
    """
    base = base_directory(config, directory)
    if base is None:
        raise InvalidPathError(f"No base directory for {directory}")

    clean = strip_leading_separator(relative_path)
    if not clean:
        resolved = base
    else:
        resolved = base.rstrip(os.sep) + os.sep + clean

    if config.confine_paths and not is_within(resolved, base):
        raise InvalidPathError(f"Path escapes directory boundary: {relative_path}")

    return resolved


def is_within(target_path: str, root: str) -> bool:
    """Check whether target_path, once normalized, stays inside root."""
    root = os.path.normpath(os.path.abspath(root))
    target = os.path.normpath(os.path.abspath(target_path))
    try:
        return os.path.commonpath([root, target]) == root
    except ValueError:
        # Different drives on Windows
        return False
