"""
StorageGate - Directory-scoped file access for Cloister.

Provides:
- Directory aliases (DOCUMENTS, DATA, CACHE, EXTERNAL, ...) resolved to roots
- File and directory verbs with a uniform result/error shape
- Permission checks for shared (public) storage aliases
- Optional confinement of paths to their alias root

Usage:
    from cloister import StorageGate

    # Initialize (call on startup)
    StorageGate.initialize(config=StorageConfig(data_dir="/srv/app/data"))

    # Write then read a text file
    StorageGate.write_file("notes/today.txt", "hello", directory="DOCUMENTS", encoding="utf8", recursive=True)
    result = StorageGate.read_file("notes/today.txt", directory="DOCUMENTS", encoding="utf8")

    # List a directory
    result = StorageGate.readdir("notes", directory="DOCUMENTS")
"""

import os
from typing import Optional, List, Dict, Any, Union

from cloister.shared.gate import (
    GateLogger,
    ConfigLoader,
    PathUtils,
    build_health_status,
)
from cloister import PermissionGate as permission_gate
from cloister.PermissionGate import (
    PermissionGate,
    PermissionRequestOptions,
    PermissionScope,
    PermissionState,
    PermissionStatus,
)

from .models import (
    DirectoryAlias,
    ErrorKind,
    StorageConfig,
    EntryDescriptor,
    OperationResult,
)
from .resolver import (
    StorageError,
    InvalidPathError,
    resolve_path,
)
from . import operations as ops

# Logger for this gate
_log = GateLogger.get("StorageGate")

# Module-level state
_config: Optional[StorageConfig] = None
_permissions: Optional[PermissionGate] = None
_initialized: bool = False
_config_path: Optional[str] = None

Directory = Union[str, DirectoryAlias, None]


class StorageGate:
    """
    Main interface for Cloister's file access.

    All methods are class methods for easy access throughout the application.
    """

    @classmethod
    def initialize(
        cls,
        config: Optional[StorageConfig] = None,
        config_path: Optional[str] = None,
        permissions: Optional[PermissionGate] = None,
    ) -> bool:
        """
        Initialize the storage gate.

        The alias table comes from, in order: the ``config`` argument, the JSON
        file at ``config_path``, or Cloister settings (env / .env / config.json).
        A settings-derived table is written to ``config_path`` when that file
        does not exist yet.

        Args:
            config: Explicit alias configuration
            config_path: Path to a JSON alias configuration
            permissions: Permission gate (default: built from settings)

        Returns:
            True if initialization successful
        """
        global _config, _permissions, _initialized, _config_path

        try:
            _config_path = config_path

            if config is None and config_path:
                config = ConfigLoader.load(config_path, StorageConfig)
            if config is None:
                config = StorageConfig.from_settings()
                if config_path and not os.path.exists(config_path):
                    ConfigLoader.save(config_path, config)

            PathUtils.ensure_dirs(config.data_dir)

            _config = config
            _permissions = permissions if permissions is not None else permission_gate.from_settings()
            _initialized = True
            _log.info(f"Initialized with data root {config.data_dir}")
            return True

        except (OSError, ValueError) as e:
            _log.error(f"Initialization failed: {e}")
            return False

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if the gate is initialized."""
        return _initialized

    @classmethod
    def _get_config(cls) -> StorageConfig:
        """Get current config, initializing if needed."""
        if _config is None:
            if not cls.initialize():
                raise RuntimeError("StorageGate initialization failed. Check CLOISTER_DATA_DIR.")
        return _config

    @classmethod
    def _report(cls, result: OperationResult) -> OperationResult:
        if result.success:
            _log.debug(f"{result.operation} {result.path}")
        else:
            _log.warning(f"{result.operation} failed [{result.error_kind.value}]: {result.error}")
        return result

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Get the alias configuration as a dict."""
        return cls._get_config().to_dict()

    @classmethod
    def get_permission_gate(cls) -> Optional[PermissionGate]:
        """Get the permission gate in use."""
        cls._get_config()
        return _permissions

    @classmethod
    def resolve(cls, path: str, directory: Directory = None) -> str:
        """
        Resolve an alias/path pair without touching the filesystem.

        Raises:
            InvalidPathError: If the pair cannot be resolved
        """
        return resolve_path(cls._get_config(), path, directory)

    # ==================== Health Checks ====================

    @classmethod
    def is_healthy(cls) -> bool:
        """Check if the gate is operational."""
        if not _initialized:
            return False

        data_dir = cls._get_config().data_dir
        return os.path.isdir(data_dir) and os.access(data_dir, os.W_OK)

    @classmethod
    def get_health_status(cls) -> Dict[str, Any]:
        """Get detailed health information."""
        checks = {}
        details = {}

        if _initialized:
            config = cls._get_config()
            checks["data_root_writable"] = os.path.isdir(config.data_dir) and os.access(config.data_dir, os.W_OK)

            configured = 0
            for alias, root in config.roots().items():
                if root is None:
                    continue
                configured += 1
                checks[f"root_{alias.value.lower()}"] = os.path.isdir(root)

            details["data_dir"] = config.data_dir
            details["configured_roots"] = configured
            details["confine_paths"] = config.confine_paths
            details["permission_gate"] = type(_permissions).__name__ if _permissions else None

        return build_health_status(
            gate_name="StorageGate",
            initialized=_initialized,
            dependencies=["filesystem"],
            checks=checks,
            details=details,
        )

    @classmethod
    def get_dependencies(cls) -> List[str]:
        """List external dependencies."""
        return ["filesystem"]

    # ==================== Entries ====================

    @classmethod
    def get_file(
        cls,
        path: str,
        directory: Directory = None,
        create: bool = False,
        exclusive: bool = False,
    ) -> OperationResult:
        """
        Open or create a file entry.

        Args:
            path: Path relative to the alias root
            directory: Directory alias
            create: Create the file when absent
            exclusive: With create, fail when the file exists

        Returns:
            OperationResult with the entry descriptor in data
        """
        return cls._report(ops.get_file(
            cls._get_config(), path, directory, create, exclusive, permissions=_permissions
        ))

    @classmethod
    def get_directory(
        cls,
        path: str,
        directory: Directory = None,
        create: bool = False,
        exclusive: bool = False,
    ) -> OperationResult:
        """Open or create a directory entry."""
        return cls._report(ops.get_directory(
            cls._get_config(), path, directory, create, exclusive, permissions=_permissions
        ))

    # ==================== File Operations ====================

    @classmethod
    def read_file(
        cls,
        path: str,
        directory: Directory = None,
        encoding: Optional[str] = None,
        offset: int = 0,
        length: Optional[int] = None,
    ) -> OperationResult:
        """
        Read a file's contents.

        Args:
            path: Path relative to the alias root
            directory: Directory alias
            encoding: utf8, ascii or utf16 for text; None for base64
            offset: First byte to read
            length: Maximum number of bytes

        Returns:
            OperationResult with {"data": ...}
        """
        return cls._report(ops.read_file(
            cls._get_config(), path, directory, encoding, offset, length, permissions=_permissions
        ))

    @classmethod
    def read_as_data_url(cls, path: str, directory: Directory = None) -> OperationResult:
        """Read a file as a data: URL."""
        return cls._report(ops.read_as_data_url(cls._get_config(), path, directory, permissions=_permissions))

    @classmethod
    def write_file(
        cls,
        path: str,
        data: str,
        directory: Directory = None,
        encoding: Optional[str] = None,
        append: bool = False,
        recursive: bool = False,
        position: Optional[int] = None,
    ) -> OperationResult:
        """
        Write content to a file.

        Args:
            path: Path relative to the alias root
            data: Text (with encoding) or base64 payload
            directory: Directory alias
            encoding: Treat data as text
            append: Append to an existing file
            recursive: Create parent directories
            position: Byte offset for an in-place write

        Returns:
            OperationResult with {"uri": ...}
        """
        return cls._report(ops.write_file(
            cls._get_config(), path, data, directory, encoding, append, recursive, position,
            permissions=_permissions,
        ))

    @classmethod
    def append_file(
        cls,
        path: str,
        data: str,
        directory: Directory = None,
        encoding: Optional[str] = None,
        recursive: bool = False,
        position: Optional[int] = None,
    ) -> OperationResult:
        """Append content to a file."""
        return cls._report(ops.append_file(
            cls._get_config(), path, data,
            directory=directory, encoding=encoding, recursive=recursive, position=position,
            permissions=_permissions,
        ))

    @classmethod
    def truncate(cls, path: str, size: int, directory: Directory = None) -> OperationResult:
        """Set a file's length."""
        return cls._report(ops.truncate(cls._get_config(), path, size, directory, permissions=_permissions))

    @classmethod
    def delete_file(cls, path: str, directory: Directory = None) -> OperationResult:
        """Delete a file."""
        return cls._report(ops.delete_file(cls._get_config(), path, directory, permissions=_permissions))

    # ==================== Directory Operations ====================

    @classmethod
    def mkdir(cls, path: str, directory: Directory = None, recursive: bool = False) -> OperationResult:
        """Create a directory (idempotent)."""
        return cls._report(ops.mkdir(cls._get_config(), path, directory, recursive, permissions=_permissions))

    @classmethod
    def rmdir(cls, path: str, directory: Directory = None, recursive: bool = False) -> OperationResult:
        """Delete a directory, optionally with its contents."""
        return cls._report(ops.rmdir(cls._get_config(), path, directory, recursive, permissions=_permissions))

    @classmethod
    def readdir(cls, path: str, directory: Directory = None) -> OperationResult:
        """List a directory's immediate children."""
        return cls._report(ops.readdir(cls._get_config(), path, directory, permissions=_permissions))

    # ==================== Metadata ====================

    @classmethod
    def stat(cls, path: str, directory: Directory = None) -> OperationResult:
        """Get type, size, times and locator."""
        return cls._report(ops.stat(cls._get_config(), path, directory, permissions=_permissions))

    @classmethod
    def get_metadata(cls, path: str, directory: Directory = None) -> OperationResult:
        """Get modification time and size."""
        return cls._report(ops.get_metadata(cls._get_config(), path, directory, permissions=_permissions))

    @classmethod
    def exists(cls, path: str, directory: Directory = None) -> OperationResult:
        """Check whether a path exists."""
        return cls._report(ops.exists(cls._get_config(), path, directory, permissions=_permissions))

    @classmethod
    def get_uri(cls, path: str, directory: Directory = None) -> OperationResult:
        """Get the file:// locator of a path."""
        return cls._report(ops.get_uri(cls._get_config(), path, directory, permissions=_permissions))

    # ==================== Transfers ====================

    @classmethod
    def rename(
        cls,
        source_path: str,
        dest_path: str,
        directory: Directory = None,
        to_directory: Directory = None,
    ) -> OperationResult:
        """
        Rename or move a file or directory.

        An existing destination is overwritten.

        Args:
            source_path: Source path
            dest_path: Destination path
            directory: Source alias
            to_directory: Destination alias (defaults to the source alias)

        Returns:
            OperationResult
        """
        return cls._report(ops.rename(
            cls._get_config(), source_path, dest_path, directory, to_directory, permissions=_permissions
        ))

    @classmethod
    def move(
        cls,
        source_path: str,
        dest_path: str,
        directory: Directory = None,
        to_directory: Directory = None,
    ) -> OperationResult:
        """Move a file or directory (same as rename)."""
        return cls._report(ops.move(
            cls._get_config(), source_path, dest_path,
            directory=directory, to_directory=to_directory, permissions=_permissions,
        ))

    @classmethod
    def copy(
        cls,
        source_path: str,
        dest_path: str,
        directory: Directory = None,
        to_directory: Directory = None,
    ) -> OperationResult:
        """Copy a file or directory tree."""
        return cls._report(ops.copy(
            cls._get_config(), source_path, dest_path, directory, to_directory, permissions=_permissions
        ))

    # ==================== Volumes and Roots ====================

    @classmethod
    def get_free_disk_space(cls) -> OperationResult:
        """Get free bytes on the data volume."""
        return cls._report(ops.get_free_disk_space(cls._get_config()))

    @classmethod
    def request_file_system(cls, fs_type: int = 1) -> OperationResult:
        """Get the temporary (0) or persistent file system root."""
        return cls._report(ops.request_file_system(cls._get_config(), fs_type))

    @classmethod
    def resolve_local_url(cls, url: str) -> OperationResult:
        """Resolve a file:// URL to an entry descriptor."""
        return cls._report(ops.resolve_local_url(cls._get_config(), url))

    @classmethod
    def get_directories(cls) -> OperationResult:
        """Get the locators of all configured alias roots."""
        return cls._report(ops.get_directories(cls._get_config()))

    @classmethod
    def get_version(cls) -> OperationResult:
        """Get the library version."""
        from cloister import __version__

        return OperationResult.ok("getPluginVersion", data={"version": __version__})

    # ==================== Permissions ====================

    @classmethod
    def check_permissions(cls) -> OperationResult:
        """Report the shared storage permission state without prompting."""
        cls._get_config()
        state = PermissionState.GRANTED
        if _permissions is not None:
            state = _permissions.current_state(PermissionScope.PUBLIC_STORAGE)
        status = PermissionStatus(public_storage=state)
        return OperationResult.ok("checkPermissions", data=status.to_dict())

    @classmethod
    def request_permissions(
        cls,
        options: Optional[Union[PermissionRequestOptions, Dict[str, Any]]] = None,
    ) -> OperationResult:
        """
        Request shared storage permission.

        Blocks while the permission gate's prompter waits on the user.

        Args:
            options: Settings alert options (model or wire-keyed dict)

        Returns:
            OperationResult with {"publicStorage": state}
        """
        cls._get_config()
        if isinstance(options, dict):
            options = PermissionRequestOptions.from_dict(options)

        state = PermissionState.GRANTED
        if _permissions is not None:
            state = _permissions.request(PermissionScope.PUBLIC_STORAGE, options)
        status = PermissionStatus(public_storage=state)
        return OperationResult.ok("requestPermissions", data=status.to_dict())


# ==================== Convenience Functions ====================

def initialize(
    config: Optional[StorageConfig] = None,
    config_path: Optional[str] = None,
    permissions: Optional[PermissionGate] = None,
) -> bool:
    """Initialize StorageGate."""
    return StorageGate.initialize(config, config_path, permissions)


def is_initialized() -> bool:
    """Check if initialized."""
    return StorageGate.is_initialized()


def get_health_status() -> Dict[str, Any]:
    """Get health status."""
    return StorageGate.get_health_status()


def read_file(path: str, directory: Directory = None, **kwargs) -> OperationResult:
    """Read a file."""
    return StorageGate.read_file(path, directory, **kwargs)


def write_file(path: str, data: str, directory: Directory = None, **kwargs) -> OperationResult:
    """Write a file."""
    return StorageGate.write_file(path, data, directory, **kwargs)


def readdir(path: str, directory: Directory = None) -> OperationResult:
    """List a directory."""
    return StorageGate.readdir(path, directory)


def mkdir(path: str, directory: Directory = None, recursive: bool = False) -> OperationResult:
    """Create a directory."""
    return StorageGate.mkdir(path, directory, recursive)


def stat(path: str, directory: Directory = None) -> OperationResult:
    """Stat a path."""
    return StorageGate.stat(path, directory)


def get_info() -> dict:
    """
    Get documentation for StorageGate.

    Returns:
        Dict with purpose, aliases, error kinds and call conventions.
    """
    return {
        "gate": "StorageGate",
        "version": "1.0",
        "purpose": "Directory-scoped file access. Every path is relative to a directory alias; "
                   "results share one shape whatever the verb.",

        "aliases": {alias.value: alias.name.lower() for alias in DirectoryAlias},

        "error_kinds": [kind.value for kind in ErrorKind],

        "conventions": {
            "paths": "One leading '/' is stripped; the rest is joined verbatim to the alias root",
            "unknown_alias": "An absent or unknown alias resolves against the data root",
            "binary_data": "Without an encoding, readFile returns and writeFile accepts base64",
            "shared_storage": "Aliases in public_aliases require a permission grant",
        },

        "best_practices": [
            "Check result.success before using result.data",
            "Pass recursive=True to writeFile when parent directories may be missing",
            "Enable confine_paths when paths come from untrusted input",
        ],
    }


__all__ = [
    # Class
    "StorageGate",
    # Lifecycle
    "initialize",
    "is_initialized",
    "get_health_status",
    # File operations
    "read_file",
    "write_file",
    "readdir",
    "mkdir",
    "stat",
    # Models
    "DirectoryAlias",
    "ErrorKind",
    "StorageConfig",
    "EntryDescriptor",
    "OperationResult",
    # Errors
    "StorageError",
    "InvalidPathError",
    # Documentation
    "get_info",
]
