"""
Bridge Verb Registry.

Maps every wire verb to its StorageGate method and argument schema.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from cloister.shared.gate import GateLogger
from cloister.StorageGate.models import DirectoryAlias
from cloister.Bridge.models import (
    ArgSchema,
    VerbClass,
    VerbDefinition,
)

_log = GateLogger.get("Bridge")

_ALIASES = [alias.value for alias in DirectoryAlias]


def _path(description: str = "Path relative to the directory alias") -> ArgSchema:
    return ArgSchema(type="string", description=description, required=True)


def _directory(param: Optional[str] = None) -> ArgSchema:
    return ArgSchema(
        type="string",
        description="Directory alias (default: private data root)",
        enum=_ALIASES,
        param=param,
    )


# =============================================================================
# Verb Definitions
# =============================================================================

STORAGE_VERBS: List[Dict[str, Any]] = [
    {
        "verb": "getFile",
        "method": "get_file",
        "description": "Open a file entry, optionally creating it",
        "class": VerbClass.WRITE,
        "nested_options": True,
        "args": {
            "path": _path(),
            "directory": _directory(),
            "create": ArgSchema(type="boolean", description="Create when absent", default=False),
            "exclusive": ArgSchema(type="boolean", description="With create, fail when present", default=False),
        },
    },
    {
        "verb": "getDirectory",
        "method": "get_directory",
        "description": "Open a directory entry, optionally creating it",
        "class": VerbClass.WRITE,
        "nested_options": True,
        "args": {
            "path": _path(),
            "directory": _directory(),
            "create": ArgSchema(type="boolean", description="Create when absent", default=False),
            "exclusive": ArgSchema(type="boolean", description="With create, fail when present", default=False),
        },
    },
    {
        "verb": "readFile",
        "method": "read_file",
        "description": "Read a file as text or base64, optionally a byte range",
        "args": {
            "path": _path(),
            "directory": _directory(),
            "encoding": ArgSchema(type="string", description="utf8, ascii or utf16; omit for base64"),
            "offset": ArgSchema(type="integer", description="First byte to read", default=0),
            "length": ArgSchema(type="integer", description="Maximum bytes to read"),
        },
    },
    {
        "verb": "readAsDataURL",
        "method": "read_as_data_url",
        "description": "Read a file as a data: URL",
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "writeFile",
        "method": "write_file",
        "description": "Write, append or patch a file",
        "class": VerbClass.WRITE,
        "args": {
            "path": _path(),
            "data": ArgSchema(type="string", description="Text or base64 payload", required=True),
            "directory": _directory(),
            "encoding": ArgSchema(type="string", description="Treat data as text"),
            "append": ArgSchema(type="boolean", description="Append to an existing file", default=False),
            "recursive": ArgSchema(type="boolean", description="Create parent directories", default=False),
            "position": ArgSchema(type="integer", description="Byte offset for an in-place write"),
        },
    },
    {
        "verb": "appendFile",
        "method": "append_file",
        "description": "Append to a file",
        "class": VerbClass.WRITE,
        "args": {
            "path": _path(),
            "data": ArgSchema(type="string", description="Text or base64 payload", required=True),
            "directory": _directory(),
            "encoding": ArgSchema(type="string", description="Treat data as text"),
            "recursive": ArgSchema(type="boolean", description="Create parent directories", default=False),
            "position": ArgSchema(type="integer", description="Byte offset for an in-place write"),
        },
    },
    {
        "verb": "deleteFile",
        "method": "delete_file",
        "description": "Delete a file",
        "class": VerbClass.DESTRUCTIVE,
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "mkdir",
        "method": "mkdir",
        "description": "Create a directory",
        "class": VerbClass.WRITE,
        "args": {
            "path": _path(),
            "directory": _directory(),
            "recursive": ArgSchema(type="boolean", description="Create intermediate directories", default=False),
        },
    },
    {
        "verb": "rmdir",
        "method": "rmdir",
        "description": "Delete a directory",
        "class": VerbClass.DESTRUCTIVE,
        "args": {
            "path": _path(),
            "directory": _directory(),
            "recursive": ArgSchema(type="boolean", description="Delete contents too", default=False),
        },
    },
    {
        "verb": "readdir",
        "method": "readdir",
        "description": "List a directory's immediate children",
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "stat",
        "method": "stat",
        "description": "Get type, size, times and locator",
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "getMetadata",
        "method": "get_metadata",
        "description": "Get modification time and size",
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "rename",
        "method": "rename",
        "description": "Rename or move an entry, overwriting the destination",
        "class": VerbClass.DESTRUCTIVE,
        "args": {
            "from": ArgSchema(type="string", description="Source path", required=True, param="source_path"),
            "to": ArgSchema(type="string", description="Destination path", required=True, param="dest_path"),
            "directory": _directory(),
            "toDirectory": _directory(param="to_directory"),
        },
    },
    {
        "verb": "move",
        "method": "move",
        "description": "Move an entry, overwriting the destination",
        "class": VerbClass.DESTRUCTIVE,
        "args": {
            "from": ArgSchema(type="string", description="Source path", required=True, param="source_path"),
            "to": ArgSchema(type="string", description="Destination path", required=True, param="dest_path"),
            "directory": _directory(),
            "toDirectory": _directory(param="to_directory"),
        },
    },
    {
        "verb": "copy",
        "method": "copy",
        "description": "Copy a file or directory tree",
        "class": VerbClass.WRITE,
        "args": {
            "from": ArgSchema(type="string", description="Source path", required=True, param="source_path"),
            "to": ArgSchema(type="string", description="Destination path", required=True, param="dest_path"),
            "directory": _directory(),
            "toDirectory": _directory(param="to_directory"),
        },
    },
    {
        "verb": "exists",
        "method": "exists",
        "description": "Check whether a path exists",
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "getUri",
        "method": "get_uri",
        "description": "Get the file:// locator of a path",
        "args": {
            "path": _path(),
            "directory": _directory(),
        },
    },
    {
        "verb": "truncate",
        "method": "truncate",
        "description": "Set a file's length",
        "class": VerbClass.DESTRUCTIVE,
        "args": {
            "path": _path(),
            "size": ArgSchema(type="integer", description="New length in bytes", required=True),
            "directory": _directory(),
        },
    },
    {
        "verb": "getFreeDiskSpace",
        "method": "get_free_disk_space",
        "description": "Get free bytes on the data volume",
        "args": {},
    },
    {
        "verb": "requestFileSystem",
        "method": "request_file_system",
        "description": "Get the temporary (0) or persistent (1) root",
        "args": {
            "type": ArgSchema(type="integer", description="0 temporary, 1 persistent", default=1, param="fs_type"),
        },
    },
    {
        "verb": "resolveLocalFileSystemURL",
        "method": "resolve_local_url",
        "description": "Resolve a file:// URL to an entry",
        "args": {
            "url": ArgSchema(type="string", description="file:// URL", required=True),
        },
    },
    {
        "verb": "getDirectories",
        "method": "get_directories",
        "description": "Get the locators of all configured roots",
        "args": {},
    },
    {
        "verb": "getPluginVersion",
        "method": "get_version",
        "description": "Get the library version",
        "args": {},
    },
    {
        "verb": "checkPermissions",
        "method": "check_permissions",
        "description": "Get the shared storage permission state",
        "args": {},
    },
    {
        "verb": "requestPermissions",
        "method": "request_permissions",
        "description": "Request shared storage permission",
        "class": VerbClass.PERMISSION,
        "args": {
            "options": ArgSchema(type="object", description="showSettingsAlert, title, message, button titles"),
        },
    },
]


# =============================================================================
# Registry
# =============================================================================


class VerbRegistry:
    """Central registry of all wire verbs."""

    _verbs: Dict[str, VerbDefinition] = {}
    _initialized: bool = False

    @classmethod
    def initialize(cls) -> None:
        """Initialize registry with the StorageGate verbs."""
        if cls._initialized:
            return

        for verb_config in STORAGE_VERBS:
            cls.register(verb_config)

        cls._initialized = True
        _log.info(f"Verb registry initialized with {len(cls._verbs)} verbs")

    @classmethod
    def register(cls, verb_config: Dict[str, Any]) -> VerbDefinition:
        """Register one verb from its config dict."""
        args_schema = {}
        for arg_name, arg_def in verb_config.get("args", {}).items():
            if isinstance(arg_def, ArgSchema):
                args_schema[arg_name] = arg_def
            elif isinstance(arg_def, dict):
                args_schema[arg_name] = ArgSchema(**arg_def)

        definition = VerbDefinition(
            verb=verb_config["verb"],
            method=verb_config["method"],
            description=verb_config.get("description", ""),
            verb_class=verb_config.get("class", VerbClass.READ_ONLY),
            nested_options=verb_config.get("nested_options", False),
            args_schema=args_schema,
        )
        cls._verbs[definition.verb] = definition
        return definition

    @classmethod
    def get_verb(cls, verb: str) -> Optional[VerbDefinition]:
        """Get verb definition by wire name."""
        cls.initialize()
        return cls._verbs.get(verb)

    @classmethod
    def list_verbs(cls, class_filter: Optional[Set[VerbClass]] = None) -> List[VerbDefinition]:
        """List verbs, optionally filtered by effect class."""
        cls.initialize()

        verbs = list(cls._verbs.values())
        if class_filter:
            verbs = [v for v in verbs if v.verb_class in class_filter]
        return verbs

    @classmethod
    def list_verb_names(cls, class_filter: Optional[Set[VerbClass]] = None) -> List[str]:
        """List wire verb names."""
        return [v.verb for v in cls.list_verbs(class_filter)]

    @classmethod
    def reset(cls) -> None:
        """Reset registry (for testing)."""
        cls._verbs = {}
        cls._initialized = False


__all__ = [
    "VerbRegistry",
    "STORAGE_VERBS",
]
