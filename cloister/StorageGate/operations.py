"""
StorageGate file operations.

One function per filesystem verb. Each validates in the same order
(required parameters, path resolution, permission, existence/type),
performs a single OS-level action, and reports an OperationResult instead
of raising.
"""

import base64
import binascii
import os
import shutil
import stat as stat_module
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

from cloister.PermissionGate import PermissionGate, PermissionScope, PermissionState

from .descriptors import describe, guess_mime_type, to_uri
from .models import DirectoryAlias, ErrorKind, OperationResult, StorageConfig
from .resolver import StorageError, alias_of, is_within, resolve_path
from .transfer import copy_entry, remove_entry, remove_tree, staged_move

Directory = Union[str, DirectoryAlias, None]

TEXT_ENCODINGS = {
    "utf8": "utf-8",
    "utf-8": "utf-8",
    "ascii": "ascii",
    "utf16": "utf-16",
    "utf-16": "utf-16",
}


# ==================== Helpers ====================

def _resolve(
    config: StorageConfig,
    operation: str,
    path: str,
    directory: Directory,
    permissions: Optional[PermissionGate],
    write: bool = False,
) -> Tuple[Optional[str], Optional[OperationResult]]:
    """
    Resolve a path and check shared storage permission.

    Returns:
        Tuple of (resolved_path, failure). Exactly one is None.
    """
    try:
        resolved = resolve_path(config, path, directory)
    except StorageError as e:
        return None, OperationResult.fail(operation, e.kind, e.message, path=path)

    alias = alias_of(directory)
    if permissions is not None and alias in config.public_aliases:
        scope = PermissionScope.PUBLIC_STORAGE_WRITE if write else PermissionScope.PUBLIC_STORAGE
        state = permissions.current_state(scope)
        if state != PermissionState.GRANTED:
            return None, OperationResult.fail(
                operation,
                ErrorKind.PERMISSION_DENIED,
                f"Storage permission {scope.value} is {state.value}",
                path=resolved,
            )

    return resolved, None


def _missing(operation: str, *names: str) -> OperationResult:
    joined = " and ".join(names)
    return OperationResult.fail(operation, ErrorKind.MISSING_PARAMETER, f"{joined} required")


def _decode_payload(data: str, encoding: Optional[str]) -> bytes:
    """Text payloads are UTF-8 encoded; others are base64, falling back to literal text."""
    if encoding is not None:
        return data.encode("utf-8")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return data.encode("utf-8")


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)


def _same_entry(source: str, dest: str) -> bool:
    if os.path.normpath(source) == os.path.normpath(dest):
        return True
    try:
        return os.path.samefile(source, dest)
    except OSError:
        return False


def _into_itself(source: str, dest: str) -> bool:
    """True when dest lies inside the directory tree at source."""
    return (
        os.path.isdir(source)
        and not os.path.islink(source)
        and is_within(dest, source)
    )


def _kind_of(path: str) -> str:
    return "directory" if os.path.isdir(path) else "file"


# ==================== Entries ====================

def get_file(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    create: bool = False,
    exclusive: bool = False,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Open or create a file entry.

    Args:
        config: Alias configuration
        path: Path relative to the alias root
        directory: Directory alias
        create: Create the file if it does not exist
        exclusive: With create, fail if the file already exists
        permissions: Permission gate for shared storage aliases

    Returns:
        OperationResult with the entry descriptor in data
    """
    operation = "getFile"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=create)
    if failure:
        return failure

    if os.path.exists(resolved):
        if os.path.isdir(resolved):
            return OperationResult.fail(operation, ErrorKind.TYPE_MISMATCH, "Path is a directory", resolved)
        if create and exclusive:
            return OperationResult.fail(operation, ErrorKind.ALREADY_EXISTS, "File already exists", resolved)
        return OperationResult.ok(operation, resolved, describe(resolved).to_dict())

    if not create:
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File not found", resolved)

    try:
        _ensure_parent(resolved)
        # "x" fails if the file appeared since the existence check
        with open(resolved, "xb"):
            pass
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to create file: {e}", resolved)

    return OperationResult.ok(operation, resolved, describe(resolved).to_dict(), "File created")


def get_directory(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    create: bool = False,
    exclusive: bool = False,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Open or create a directory entry.

    Missing parent directories are always created along with the target.
    """
    operation = "getDirectory"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=create)
    if failure:
        return failure

    if os.path.exists(resolved):
        if not os.path.isdir(resolved):
            return OperationResult.fail(operation, ErrorKind.TYPE_MISMATCH, "Path is a file", resolved)
        if create and exclusive:
            return OperationResult.fail(operation, ErrorKind.ALREADY_EXISTS, "Directory already exists", resolved)
        return OperationResult.ok(operation, resolved, describe(resolved).to_dict())

    if not create:
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "Directory not found", resolved)

    try:
        os.makedirs(resolved)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to create directory: {e}", resolved)

    return OperationResult.ok(operation, resolved, describe(resolved).to_dict(), "Directory created")


# ==================== Reading ====================

def read_file(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    encoding: Optional[str] = None,
    offset: int = 0,
    length: Optional[int] = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Read a file, optionally a byte range.

    Args:
        config: Alias configuration
        path: Path relative to the alias root
        directory: Directory alias
        encoding: utf8, ascii or utf16 to decode as text; None for base64
        offset: First byte to read (negative values read from 0)
        length: Maximum number of bytes (None reads to end of file)
        permissions: Permission gate for shared storage aliases

    Returns:
        OperationResult with {"data": text-or-base64}
    """
    operation = "readFile"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions)
    if failure:
        return failure

    if not os.path.exists(resolved):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File not found", resolved)

    try:
        size = os.path.getsize(resolved)
        start = max(0, offset or 0)
        if start >= size:
            return OperationResult.ok(operation, resolved, {"data": ""})

        remaining = size - start
        count = remaining if length is None else min(max(0, length), remaining)

        with open(resolved, "rb") as f:
            f.seek(start)
            content = f.read(count)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to read file: {e}", resolved)

    if encoding is not None:
        codec = TEXT_ENCODINGS.get(encoding.lower(), "utf-8")
        data = content.decode(codec, errors="replace")
    else:
        data = base64.b64encode(content).decode("ascii")

    return OperationResult.ok(operation, resolved, {"data": data}, f"Read {len(content)} bytes")


def read_as_data_url(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """Read a whole file as a data: URL with an extension-derived MIME type."""
    operation = "readAsDataURL"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions)
    if failure:
        return failure

    if not os.path.exists(resolved):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File not found", resolved)

    try:
        with open(resolved, "rb") as f:
            content = f.read()
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to read file: {e}", resolved)

    payload = base64.b64encode(content).decode("ascii")
    data_url = f"data:{guess_mime_type(resolved)};base64,{payload}"
    return OperationResult.ok(operation, resolved, {"data": data_url})


# ==================== Writing ====================

def write_file(
    config: StorageConfig,
    path: str,
    data: str,
    directory: Directory = None,
    encoding: Optional[str] = None,
    append: bool = False,
    recursive: bool = False,
    position: Optional[int] = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Write data to a file.

    Strategy, by priority: write at ``position`` when the file exists, else
    append when ``append`` is set and the file exists, else truncate/create.

    Args:
        config: Alias configuration
        path: Path relative to the alias root
        data: Text (with encoding) or base64 payload
        directory: Directory alias
        encoding: When set, data is written as UTF-8 text
        append: Append to an existing file
        recursive: Create missing parent directories first
        position: Byte offset for an in-place write
        permissions: Permission gate for shared storage aliases

    Returns:
        OperationResult with {"uri": locator}
    """
    operation = "writeFile"
    if path is None or data is None:
        return _missing(operation, "path", "data")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=True)
    if failure:
        return failure

    payload = _decode_payload(data, encoding)

    try:
        if recursive:
            _ensure_parent(resolved)

        file_exists = os.path.exists(resolved)

        if position is not None and file_exists:
            with open(resolved, "r+b") as f:
                f.seek(max(0, position))
                f.write(payload)
        elif append and file_exists:
            with open(resolved, "ab") as f:
                f.write(payload)
        else:
            with open(resolved, "wb") as f:
                f.write(payload)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to write file: {e}", resolved)

    return OperationResult.ok(
        operation,
        resolved,
        {"uri": to_uri(resolved)},
        f"Wrote {len(payload)} bytes",
    )


def append_file(
    config: StorageConfig,
    path: str,
    data: str,
    **kwargs: Any,
) -> OperationResult:
    """write_file with append forced on; every other argument passes through."""
    kwargs["append"] = True
    result = write_file(config, path, data, **kwargs)
    result.operation = "appendFile"
    return result


def truncate(
    config: StorageConfig,
    path: str,
    size: int,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """Set a file's length exactly, zero-padding when it grows."""
    operation = "truncate"
    if path is None or size is None:
        return _missing(operation, "path", "size")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=True)
    if failure:
        return failure

    if not os.path.exists(resolved):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File not found", resolved)

    if size < 0:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, "Size must not be negative", resolved)

    try:
        with open(resolved, "r+b") as f:
            f.truncate(size)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to truncate file: {e}", resolved)

    return OperationResult.ok(operation, resolved, message=f"Truncated to {size} bytes")


# ==================== Deleting ====================

def delete_file(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """Delete a file (or an empty directory)."""
    operation = "deleteFile"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=True)
    if failure:
        return failure

    if not os.path.lexists(resolved):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File not found", resolved)

    try:
        remove_entry(resolved)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.DELETE_FAILED, f"Failed to delete file: {e}", resolved)

    return OperationResult.ok(operation, resolved, message="Deleted")


# ==================== Directories ====================

def mkdir(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    recursive: bool = False,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Create a directory.

    Succeeds whenever the target exists once the attempt is over, so
    repeating a mkdir is not an error.
    """
    operation = "mkdir"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=True)
    if failure:
        return failure

    error: Optional[OSError] = None
    try:
        if recursive:
            os.makedirs(resolved)
        else:
            os.mkdir(resolved)
    except OSError as e:
        error = e

    if os.path.exists(resolved):
        return OperationResult.ok(operation, resolved, message="Directory created" if error is None else "Directory exists")

    return OperationResult.fail(operation, ErrorKind.MKDIR_FAILED, f"Failed to create directory: {error}", resolved)


def rmdir(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    recursive: bool = False,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Delete a directory.

    Without ``recursive`` a directory with children fails NotEmpty. With it,
    the subtree is removed depth-first and the first failure aborts, leaving
    what was not yet deleted.
    """
    operation = "rmdir"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions, write=True)
    if failure:
        return failure

    if not os.path.exists(resolved):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "Directory not found", resolved)

    try:
        if recursive:
            remove_tree(resolved)
        else:
            if os.path.isdir(resolved) and os.listdir(resolved):
                return OperationResult.fail(operation, ErrorKind.NOT_EMPTY, "Directory is not empty", resolved)
            remove_entry(resolved)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.DELETE_FAILED, f"Failed to delete directory: {e}", resolved)

    return OperationResult.ok(operation, resolved, message="Directory deleted")


def readdir(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """List the immediate children of a directory."""
    operation = "readdir"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions)
    if failure:
        return failure

    if not os.path.isdir(resolved):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "Directory not found", resolved)

    try:
        names = sorted(os.listdir(resolved))
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to list directory: {e}", resolved)

    entries = [describe(os.path.join(resolved, name)).to_dict() for name in names]
    return OperationResult.ok(operation, resolved, {"entries": entries}, f"Listed {len(entries)} items")


# ==================== Metadata ====================

def _creation_time(st: os.stat_result) -> float:
    return getattr(st, "st_birthtime", st.st_ctime)


def stat(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Report type, size, times and locator.

    Times are epoch milliseconds; directories report size 0.
    """
    operation = "stat"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions)
    if failure:
        return failure

    try:
        st = os.stat(resolved)
    except FileNotFoundError:
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File or directory not found", resolved)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to stat: {e}", resolved)

    is_dir = stat_module.S_ISDIR(st.st_mode)
    return OperationResult.ok(operation, resolved, {
        "type": "directory" if is_dir else "file",
        "size": 0 if is_dir else st.st_size,
        "mtime": int(st.st_mtime * 1000),
        "ctime": int(_creation_time(st) * 1000),
        "uri": to_uri(resolved),
    })


def get_metadata(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """Reduced stat: modification time and size only."""
    result = stat(config, path, directory, permissions)
    result.operation = "getMetadata"
    if result.success:
        result.data = {
            "modificationTime": result.data["mtime"],
            "size": result.data["size"],
        }
    return result


def exists(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """Report whether a path exists, and its type when it does."""
    operation = "exists"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions)
    if failure:
        return failure

    if not os.path.exists(resolved):
        return OperationResult.ok(operation, resolved, {"exists": False})
    return OperationResult.ok(operation, resolved, {"exists": True, "type": _kind_of(resolved)})


def get_uri(
    config: StorageConfig,
    path: str,
    directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """Map a path to its locator without touching the filesystem."""
    operation = "getUri"
    if path is None:
        return _missing(operation, "path")

    resolved, failure = _resolve(config, operation, path, directory, permissions)
    if failure:
        return failure

    return OperationResult.ok(operation, resolved, {"uri": to_uri(resolved)})


# ==================== Transfers ====================

def rename(
    config: StorageConfig,
    source_path: str,
    dest_path: str,
    directory: Directory = None,
    to_directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Rename or move a file or directory.

    An existing destination is removed first. A plain rename is tried
    before falling back to a staged copy-then-delete.

    Args:
        config: Alias configuration
        source_path: Source path relative to its alias root
        dest_path: Destination path relative to its alias root
        directory: Source alias
        to_directory: Destination alias (defaults to the source alias)
        permissions: Permission gate for shared storage aliases

    Returns:
        OperationResult
    """
    operation = "rename"
    if source_path is None or dest_path is None:
        return _missing(operation, "from", "to")

    if to_directory is None:
        to_directory = directory

    source, failure = _resolve(config, operation, source_path, directory, permissions, write=True)
    if failure:
        return failure
    dest, failure = _resolve(config, operation, dest_path, to_directory, permissions, write=True)
    if failure:
        return failure

    if not os.path.lexists(source):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "Source file not found", source)

    if _same_entry(source, dest):
        return OperationResult.ok(operation, dest, message="Source and destination are the same entry")
    if _into_itself(source, dest):
        return OperationResult.fail(
            operation, ErrorKind.RENAME_FAILED, "Cannot move a directory into itself", source
        )

    try:
        _ensure_parent(dest)
        if os.path.lexists(dest):
            remove_tree(dest)
        try:
            os.rename(source, dest)
        except OSError:
            staged_move(source, dest, config.copy_chunk_size)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.RENAME_FAILED, f"Failed to rename: {e}", source)

    return OperationResult.ok(operation, dest, message=f"Moved from {source_path} to {dest_path}")


def move(config: StorageConfig, source_path: str, dest_path: str, **kwargs: Any) -> OperationResult:
    """Same contract as rename."""
    result = rename(config, source_path, dest_path, **kwargs)
    result.operation = "move"
    return result


def copy(
    config: StorageConfig,
    source_path: str,
    dest_path: str,
    directory: Directory = None,
    to_directory: Directory = None,
    permissions: Optional[PermissionGate] = None,
) -> OperationResult:
    """
    Copy a file, or a directory tree, to a destination.

    Files are streamed in ``config.copy_chunk_size`` chunks. The first
    failure aborts and the partial copy is left in place.
    """
    operation = "copy"
    if source_path is None or dest_path is None:
        return _missing(operation, "from", "to")

    if to_directory is None:
        to_directory = directory

    source, failure = _resolve(config, operation, source_path, directory, permissions)
    if failure:
        return failure
    dest, failure = _resolve(config, operation, dest_path, to_directory, permissions, write=True)
    if failure:
        return failure

    if not os.path.exists(source):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "Source file not found", source)

    # dest may be neither source itself nor inside it
    if _same_entry(source, dest) or _into_itself(source, dest):
        return OperationResult.fail(
            operation, ErrorKind.COPY_FAILED, "Cannot copy an entry onto or into itself", source
        )

    try:
        _ensure_parent(dest)
        copy_entry(source, dest, config.copy_chunk_size)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.COPY_FAILED, f"Failed to copy: {e}", dest)

    return OperationResult.ok(operation, dest, {"uri": to_uri(dest)}, f"Copied from {source_path} to {dest_path}")


# ==================== Volumes and roots ====================

def get_free_disk_space(config: StorageConfig) -> OperationResult:
    """Available bytes on the volume backing the private data root."""
    operation = "getFreeDiskSpace"
    try:
        usage = shutil.disk_usage(config.data_dir)
    except OSError as e:
        return OperationResult.fail(operation, ErrorKind.IO_FAILURE, f"Failed to query disk space: {e}", config.data_dir)
    return OperationResult.ok(operation, config.data_dir, {"free": usage.free})


def request_file_system(config: StorageConfig, fs_type: int = 1) -> OperationResult:
    """Describe the temporary (0, cache root) or persistent (data root) file system."""
    operation = "requestFileSystem"
    temporary = fs_type == 0
    root = config.cache_dir if temporary else config.data_dir
    if root is None:
        return OperationResult.fail(operation, ErrorKind.INVALID_PATH, "No cache directory configured")

    return OperationResult.ok(operation, root, {
        "name": "temporary" if temporary else "persistent",
        "root": describe(root).to_dict(),
    })


def resolve_local_url(config: StorageConfig, url: str) -> OperationResult:
    """Map a file:// URL back to an entry descriptor."""
    operation = "resolveLocalFileSystemURL"
    if url is None:
        return _missing(operation, "url")

    parsed = urlparse(url)
    if parsed.scheme not in ("", "file") or not parsed.path:
        return OperationResult.fail(operation, ErrorKind.INVALID_PATH, "Invalid URL", url)

    path = unquote(parsed.path)
    if not os.path.exists(path):
        return OperationResult.fail(operation, ErrorKind.NOT_FOUND, "File or directory not found", path)

    return OperationResult.ok(operation, path, describe(path).to_dict())


def get_directories(config: StorageConfig) -> OperationResult:
    """Locators of every configured alias root."""
    roots = config.roots()
    named: Dict[str, Optional[str]] = {
        "dataDirectory": roots[DirectoryAlias.DATA],
        "documentsDirectory": roots[DirectoryAlias.DOCUMENTS],
        "libraryDirectory": roots[DirectoryAlias.LIBRARY],
        "cacheDirectory": roots[DirectoryAlias.CACHE],
        "tempDirectory": roots[DirectoryAlias.CACHE],
        "applicationDirectory": roots[DirectoryAlias.APPLICATION],
        "externalRootDirectory": roots[DirectoryAlias.EXTERNAL],
        "externalDataDirectory": roots[DirectoryAlias.EXTERNAL_STORAGE],
    }
    data = {key: to_uri(value) for key, value in named.items() if value is not None}
    return OperationResult.ok("getDirectories", config.data_dir, data)
