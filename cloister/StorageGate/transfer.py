"""
StorageGate tree helpers.

Streamed copies, depth-first deletes, and the staged cross-device move.
All helpers raise OSError on the first failure and leave whatever was
already done on disk.
"""

import os
import uuid

from cloister.shared.gate import GateLogger

_log = GateLogger.get("StorageGate")

DEFAULT_CHUNK_SIZE = 8192


def copy_file(source: str, dest: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """Copy one file by streaming fixed-size chunks."""
    with open(source, "rb") as src, open(dest, "wb") as dst:
        while True:
            chunk = src.read(chunk_size)
            if not chunk:
                break
            dst.write(chunk)


def copy_tree(source: str, dest: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """Recursively copy a directory, creating destination directories as needed."""
    os.makedirs(dest, exist_ok=True)
    for name in os.listdir(source):
        src_child = os.path.join(source, name)
        dst_child = os.path.join(dest, name)
        if os.path.isdir(src_child) and not os.path.islink(src_child):
            copy_tree(src_child, dst_child, chunk_size)
        else:
            copy_file(src_child, dst_child, chunk_size)


def copy_entry(source: str, dest: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """Copy a file or a directory tree."""
    if os.path.isdir(source):
        copy_tree(source, dest, chunk_size)
    else:
        copy_file(source, dest, chunk_size)


def remove_entry(path: str) -> None:
    """Remove a file, a symlink, or an empty directory."""
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.remove(path)


def remove_tree(path: str) -> None:
    """
    Delete a subtree depth-first, children before their parent.

    Symlinks are removed, never followed.
    """
    if os.path.isdir(path) and not os.path.islink(path):
        for name in os.listdir(path):
            remove_tree(os.path.join(path, name))
    remove_entry(path)


def staging_path(dest: str) -> str:
    """Hidden sibling of dest used while a copy is in flight."""
    parent, name = os.path.split(dest.rstrip(os.sep))
    return os.path.join(parent, f".{name}.staging-{uuid.uuid4().hex[:8]}")


def staged_move(source: str, dest: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """
    Move by copy-then-delete when a plain rename is not possible.

    The copy is built in a staging sibling and swapped into place with
    os.replace, so dest is never observed half written. If the source
    delete fails afterwards, both copies remain.
    """
    staging = staging_path(dest)
    try:
        copy_entry(source, staging, chunk_size)
        os.replace(staging, dest)
    except OSError:
        if os.path.lexists(staging):
            try:
                remove_tree(staging)
            except OSError as e:
                _log.warning(f"Could not clean up staging copy {staging}: {e}")
        raise
    remove_tree(source)
