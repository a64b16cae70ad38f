"""
StorageGate entry descriptors.

Builds the uniform descriptor and locator returned for filesystem entries.
"""

import mimetypes
import os
import stat
from pathlib import Path

from .models import EntryDescriptor

DEFAULT_MIME_TYPE = "application/octet-stream"


def to_uri(path: str) -> str:
    """Map a path to its file:// locator. No existence check."""
    return Path(os.path.abspath(path)).as_uri()


def describe(path: str) -> EntryDescriptor:
    """
    Describe a path that the caller has already found to exist.

    Kind flags come from a single stat call. If the entry vanished in
    between, both flags are False.
    """
    try:
        mode = os.stat(path).st_mode
        is_dir = stat.S_ISDIR(mode)
        is_file = stat.S_ISREG(mode)
    except OSError:
        is_dir = is_file = False

    full_path = path if os.path.isabs(path) else os.path.abspath(path)

    return EntryDescriptor(
        is_file=is_file,
        is_directory=is_dir,
        name=os.path.basename(full_path.rstrip(os.sep)),
        full_path=full_path,
        native_url=to_uri(full_path),
    )


def guess_mime_type(path: str) -> str:
    """Infer a MIME type from the file extension."""
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    return mime_type or DEFAULT_MIME_TYPE
