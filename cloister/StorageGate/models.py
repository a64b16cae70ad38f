"""
StorageGate Pydantic models.

Defines directory aliases, the alias configuration, entry descriptors,
operation results, and the error taxonomy.
"""

import os
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DirectoryAlias(str, Enum):
    """Symbolic base directories a caller can address."""
    DOCUMENTS = "DOCUMENTS"
    DATA = "DATA"
    LIBRARY = "LIBRARY"
    CACHE = "CACHE"
    EXTERNAL = "EXTERNAL"
    EXTERNAL_STORAGE = "EXTERNAL_STORAGE"
    APPLICATION = "APPLICATION"


class ErrorKind(str, Enum):
    """Stable failure kinds reported to callers."""
    MISSING_PARAMETER = "MissingParameter"
    INVALID_PATH = "InvalidPath"
    NOT_FOUND = "NotFound"
    TYPE_MISMATCH = "TypeMismatch"
    ALREADY_EXISTS = "AlreadyExists"
    NOT_EMPTY = "NotEmpty"
    DELETE_FAILED = "DeleteFailed"
    MKDIR_FAILED = "MkdirFailed"
    RENAME_FAILED = "RenameFailed"
    COPY_FAILED = "CopyFailed"
    IO_FAILURE = "IOFailure"
    PERMISSION_DENIED = "PermissionDenied"


class StorageConfig(BaseModel):
    """
    Alias table and behaviour switches for StorageGate.

    Any alias root left as None is treated as unavailable on this platform,
    and paths under it fail with InvalidPath.
    """
    data_dir: str = Field(description="Private data root; default for unknown aliases")
    documents_dir: Optional[str] = Field(default=None, description="Defaults to <data_dir>/Documents")
    library_dir: Optional[str] = Field(default=None, description="Defaults to data_dir")
    cache_dir: Optional[str] = None
    external_dir: Optional[str] = Field(default=None, description="Shared/public storage root")
    external_storage_dir: Optional[str] = Field(default=None, description="App-specific external storage")
    application_dir: Optional[str] = Field(default=None, description="Installed application bundle")
    public_aliases: List[DirectoryAlias] = Field(
        default_factory=lambda: [DirectoryAlias.EXTERNAL],
        description="Aliases that require a permission grant"
    )
    confine_paths: bool = Field(default=False, description="Reject paths escaping their alias root")
    copy_chunk_size: int = Field(default=8192, ge=1)

    @field_validator(
        "data_dir", "documents_dir", "library_dir", "cache_dir",
        "external_dir", "external_storage_dir", "application_dir",
    )
    @classmethod
    def _absolute(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return os.path.abspath(os.path.expanduser(value))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageConfig":
        """Create from dict."""
        return cls.model_validate(data)

    @classmethod
    def from_settings(cls) -> "StorageConfig":
        """Build the alias table from Cloister configuration (env, .env, config.json)."""
        from cloister import Config

        return cls(
            data_dir=Config.get("CLOISTER_DATA_DIR"),
            documents_dir=Config.get("CLOISTER_DOCUMENTS_DIR"),
            library_dir=Config.get("CLOISTER_LIBRARY_DIR"),
            cache_dir=Config.get("CLOISTER_CACHE_DIR"),
            external_dir=Config.get("CLOISTER_EXTERNAL_DIR"),
            external_storage_dir=Config.get("CLOISTER_EXTERNAL_STORAGE_DIR"),
            application_dir=Config.get("CLOISTER_APPLICATION_DIR"),
            public_aliases=Config.get("CLOISTER_PUBLIC_ALIASES", []),
            confine_paths=Config.get("CLOISTER_CONFINE_PATHS", False),
            copy_chunk_size=Config.get("CLOISTER_COPY_CHUNK_SIZE", 8192),
        )

    def roots(self) -> Dict[DirectoryAlias, Optional[str]]:
        """Base directory per alias, None where the platform has none."""
        return {
            DirectoryAlias.DOCUMENTS: self.documents_dir or os.path.join(self.data_dir, "Documents"),
            DirectoryAlias.DATA: self.data_dir,
            DirectoryAlias.LIBRARY: self.library_dir or self.data_dir,
            DirectoryAlias.CACHE: self.cache_dir,
            DirectoryAlias.EXTERNAL: self.external_dir,
            DirectoryAlias.EXTERNAL_STORAGE: self.external_storage_dir,
            DirectoryAlias.APPLICATION: self.application_dir,
        }


class EntryDescriptor(BaseModel):
    """Snapshot of a file or directory at the moment it was described."""
    model_config = ConfigDict(populate_by_name=True)

    is_file: bool = Field(alias="isFile")
    is_directory: bool = Field(alias="isDirectory")
    name: str
    full_path: str = Field(alias="fullPath")
    native_url: str = Field(alias="nativeURL", description="file:// locator")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict using wire field names."""
        return self.model_dump(mode="json", by_alias=True)


class OperationResult(BaseModel):
    """Result of a storage operation."""
    success: bool
    operation: str = Field(description="Operation name, e.g. readFile")
    path: str = ""
    message: str = ""
    data: Optional[Any] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")

    @classmethod
    def ok(
        cls,
        operation: str,
        path: str = "",
        data: Any = None,
        message: str = "",
    ) -> "OperationResult":
        """Create a successful result."""
        return cls(success=True, operation=operation, path=path, data=data, message=message)

    @classmethod
    def fail(
        cls,
        operation: str,
        kind: ErrorKind,
        error: str,
        path: str = "",
    ) -> "OperationResult":
        """Create a failed result."""
        return cls(success=False, operation=operation, path=path, error=error, error_kind=kind)
