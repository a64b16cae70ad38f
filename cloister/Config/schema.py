"""
Configuration schema for Cloister.

Defines all configurable options with metadata for validation
and documentation.
"""

from enum import Enum
from typing import Optional, List, Any
from dataclasses import dataclass


class ConfigType(Enum):
    """Configuration value types."""
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    PATH = "path"          # File system path
    LIST = "list"          # Comma-separated values


class ConfigCategory(Enum):
    """Configuration categories for grouping."""
    PATHS = "paths"
    SECURITY = "security"
    PLATFORM = "platform"
    TRANSFER = "transfer"


@dataclass
class ConfigField:
    """Definition of a configuration field."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    required: bool = False
    default: Any = None
    env_var: Optional[str] = None      # Override env var name (defaults to key)
    validation: Optional[str] = None   # Regex pattern
    options: Optional[List[str]] = None

    def __post_init__(self):
        if self.env_var is None:
            self.env_var = self.key


# ==================== Schema Definition ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Paths ===
    ConfigField(
        key="CLOISTER_DATA_DIR",
        description="Private data root (DATA alias and default for unknown aliases)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        required=True,
        default="data/storage",
    ),
    ConfigField(
        key="CLOISTER_DOCUMENTS_DIR",
        description="DOCUMENTS alias root (defaults to <data dir>/Documents)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
    ),
    ConfigField(
        key="CLOISTER_LIBRARY_DIR",
        description="LIBRARY alias root (defaults to the data dir)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
    ),
    ConfigField(
        key="CLOISTER_CACHE_DIR",
        description="CACHE alias root, may be cleared by the host",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        default="data/cache",
    ),
    ConfigField(
        key="CLOISTER_EXTERNAL_DIR",
        description="EXTERNAL alias root (shared/public storage)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
    ),
    ConfigField(
        key="CLOISTER_EXTERNAL_STORAGE_DIR",
        description="EXTERNAL_STORAGE alias root (app-specific external storage)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
    ),
    ConfigField(
        key="CLOISTER_APPLICATION_DIR",
        description="APPLICATION alias root (installed application bundle)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
    ),
    ConfigField(
        key="CLOISTER_CONFIG_PATH",
        description="JSON file holding the StorageGate alias table (overrides the keys above)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
    ),

    # === Security ===
    ConfigField(
        key="CLOISTER_CONFINE_PATHS",
        description="Reject relative paths that escape their alias root",
        config_type=ConfigType.BOOLEAN,
        category=ConfigCategory.SECURITY,
        default=False,
    ),
    ConfigField(
        key="CLOISTER_PUBLIC_ALIASES",
        description="Aliases that require a storage permission grant",
        config_type=ConfigType.LIST,
        category=ConfigCategory.SECURITY,
        default=["EXTERNAL"],
    ),

    # === Platform ===
    ConfigField(
        key="CLOISTER_PLATFORM_API_LEVEL",
        description="Host OS API level used by the scoped storage permission policy",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.PLATFORM,
        validation=r"^\d+$",
    ),

    # === Transfer ===
    ConfigField(
        key="CLOISTER_COPY_CHUNK_SIZE",
        description="Buffer size in bytes for streamed file copies",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.TRANSFER,
        default=8192,
        validation=r"^\d+$",
    ),
]


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    """Get a config field by key."""
    for field in CONFIG_SCHEMA:
        if field.key == key:
            return field
    return None
