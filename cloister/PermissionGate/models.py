"""
PermissionGate Pydantic models.

Defines permission states, scopes, and request options for shared storage access.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class PermissionState(str, Enum):
    """Tri-state (plus rationale) answer from the host permission system."""
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
    PROMPT_WITH_RATIONALE = "prompt-with-rationale"


class PermissionScope(str, Enum):
    """Storage permission scopes the host can grant."""
    PUBLIC_STORAGE = "publicStorage"
    PUBLIC_STORAGE_WRITE = "publicStorageWrite"
    MEDIA = "media"


class PermissionRequestOptions(BaseModel):
    """Options for a permission request, including the settings alert text."""
    model_config = ConfigDict(populate_by_name=True)

    show_settings_alert: bool = Field(default=False, alias="showSettingsAlert")
    title: str = "Storage Permission Needed"
    message: str = "Enable storage access in Settings to access files."
    open_settings_button_title: str = Field(default="Open Settings", alias="openSettingsButtonTitle")
    cancel_button_title: str = Field(default="Cancel", alias="cancelButtonTitle")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermissionRequestOptions":
        """Create from dict (wire or snake_case keys)."""
        return cls.model_validate(data)


class PermissionStatus(BaseModel):
    """Permission status reported to callers."""
    model_config = ConfigDict(populate_by_name=True)

    public_storage: PermissionState = Field(alias="publicStorage")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)
