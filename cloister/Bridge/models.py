"""
Bridge Protocol Models.

Defines the verb call/result envelope any transport uses to drive StorageGate.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class VerbClass(str, Enum):
    """Effect classes for storage verbs."""

    READ_ONLY = "read_only"  # No side effects
    WRITE = "write"  # Creates/modifies entries
    DESTRUCTIVE = "destructive"  # Deletes or overwrites entries
    PERMISSION = "permission"  # May prompt the user


class BridgeCode(str, Enum):
    """Bridge-level failure codes, alongside the StorageGate error kinds."""

    UNKNOWN_VERB = "UnknownVerb"
    INVALID_ARGUMENT = "InvalidArgument"


def _call_id() -> str:
    return f"bc_{uuid.uuid4().hex[:8]}"


class BridgeCall(BaseModel):
    """Single verb call from a transport."""

    type: Literal["bridge_call"] = "bridge_call"
    id: str = Field(default_factory=_call_id, description="Call identifier, e.g., bc_1a2b3c4d")
    verb: str = Field(description="Wire verb, e.g., readFile")
    args: Dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        return f"BridgeCall({self.verb}, id={self.id})"


class BridgeResult(BaseModel):
    """Result of a verb call."""

    type: Literal["bridge_result"] = "bridge_result"
    id: str
    ok: bool
    result: Optional[Any] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def success(cls, call_id: str, result: Any) -> "BridgeResult":
        """Create a successful result."""
        return cls(id=call_id, ok=True, result=result)

    @classmethod
    def failure(cls, call_id: str, error: str, code: str) -> "BridgeResult":
        """Create a failed result."""
        return cls(id=call_id, ok=False, error=error, code=code)

    def to_compact(self) -> Dict[str, Any]:
        """Convert to the compact wire form."""
        if self.ok:
            return {"id": self.id, "ok": True, "result": self.result}
        return {"id": self.id, "ok": False, "error": self.error, "code": self.code}


class ArgSchema(BaseModel):
    """Schema for one wire argument."""

    type: str = "string"
    description: str = ""
    required: bool = False
    default: Optional[Any] = None
    param: Optional[str] = Field(default=None, description="StorageGate keyword, if not the wire name")
    enum: Optional[List[Any]] = None


class VerbDefinition(BaseModel):
    """Complete verb definition for the registry."""

    verb: str = Field(description="Wire verb, e.g., readFile")
    method: str = Field(description="StorageGate method, e.g., read_file")
    description: str = ""
    verb_class: VerbClass = Field(default=VerbClass.READ_ONLY)
    nested_options: bool = Field(default=False, description="Accept flags nested under 'options'")
    args_schema: Dict[str, ArgSchema] = Field(default_factory=dict)

    def get_json_schema(self) -> Dict[str, Any]:
        """Generate JSON Schema for this verb's arguments."""
        properties = {}
        required = []

        for arg_name, arg_schema in self.args_schema.items():
            prop = {"type": arg_schema.type, "description": arg_schema.description}

            if arg_schema.enum:
                prop["enum"] = arg_schema.enum
            if arg_schema.default is not None:
                prop["default"] = arg_schema.default

            properties[arg_name] = prop

            if arg_schema.required:
                required.append(arg_name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    def to_summary(self) -> Dict[str, Any]:
        """Compact description for verb listings."""
        return {
            "verb": self.verb,
            "description": self.description,
            "class": self.verb_class.value,
            "args": self.get_json_schema(),
        }
