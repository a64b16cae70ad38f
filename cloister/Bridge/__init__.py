"""
Bridge - Transport-neutral verb dispatch for Cloister.

Any transport (HTTP, IPC, an embedding host) hands the Bridge a verb name and
a mapping of wire arguments; the Bridge validates them, calls the matching
StorageGate method and returns a BridgeResult.

## Protocol Format

```json
{"type": "bridge_call", "id": "bc_1a2b3c4d", "verb": "readFile", "args": {"path": "a.txt", "directory": "DOCUMENTS", "encoding": "utf8"}}
```

```json
{"type": "bridge_result", "id": "bc_1a2b3c4d", "ok": true, "result": {"data": "hello"}}
{"type": "bridge_result", "id": "bc_1a2b3c4d", "ok": false, "error": "File not found", "code": "NotFound"}
```
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Tuple, Union

from cloister.shared.gate import GateLogger
from cloister.StorageGate import StorageGate

from cloister.Bridge.models import (
    ArgSchema,
    BridgeCall,
    BridgeCode,
    BridgeResult,
    VerbClass,
    VerbDefinition,
)
from cloister.Bridge.registry import STORAGE_VERBS, VerbRegistry

_log = GateLogger.get("Bridge")

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
}


def flatten_options(args: Dict[str, Any]) -> Dict[str, Any]:
    """Lift flags nested under 'options' to the top level; top-level values win."""
    options = args.get("options")
    if not isinstance(options, dict):
        return args

    flat = {k: v for k, v in args.items() if k != "options"}
    for key, value in options.items():
        flat.setdefault(key, value)
    return flat


def validate_args(definition: VerbDefinition, args: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Type-check wire arguments against a verb's schema.

    Missing required arguments are not rejected here: StorageGate reports
    them as MissingParameter. Unknown arguments are ignored.

    Returns:
        Tuple of (is_valid, error_message)
    """
    for arg_name, value in args.items():
        arg_schema = definition.args_schema.get(arg_name)
        if arg_schema is None or value is None:
            continue

        check = _TYPE_CHECKS.get(arg_schema.type)
        if check is not None and not check(value):
            return False, f"Argument {arg_name} must be {arg_schema.type}, got {type(value).__name__}"

    return True, None


def build_kwargs(definition: VerbDefinition, args: Dict[str, Any]) -> Dict[str, Any]:
    """Map wire arguments to StorageGate keywords."""
    kwargs = {}
    for arg_name, arg_schema in definition.args_schema.items():
        param = arg_schema.param or arg_name
        if arg_name in args:
            kwargs[param] = args[arg_name]
        elif arg_schema.required:
            kwargs[param] = None
    return kwargs


def dispatch(call: Union[BridgeCall, Dict[str, Any]]) -> BridgeResult:
    """
    Execute one verb call.

    Args:
        call: BridgeCall or its dict form

    Returns:
        BridgeResult; ``code`` carries the error kind on failure
    """
    if isinstance(call, dict):
        call = BridgeCall.model_validate(call)

    definition = VerbRegistry.get_verb(call.verb)
    if definition is None:
        return BridgeResult.failure(call.id, f"Unknown verb: {call.verb}", BridgeCode.UNKNOWN_VERB.value)

    args = flatten_options(call.args) if definition.nested_options else dict(call.args)

    valid, error = validate_args(definition, args)
    if not valid:
        return BridgeResult.failure(call.id, f"Invalid arguments: {error}", BridgeCode.INVALID_ARGUMENT.value)

    method = getattr(StorageGate, definition.method)
    result = method(**build_kwargs(definition, args))

    if result.success:
        return BridgeResult.success(call.id, result.data)
    return BridgeResult.failure(call.id, result.error, result.error_kind.value)


async def dispatch_async(call: Union[BridgeCall, Dict[str, Any]]) -> BridgeResult:
    """Execute one verb call on a worker thread."""
    return await asyncio.to_thread(dispatch, call)


def call(verb: str, **args: Any) -> BridgeResult:
    """Shortcut: dispatch a verb with wire arguments as keywords."""
    return dispatch(BridgeCall(verb=verb, args=args))


def get_info() -> dict:
    """
    Get documentation for the Bridge.

    Returns:
        Dict with the call envelope, verb list and error codes.
    """
    return {
        "gate": "Bridge",
        "version": "1.0",
        "purpose": "Transport-neutral dispatch of storage verbs to StorageGate.",
        "call": {"verb": "wire verb name", "args": "object of wire arguments", "id": "optional call id"},
        "result": {"ok": "boolean", "result": "verb data", "error": "message", "code": "error kind"},
        "verbs": [definition.to_summary() for definition in VerbRegistry.list_verbs()],
        "codes": [code.value for code in BridgeCode],
    }


__all__ = [
    # Dispatch
    "dispatch",
    "dispatch_async",
    "call",
    "validate_args",
    "build_kwargs",
    "flatten_options",
    # Registry
    "VerbRegistry",
    "STORAGE_VERBS",
    # Models
    "ArgSchema",
    "BridgeCall",
    "BridgeCode",
    "BridgeResult",
    "VerbClass",
    "VerbDefinition",
    # Documentation
    "get_info",
]
