from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException

from cloister.Bridge.models import BridgeCode


# Error kind -> HTTP status; unlisted kinds are 500
STATUS_BY_CODE: Dict[str, int] = {
    "NotFound": 404,
    "MissingParameter": 400,
    "InvalidPath": 400,
    BridgeCode.UNKNOWN_VERB.value: 400,
    BridgeCode.INVALID_ARGUMENT.value: 400,
    "PermissionDenied": 403,
    "AlreadyExists": 409,
    "TypeMismatch": 409,
    "NotEmpty": 409,
}


def status_for(code: str | None) -> int:
    """HTTP status for a failed call's code."""
    return STATUS_BY_CODE.get(code or "", 500)


def create_router(Bridge, StorageGate) -> APIRouter:
    router = APIRouter()

    @router.get("/api/storage/verbs")
    async def api_list_verbs():
        """List every verb with its argument schema."""
        return {"verbs": [v.to_summary() for v in Bridge.VerbRegistry.list_verbs()]}

    @router.get("/api/storage/health")
    async def api_storage_health():
        """StorageGate health status."""
        return StorageGate.get_health_status()

    @router.post("/api/storage/{verb}")
    async def api_call_verb(verb: str, args: Optional[Dict[str, Any]] = Body(default=None)):
        """
        Call a storage verb with a JSON object of wire arguments.

        Runs on a worker thread; requestPermissions may block on a prompt.
        """
        result = await Bridge.dispatch_async(Bridge.BridgeCall(verb=verb, args=args or {}))

        if not result.ok:
            raise HTTPException(
                status_code=status_for(result.code),
                detail={"error": result.error, "code": result.code},
            )

        return {"ok": True, "result": result.result}

    return router


__all__ = ["create_router", "status_for", "STATUS_BY_CODE"]
