"""
Health check API endpoint.

Aggregates health status from all Cloister Gates.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Response


# Gate registry: name -> (module_path, class_name, health_method)
# health_method is optional - defaults to "get_health_status"
GATE_REGISTRY: Dict[str, Tuple[str, str, Optional[str]]] = {
    "StorageGate": ("cloister.StorageGate", "StorageGate", None),
}


def _get_gate_health(
    module_path: str,
    class_name: str,
    health_method: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Get health status from a gate module.

    Args:
        module_path: Python module path (e.g., "cloister.StorageGate")
        class_name: Class or module attribute name
        health_method: Method name to call (defaults to "get_health_status")

    Returns:
        Health status dict
    """
    import importlib

    method_name = health_method or "get_health_status"

    module = importlib.import_module(module_path)
    gate = getattr(module, class_name)

    if hasattr(gate, method_name):
        return getattr(gate, method_name)()
    else:
        return {"healthy": False, "error": f"No {method_name} method"}


def _get_permission_health() -> Dict[str, Any]:
    """
    Report the permission gate in use.

    The permission gate holds no resources, so it is healthy whenever
    StorageGate has one; the current shared storage state is informational.
    """
    from cloister.StorageGate import StorageGate

    gate = StorageGate.get_permission_gate() if StorageGate.is_initialized() else None
    state = StorageGate.check_permissions().data["publicStorage"] if gate is not None else None

    return {
        "gate": "PermissionGate",
        "healthy": True,
        "initialized": gate is not None,
        "details": {
            "policy": type(gate).__name__ if gate is not None else None,
            "public_storage": state,
        },
    }


def _collect_health_data() -> Tuple[bool, Dict[str, Any]]:
    """
    Collect health data from all gates.

    Returns:
        Tuple of (all_healthy, gates_dict)
    """
    gates = {}
    all_healthy = True

    for gate_name, (module_path, class_name, health_method) in GATE_REGISTRY.items():
        try:
            gates[gate_name] = _get_gate_health(module_path, class_name, health_method)
        except (ImportError, AttributeError, RuntimeError, OSError) as e:
            gates[gate_name] = {"healthy": False, "error": str(e)}
        if not gates[gate_name].get("healthy", False):
            all_healthy = False

    gates["PermissionGate"] = _get_permission_health()

    return all_healthy, gates


def create_router() -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    async def api_health(response: Response) -> Dict[str, Any]:
        """
        Get aggregated health status from all Gates.

        Returns 200 when healthy, 503 when unhealthy.

        Returns:
            Dict with overall health and per-gate status
        """
        all_healthy, gates = _collect_health_data()

        if not all_healthy:
            response.status_code = 503

        return {
            "healthy": all_healthy,
            "gates": gates,
        }

    @router.get("/api/health/summary")
    async def api_health_summary(response: Response) -> Dict[str, Any]:
        """
        Get a quick health summary (just healthy/unhealthy per gate).

        Returns 200 when healthy, 503 when unhealthy.
        """
        all_healthy, gates = _collect_health_data()

        summary = {name: status.get("healthy", False) for name, status in gates.items()}

        if not all_healthy:
            response.status_code = 503

        return {
            "healthy": all_healthy,
            "gates": summary,
        }

    return router


__all__ = ["create_router", "GATE_REGISTRY"]
