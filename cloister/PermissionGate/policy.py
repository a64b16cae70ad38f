"""
PermissionGate policies.

The permission gate answers whether the calling context may touch shared
(public) storage. Platform version rules live here, not in the file
operations, so hosts can swap the policy without touching StorageGate.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

from cloister.shared.gate import GateLogger
from cloister.PermissionGate.models import (
    PermissionRequestOptions,
    PermissionScope,
    PermissionState,
)

_log = GateLogger.get("PermissionGate")

# API levels where the host's storage model changed
SCOPED_STORAGE_API_LEVEL = 29
MEDIA_PERMISSION_API_LEVEL = 33

# Called with the effective scope; returns the new state, or None if dismissed
Prompter = Callable[[PermissionScope, PermissionRequestOptions], Optional[PermissionState]]
SettingsPrompter = Callable[[PermissionRequestOptions], None]


@runtime_checkable
class PermissionGate(Protocol):
    """
    Protocol consumed by StorageGate for shared storage access.

    Implementations must be safe to call synchronously from an operation.
    """

    def current_state(self, scope: PermissionScope) -> PermissionState:
        """Return the current state without prompting."""
        ...

    def request(
        self,
        scope: PermissionScope,
        options: Optional[PermissionRequestOptions] = None,
    ) -> PermissionState:
        """Ask for the scope, possibly blocking on user interaction."""
        ...


class StaticPermissionGate:
    """Gate with a fixed answer, for hosts without runtime storage permissions."""

    def __init__(self, state: PermissionState = PermissionState.GRANTED):
        self.state = PermissionState(state)

    def current_state(self, scope: PermissionScope) -> PermissionState:
        return self.state

    def request(
        self,
        scope: PermissionScope,
        options: Optional[PermissionRequestOptions] = None,
    ) -> PermissionState:
        return self.state


class ScopedStoragePermissionGate:
    """
    Version-conditional storage permission policy.

    - API level >= 33: every public scope is governed by the media grant.
    - API level 29-32: scoped storage, app access needs no grant.
    - Below 29: the legacy read/write external storage grants apply.

    Grants not yet recorded read as ``prompt``. ``prompter`` stands in for the
    host's permission dialog; returning None means the user dismissed it, which
    resolves the request with the state it had before.
    """

    def __init__(
        self,
        api_level: int,
        grants: Optional[Dict[PermissionScope, PermissionState]] = None,
        prompter: Optional[Prompter] = None,
        settings_prompter: Optional[SettingsPrompter] = None,
    ):
        self.api_level = api_level
        self._grants: Dict[PermissionScope, PermissionState] = {
            PermissionScope(k): PermissionState(v) for k, v in (grants or {}).items()
        }
        self._prompter = prompter
        self._settings_prompter = settings_prompter

    def effective_scope(self, scope: PermissionScope) -> Optional[PermissionScope]:
        """Map a requested scope to the scope the platform actually checks."""
        if self.api_level >= MEDIA_PERMISSION_API_LEVEL:
            return PermissionScope.MEDIA
        if self.api_level >= SCOPED_STORAGE_API_LEVEL:
            return None
        return scope

    def current_state(self, scope: PermissionScope) -> PermissionState:
        effective = self.effective_scope(PermissionScope(scope))
        if effective is None:
            return PermissionState.GRANTED
        return self._grants.get(effective, PermissionState.PROMPT)

    def request(
        self,
        scope: PermissionScope,
        options: Optional[PermissionRequestOptions] = None,
    ) -> PermissionState:
        options = options or PermissionRequestOptions()
        scope = PermissionScope(scope)
        before = self.current_state(scope)

        if before == PermissionState.GRANTED:
            return before

        effective = self.effective_scope(scope)
        state = before
        if self._prompter is not None:
            answer = self._prompter(effective, options)
            if answer is not None:
                state = PermissionState(answer)
                self._grants[effective] = state
        _log.info(f"Permission request for {effective.value}: {before.value} -> {state.value}")

        needs_settings = state in (PermissionState.DENIED, PermissionState.PROMPT_WITH_RATIONALE)
        if options.show_settings_alert and needs_settings and self._settings_prompter is not None:
            self._settings_prompter(options)

        return state


async def request_permission_async(
    gate: PermissionGate,
    scope: PermissionScope,
    options: Optional[PermissionRequestOptions] = None,
) -> PermissionState:
    """Run a (possibly blocking) permission request on a worker thread."""
    return await asyncio.to_thread(gate.request, scope, options)
