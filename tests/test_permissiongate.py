"""
Tests for PermissionGate policies.
"""

import pytest

from cloister.PermissionGate import (
    MEDIA_PERMISSION_API_LEVEL,
    SCOPED_STORAGE_API_LEVEL,
    PermissionGate,
    PermissionRequestOptions,
    PermissionScope,
    PermissionState,
    PermissionStatus,
    ScopedStoragePermissionGate,
    StaticPermissionGate,
    from_settings,
    request_permission_async,
)


class TestPermissionModels:
    """Tests for permission models."""

    def test_request_options_defaults(self):
        options = PermissionRequestOptions()

        assert options.show_settings_alert is False
        assert options.title == "Storage Permission Needed"
        assert options.open_settings_button_title == "Open Settings"
        assert options.cancel_button_title == "Cancel"

    def test_request_options_wire_keys(self):
        options = PermissionRequestOptions.from_dict({
            "showSettingsAlert": True,
            "openSettingsButtonTitle": "Go",
            "cancelButtonTitle": "Later",
        })

        assert options.show_settings_alert is True
        assert options.open_settings_button_title == "Go"
        assert options.cancel_button_title == "Later"

    def test_status_wire_form(self):
        status = PermissionStatus(public_storage=PermissionState.PROMPT_WITH_RATIONALE)

        assert status.to_dict() == {"publicStorage": "prompt-with-rationale"}


class TestStaticPermissionGate:
    """Tests for the fixed-answer gate."""

    def test_default_granted(self):
        gate = StaticPermissionGate()

        assert gate.current_state(PermissionScope.PUBLIC_STORAGE) == PermissionState.GRANTED
        assert gate.request(PermissionScope.PUBLIC_STORAGE_WRITE) == PermissionState.GRANTED

    def test_fixed_denied(self):
        gate = StaticPermissionGate("denied")

        assert gate.current_state(PermissionScope.MEDIA) == PermissionState.DENIED

    def test_satisfies_protocol(self):
        assert isinstance(StaticPermissionGate(), PermissionGate)
        assert isinstance(ScopedStoragePermissionGate(api_level=30), PermissionGate)


class TestScopedStoragePolicy:
    """Tests for the version-conditional policy."""

    def test_thresholds(self):
        assert SCOPED_STORAGE_API_LEVEL == 29
        assert MEDIA_PERMISSION_API_LEVEL == 33

    def test_media_level_maps_every_scope(self):
        gate = ScopedStoragePermissionGate(api_level=33)

        assert gate.effective_scope(PermissionScope.PUBLIC_STORAGE) == PermissionScope.MEDIA
        assert gate.effective_scope(PermissionScope.PUBLIC_STORAGE_WRITE) == PermissionScope.MEDIA

    @pytest.mark.parametrize("api_level", [29, 30, 32])
    def test_scoped_storage_always_granted(self, api_level):
        """Between the scoped storage and media levels no grant is needed."""
        gate = ScopedStoragePermissionGate(api_level=api_level)

        assert gate.current_state(PermissionScope.PUBLIC_STORAGE) == PermissionState.GRANTED
        assert gate.current_state(PermissionScope.PUBLIC_STORAGE_WRITE) == PermissionState.GRANTED

    def test_legacy_level_uses_requested_scope(self):
        gate = ScopedStoragePermissionGate(
            api_level=28,
            grants={"publicStorage": "granted", "publicStorageWrite": "denied"},
        )

        assert gate.current_state(PermissionScope.PUBLIC_STORAGE) == PermissionState.GRANTED
        assert gate.current_state(PermissionScope.PUBLIC_STORAGE_WRITE) == PermissionState.DENIED

    def test_missing_grant_reads_as_prompt(self):
        gate = ScopedStoragePermissionGate(api_level=34)

        assert gate.current_state(PermissionScope.PUBLIC_STORAGE) == PermissionState.PROMPT


class TestPermissionRequest:
    """Tests for permission requests."""

    def test_granted_skips_prompter(self):
        calls = []
        gate = ScopedStoragePermissionGate(
            api_level=28,
            grants={PermissionScope.PUBLIC_STORAGE: PermissionState.GRANTED},
            prompter=lambda scope, options: calls.append(scope),
        )

        assert gate.request(PermissionScope.PUBLIC_STORAGE) == PermissionState.GRANTED
        assert calls == []

    def test_prompter_answer_is_recorded(self):
        gate = ScopedStoragePermissionGate(
            api_level=34,
            prompter=lambda scope, options: PermissionState.GRANTED,
        )

        assert gate.request(PermissionScope.PUBLIC_STORAGE) == PermissionState.GRANTED
        assert gate.current_state(PermissionScope.PUBLIC_STORAGE_WRITE) == PermissionState.GRANTED

    def test_dismissed_prompt_keeps_prior_state(self):
        """A dismissed dialog resolves with the state from before the request."""
        gate = ScopedStoragePermissionGate(
            api_level=28,
            grants={PermissionScope.PUBLIC_STORAGE: PermissionState.PROMPT_WITH_RATIONALE},
            prompter=lambda scope, options: None,
        )

        assert gate.request(PermissionScope.PUBLIC_STORAGE) == PermissionState.PROMPT_WITH_RATIONALE
        assert gate.current_state(PermissionScope.PUBLIC_STORAGE) == PermissionState.PROMPT_WITH_RATIONALE

    def test_no_prompter_keeps_prior_state(self):
        gate = ScopedStoragePermissionGate(api_level=34)

        assert gate.request(PermissionScope.PUBLIC_STORAGE) == PermissionState.PROMPT

    def test_settings_alert_on_denial(self):
        shown = []
        gate = ScopedStoragePermissionGate(
            api_level=28,
            prompter=lambda scope, options: PermissionState.DENIED,
            settings_prompter=shown.append,
        )
        options = PermissionRequestOptions(show_settings_alert=True, message="Please")

        state = gate.request(PermissionScope.PUBLIC_STORAGE, options)

        assert state == PermissionState.DENIED
        assert shown == [options]

    def test_settings_alert_needs_opt_in(self):
        shown = []
        gate = ScopedStoragePermissionGate(
            api_level=28,
            prompter=lambda scope, options: PermissionState.DENIED,
            settings_prompter=shown.append,
        )

        gate.request(PermissionScope.PUBLIC_STORAGE)

        assert shown == []

    def test_settings_alert_not_shown_when_granted(self):
        shown = []
        gate = ScopedStoragePermissionGate(
            api_level=28,
            prompter=lambda scope, options: PermissionState.GRANTED,
            settings_prompter=shown.append,
        )

        gate.request(PermissionScope.PUBLIC_STORAGE, PermissionRequestOptions(show_settings_alert=True))

        assert shown == []

    @pytest.mark.asyncio
    async def test_request_async(self):
        """The async request resolves once with the prompter's answer."""
        gate = ScopedStoragePermissionGate(
            api_level=33,
            prompter=lambda scope, options: PermissionState.GRANTED,
        )

        state = await request_permission_async(gate, PermissionScope.PUBLIC_STORAGE)

        assert state == PermissionState.GRANTED


class TestFromSettings:
    """Tests for building a gate from configuration."""

    def test_without_api_level(self, clean_env):
        from cloister import Config

        Config.reload()

        assert isinstance(from_settings(), StaticPermissionGate)

    def test_with_api_level(self, clean_env):
        from cloister import Config

        clean_env.setenv("CLOISTER_PLATFORM_API_LEVEL", "33")
        Config.reload()

        gate = from_settings()

        assert isinstance(gate, ScopedStoragePermissionGate)
        assert gate.current_state(PermissionScope.PUBLIC_STORAGE) == PermissionState.PROMPT
