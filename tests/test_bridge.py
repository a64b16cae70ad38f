"""
Tests for the Bridge verb dispatch.
"""

import base64
import pytest

from cloister import Bridge
from cloister.Bridge import (
    BridgeCall,
    BridgeResult,
    VerbClass,
    VerbRegistry,
    build_kwargs,
    dispatch,
    dispatch_async,
    flatten_options,
    validate_args,
)
from cloister.PermissionGate import PermissionState, StaticPermissionGate
from cloister.StorageGate import StorageGate


WIRE_VERBS = {
    "getFile", "getDirectory", "readFile", "readAsDataURL", "writeFile",
    "appendFile", "deleteFile", "mkdir", "rmdir", "readdir", "stat",
    "getMetadata", "rename", "move", "copy", "exists", "getUri", "truncate",
    "getFreeDiskSpace", "requestFileSystem", "resolveLocalFileSystemURL",
    "getDirectories", "getPluginVersion", "checkPermissions", "requestPermissions",
}


class TestBridgeModels:
    """Tests for call/result envelopes."""

    def test_call_gets_id(self):
        call = BridgeCall(verb="stat", args={"path": "a"})

        assert call.id.startswith("bc_")
        assert str(call) == f"BridgeCall(stat, id={call.id})"

    def test_result_factories(self):
        ok = BridgeResult.success("bc_1", {"x": 1})
        bad = BridgeResult.failure("bc_2", "nope", "NotFound")

        assert ok.to_compact() == {"id": "bc_1", "ok": True, "result": {"x": 1}}
        assert bad.to_compact() == {"id": "bc_2", "ok": False, "error": "nope", "code": "NotFound"}


class TestVerbRegistry:
    """Tests for the verb registry."""

    def test_every_verb_registered(self):
        assert set(VerbRegistry.list_verb_names()) == WIRE_VERBS

    def test_every_verb_has_gate_method(self):
        for definition in VerbRegistry.list_verbs():
            assert callable(getattr(StorageGate, definition.method))

    def test_class_filter(self):
        destructive = VerbRegistry.list_verb_names({VerbClass.DESTRUCTIVE})

        assert "deleteFile" in destructive
        assert "readFile" not in destructive

    def test_json_schema(self):
        schema = VerbRegistry.get_verb("rename").get_json_schema()

        assert schema["required"] == ["from", "to"]
        assert "DOCUMENTS" in schema["properties"]["toDirectory"]["enum"]

    def test_unknown_verb(self):
        assert VerbRegistry.get_verb("format") is None


class TestArgumentMapping:
    """Tests for wire argument handling."""

    def test_flatten_options(self):
        args = {"path": "a", "options": {"create": True, "path": "ignored"}}

        assert flatten_options(args) == {"path": "a", "create": True}

    def test_flatten_without_options(self):
        args = {"path": "a"}

        assert flatten_options(args) is args

    def test_wire_names_mapped_to_keywords(self):
        definition = VerbRegistry.get_verb("copy")

        kwargs = build_kwargs(definition, {"from": "a", "to": "b", "toDirectory": "CACHE"})

        assert kwargs == {"source_path": "a", "dest_path": "b", "to_directory": "CACHE"}

    def test_missing_required_passed_as_none(self):
        kwargs = build_kwargs(VerbRegistry.get_verb("readFile"), {})

        assert kwargs == {"path": None}

    def test_validate_rejects_wrong_type(self):
        valid, error = validate_args(VerbRegistry.get_verb("readFile"), {"path": "a", "offset": "3"})

        assert valid is False
        assert "offset" in error

    def test_validate_rejects_bool_as_integer(self):
        valid, _ = validate_args(VerbRegistry.get_verb("truncate"), {"path": "a", "size": True})

        assert valid is False

    def test_validate_ignores_unknown_and_null(self):
        valid, _ = validate_args(VerbRegistry.get_verb("readFile"), {"path": "a", "length": None, "extra": 1})

        assert valid is True


class TestDispatch:
    """Tests for dispatch()."""

    def test_round_trip(self, gate):
        write = dispatch({"verb": "writeFile", "args": {"path": "a.txt", "data": "hey", "encoding": "utf8"}})
        read = dispatch({"verb": "readFile", "args": {"path": "a.txt", "encoding": "utf8"}})

        assert write.ok is True
        assert read.ok is True
        assert read.result == {"data": "hey"}

    def test_call_id_preserved(self, gate):
        result = dispatch(BridgeCall(id="bc_fixed", verb="getPluginVersion"))

        assert result.id == "bc_fixed"

    def test_unknown_verb(self, gate):
        result = dispatch({"verb": "chmod", "args": {}})

        assert result.ok is False
        assert result.code == "UnknownVerb"

    def test_invalid_argument(self, gate):
        result = dispatch({"verb": "readFile", "args": {"path": 12}})

        assert result.code == "InvalidArgument"

    def test_missing_parameter(self, gate):
        result = dispatch({"verb": "readFile", "args": {}})

        assert result.ok is False
        assert result.code == "MissingParameter"

    def test_error_kind_becomes_code(self, gate):
        result = dispatch({"verb": "stat", "args": {"path": "ghost", "directory": "CACHE"}})

        assert result.code == "NotFound"
        assert result.error

    def test_nested_options(self, gate, storage_roots):
        """getFile/getDirectory accept create/exclusive under options."""
        result = dispatch({
            "verb": "getDirectory",
            "args": {"path": "made", "directory": "CACHE", "options": {"create": True}},
        })

        assert result.ok is True
        assert (storage_roots["cache"] / "made").is_dir()

    def test_nested_exclusive(self, gate, sample_tree):
        result = dispatch({
            "verb": "getFile",
            "args": {"path": "tree/readme.txt", "directory": "DOCUMENTS", "options": {"create": True, "exclusive": True}},
        })

        assert result.code == "AlreadyExists"

    def test_rename_wire_names(self, gate, sample_tree):
        result = Bridge.call("rename", **{"from": "tree/readme.txt", "to": "tree/r.txt", "directory": "DOCUMENTS"})

        assert result.ok is True
        assert (sample_tree / "r.txt").exists()

    def test_binary_write(self, gate, storage_roots):
        payload = base64.b64encode(b"\x01\x02").decode()

        dispatch({"verb": "writeFile", "args": {"path": "b.bin", "data": payload}})

        assert (storage_roots["data"] / "b.bin").read_bytes() == b"\x01\x02"

    def test_request_file_system_type(self, gate):
        result = dispatch({"verb": "requestFileSystem", "args": {"type": 0}})

        assert result.result["name"] == "temporary"

    def test_permissions(self, storage_config):
        StorageGate.initialize(config=storage_config, permissions=StaticPermissionGate(PermissionState.DENIED))

        check = dispatch({"verb": "checkPermissions"})
        request = dispatch({"verb": "requestPermissions", "args": {"options": {"showSettingsAlert": True}}})
        read = dispatch({"verb": "readdir", "args": {"path": "", "directory": "EXTERNAL"}})

        assert check.result == {"publicStorage": "denied"}
        assert request.result == {"publicStorage": "denied"}
        assert read.code == "PermissionDenied"

    @pytest.mark.asyncio
    async def test_dispatch_async(self, gate):
        result = await dispatch_async({"verb": "getDirectories"})

        assert result.ok is True
        assert "dataDirectory" in result.result


class TestBridgeInfo:
    """Tests for Bridge documentation."""

    def test_get_info(self):
        info = Bridge.get_info()

        assert info["gate"] == "Bridge"
        assert {v["verb"] for v in info["verbs"]} == WIRE_VERBS
        assert "UnknownVerb" in info["codes"]
