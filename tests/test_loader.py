"""Tests for the loader module."""

from __future__ import annotations

import copy
import json

import httpx
import pytest
import yaml

from clientgen import loader
from clientgen.errors import ReferenceResolutionError, SpecLoadError
from clientgen.loader import (
    format_spec,
    get_best_response,
    get_operations,
    group_operations,
    load_spec,
    resolve_ref,
)

from conftest import PETSTORE


class TestLoadSpec:
    """Test reading specs from disk and over http."""

    def test_json_file(self, tmp_path):
        path = tmp_path / "api.json"
        path.write_text(json.dumps(PETSTORE))
        assert load_spec(path) == PETSTORE

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text(yaml.safe_dump(PETSTORE))
        assert load_spec(str(path)) == PETSTORE

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecLoadError):
            load_spec(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "api.json"
        path.write_text("{not json")
        with pytest.raises(SpecLoadError):
            load_spec(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "api.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(SpecLoadError):
            load_spec(path)

    def test_url(self, monkeypatch):
        def fake_get(url, **kwargs):
            request = httpx.Request("GET", url)
            return httpx.Response(200, text="openapi: 3.0.0\npaths: {}\n", request=request)

        monkeypatch.setattr(loader.httpx, "get", fake_get)
        assert load_spec("https://api.example.com/openapi.yaml") == {"openapi": "3.0.0", "paths": {}}

    def test_url_error_status(self, monkeypatch):
        def fake_get(url, **kwargs):
            request = httpx.Request("GET", url)
            return httpx.Response(404, text="missing", request=request)

        monkeypatch.setattr(loader.httpx, "get", fake_get)
        with pytest.raises(SpecLoadError):
            load_spec("https://api.example.com/openapi.json")


class TestFormatSpec:
    """Test derived spec fields."""

    def test_defaults_for_local_source(self):
        spec = format_spec({"basePath": "/v1/", "produces": ["application/xml"]})
        assert spec["basePath"] == "/v1"
        assert spec["host"] == "localhost"
        assert spec["schemes"] == ["http"]
        assert spec["accepts"] == ["application/xml"]
        assert spec["contentTypes"] == []
        assert "produces" not in spec
        assert "consumes" not in spec

    def test_defaults_for_remote_source(self):
        spec = format_spec({}, "https://api.example.com:8443/spec.json")
        assert spec["host"] == "api.example.com:8443"
        assert spec["schemes"] == ["https"]
        assert spec["basePath"] == ""
        assert spec["accepts"] == ["application/json"]

    def test_existing_values_kept(self):
        spec = format_spec({"host": "pets.io", "schemes": ["https"], "consumes": ["application/json"]})
        assert spec["host"] == "pets.io"
        assert spec["schemes"] == ["https"]
        assert spec["contentTypes"] == ["application/json"]

    def test_input_not_mutated(self):
        original = copy.deepcopy(PETSTORE)
        format_spec(original)
        assert original == PETSTORE


class TestResolveRef:
    """Test $ref pointer resolution."""

    _SPEC = {
        "components": {
            "schemas": {
                "Pet": {"type": "object"},
                "Alias": {"$ref": "#/components/schemas/Pet"},
                "LoopA": {"$ref": "#/components/schemas/LoopB"},
                "LoopB": {"$ref": "#/components/schemas/LoopA"},
                "Self": {"$ref": "#/components/schemas/Self"},
            }
        }
    }

    def test_resolves(self):
        assert resolve_ref(self._SPEC, "#/components/schemas/Pet") == {"type": "object"}

    def test_follows_chain(self):
        assert resolve_ref(self._SPEC, "#/components/schemas/Alias") == {"type": "object"}

    def test_unsupported_prefix(self):
        with pytest.raises(ReferenceResolutionError, match="only #/components/schemas/"):
            resolve_ref(self._SPEC, "#/definitions/Pet")

    def test_missing_target(self):
        with pytest.raises(ReferenceResolutionError, match="Missing"):
            resolve_ref(self._SPEC, "#/components/schemas/Missing")

    def test_cycle(self):
        with pytest.raises(ReferenceResolutionError, match="Circular"):
            resolve_ref(self._SPEC, "#/components/schemas/LoopA")

    def test_self_reference(self):
        with pytest.raises(ReferenceResolutionError, match="Circular"):
            resolve_ref(self._SPEC, "#/components/schemas/Self")


class TestGetOperations:
    """Test operation extraction from the petstore fixture."""

    @classmethod
    def setup_class(cls):
        cls.ops = get_operations(format_spec(PETSTORE))
        cls.ops_by_id = {op["id"]: op for op in cls.ops}

    def test_operation_count(self):
        assert len(self.ops) == 5

    def test_ids(self):
        assert set(self.ops_by_id) == {
            "listPets", "createPet", "showPetById", "getStoreInventory", "listOrders",
        }

    def test_groups(self):
        groups = group_operations(self.ops)
        assert list(groups) == ["pets", "store"]
        assert [op["id"] for op in groups["pets"]] == ["listPets", "createPet", "showPetById"]

    def test_path_level_parameters_merged(self):
        params = self.ops_by_id["showPetById"]["parameters"]
        assert params[0]["name"] == "pet-id"
        assert params[1] == {"$ref": "#/components/schemas/TraceHeader"}

    def test_operation_parameter_overrides_path_parameter(self):
        spec = {
            "paths": {
                "/a/{id}": {
                    "parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}],
                    "get": {
                        "operationId": "getA",
                        "parameters": [{"name": "id", "in": "path", "schema": {"type": "integer"}}],
                        "responses": {},
                    },
                }
            }
        }
        op = get_operations(spec)[0]
        assert op["parameters"] == [{"name": "id", "in": "path", "schema": {"type": "integer"}}]

    def test_responses_carry_code(self):
        codes = [r["code"] for r in self.ops_by_id["showPetById"]["responses"]]
        assert codes == ["default", "200"]

    def test_security(self):
        assert self.ops_by_id["createPet"]["security"] == [
            {"id": "petstore_auth", "scopes": ["write:pets", "read:pets"]},
        ]
        assert self.ops_by_id["listPets"]["security"] is None

    def test_document_security_inherited(self):
        spec = {
            "security": [{"api_key": []}],
            "paths": {"/a": {"get": {"operationId": "a", "responses": {}}}},
        }
        assert get_operations(spec)[0]["security"] == [{"id": "api_key", "scopes": None}]

    def test_default_group(self):
        spec = {"paths": {"/a": {"get": {"operationId": "a", "responses": {}}}}}
        assert get_operations(spec)[0]["group"] == "default"


class TestGetBestResponse:

    def test_lowest_numeric_code(self):
        op = {"responses": [{"code": "default"}, {"code": "201"}, {"code": "200"}]}
        assert get_best_response(op)["code"] == "200"

    def test_default_only(self):
        op = {"responses": [{"code": "default"}]}
        assert get_best_response(op)["code"] == "default"

    def test_no_responses(self):
        assert get_best_response({"responses": []}) is None
