from __future__ import annotations

import json
from pathlib import Path

import pytest

from api_scenario_engine.analysis.errors import SpecificationNotFoundError, ValidationError
from api_scenario_engine.analysis.ingest import (
    extract_endpoints,
    load_specification,
    load_specification_from_content,
    merge_parameters,
    validate_basic_structure,
)
from api_scenario_engine.analysis.model import Endpoint, OpenAPISpecification
from api_scenario_engine.analysis.resolve import RefResolver

ROOT = Path(__file__).resolve().parent
SPECS = ROOT / "specs"

MINIMAL = {
    "openapi": "3.0.0",
    "info": {"title": "Minimal", "version": "1.0.0"},
    "paths": {"/ping": {"get": {"responses": {"200": {"description": "pong"}}}}},
}


def test_load_yaml_file() -> None:
    spec = load_specification(str(SPECS / "petstore.yaml"))
    assert spec.meta.title == "Petstore"
    assert spec.meta.version == "1.0.0"
    assert spec.meta.servers == ["https://petstore.example.com/v1"]
    assert spec.meta.security_schemes == ["apiKey"]
    assert spec.openapi_version == "3.0.3"
    assert spec.supports_webhooks is False
    assert spec.source.endswith("petstore.yaml")


def test_load_json_file(tmp_path: Path) -> None:
    target = tmp_path / "minimal.json"
    target.write_text(json.dumps(MINIMAL), encoding="utf-8")
    spec = load_specification(str(target))
    assert spec.has_path("/ping")


def test_missing_file() -> None:
    with pytest.raises(SpecificationNotFoundError) as excinfo:
        load_specification(str(SPECS / "nope.yaml"))
    assert excinfo.value.file_path.endswith("nope.yaml")


def test_load_from_content_yaml_and_json() -> None:
    yaml_spec = load_specification_from_content(
        "openapi: 3.1.0\ninfo:\n  title: T\n  version: '1'\npaths: {}\n", "yaml"
    )
    assert yaml_spec.source == "content-yaml"
    assert yaml_spec.supports_webhooks is True

    json_spec = load_specification_from_content(json.dumps(MINIMAL), "json")
    assert json_spec.source == "content-json"


@pytest.mark.parametrize(
    ("content", "fmt"),
    [
        ("{not json", "json"),
        ("key: [unclosed", "yaml"),
    ],
)
def test_unparsable_content(content: str, fmt: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        load_specification_from_content(content, fmt)
    assert "Failed to parse specification" in str(excinfo.value)


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("just text", "must be an object"),
        (None, "must be an object"),
        ({"info": {"title": "T", "version": "1"}, "paths": {}}, "missing openapi/swagger version"),
        ({"openapi": "2.0", "info": {"title": "T", "version": "1"}, "paths": {}}, "Unsupported OpenAPI version"),
        ({"swagger": "2.0", "info": {"title": "T", "version": "1"}, "paths": {}}, "Unsupported OpenAPI version"),
        ({"openapi": "3.0.0", "info": {"title": "T", "version": "1"}}, "paths object is required"),
        ({"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": []}, "paths object is required"),
        ({"openapi": "3.0.0", "info": {"version": "1"}, "paths": {}}, "info.title and info.version"),
        ({"openapi": "3.0.0", "info": {"title": "T"}, "paths": {}}, "info.title and info.version"),
        ({"openapi": "3.0.0", "paths": {}}, "info.title and info.version"),
    ],
)
def test_basic_structure_rejections(raw: object, message: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_basic_structure(raw)
    assert message in str(excinfo.value)


def test_swagger_key_with_supported_version_is_accepted() -> None:
    validate_basic_structure({"swagger": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": {}})


def test_strict_validation_rejects_invalid_document() -> None:
    content = json.dumps({"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": {"/x": {"get": {}}}})
    load_specification_from_content(content, "json")
    with pytest.raises(ValidationError) as excinfo:
        load_specification_from_content(content, "json", strict=True)
    assert "failed validation" in str(excinfo.value)


def test_strict_validation_accepts_valid_document() -> None:
    spec = load_specification_from_content(json.dumps(MINIMAL), "json", strict=True)
    assert spec.meta.title == "Minimal"


def test_specification_validate() -> None:
    OpenAPISpecification.create(MINIMAL, "test").validate()
    empty = OpenAPISpecification.create({**MINIMAL, "paths": {}}, "test")
    with pytest.raises(ValidationError) as excinfo:
        empty.validate()
    assert excinfo.value.field == "paths"


def test_extract_endpoints_in_document_order() -> None:
    spec = load_specification(str(SPECS / "petstore.yaml"))
    endpoints = extract_endpoints(spec, RefResolver())
    assert [endpoint.identifier for endpoint in endpoints] == [
        "GET /pets",
        "POST /pets",
        "GET /pets/{petId}",
        "DELETE /pets/{petId}",
        "GET /health",
    ]


def test_extract_endpoints_without_resolver_skips_referenced_path_items() -> None:
    spec = load_specification(str(SPECS / "petstore.yaml"))
    assert "GET /health" not in [endpoint.identifier for endpoint in extract_endpoints(spec)]


def test_extract_endpoints_merges_path_level_parameters() -> None:
    spec = load_specification(str(SPECS / "petstore.yaml"))
    get_pet = [endpoint for endpoint in extract_endpoints(spec) if endpoint.identifier == "GET /pets/{petId}"][0]
    assert [param["name"] for param in get_pet.parameters] == ["petId"]
    assert "parameters" not in spec.document["paths"]["/pets/{petId}"]["get"]


def test_merge_parameters_operation_overrides_path() -> None:
    path_params = [
        {"name": "id", "in": "path", "description": "path level"},
        {"$ref": "#/components/parameters/Trace"},
    ]
    op_params = [
        {"name": "id", "in": "path", "description": "operation level"},
        {"name": "id", "in": "query"},
        "garbage",
    ]
    merged = merge_parameters(path_params, op_params)
    assert merged == [
        {"name": "id", "in": "path", "description": "operation level"},
        {"$ref": "#/components/parameters/Trace"},
        {"name": "id", "in": "query"},
    ]


def test_endpoint_validation() -> None:
    endpoint = Endpoint.create("/pets", "get", {"tags": ["a", 1], "deprecated": True})
    assert endpoint.method == "GET"
    assert endpoint.tags == ["a"]
    assert endpoint.deprecated is True
    assert endpoint.is_safe() and endpoint.is_idempotent()
    assert Endpoint.create("/pets", "POST", {}).is_idempotent() is False

    with pytest.raises(ValidationError) as excinfo:
        Endpoint.create("pets", "GET", {})
    assert excinfo.value.field == "path"
    with pytest.raises(ValidationError) as excinfo:
        Endpoint.create("/pets", "FETCH", {})
    assert excinfo.value.field == "method"


def test_merge_parameters_operation_overrides_referenced_path_parameter() -> None:
    document = {"components": {"parameters": {"Id": {"name": "id", "in": "path", "schema": {"type": "string"}}}}}
    path_params = [{"$ref": "#/components/parameters/Id"}, {"name": "trace", "in": "header"}]
    op_params = [{"name": "id", "in": "path", "schema": {"type": "integer"}}]

    merged = merge_parameters(path_params, op_params, RefResolver(), document)
    assert merged == [
        {"name": "id", "in": "path", "schema": {"type": "integer"}},
        {"name": "trace", "in": "header"},
    ]

    # Without a resolver a reference is only matched by itself.
    assert len(merge_parameters(path_params, op_params)) == 3


def test_merge_parameters_keeps_reference_objects() -> None:
    document = {"components": {"parameters": {"Id": {"name": "id", "in": "path"}}}}
    path_params = [{"name": "id", "in": "path", "description": "path level"}]
    op_params = [{"$ref": "#/components/parameters/Id"}]
    assert merge_parameters(path_params, op_params, RefResolver(), document) == [
        {"$ref": "#/components/parameters/Id"}
    ]
