from __future__ import annotations

import json
import logging
import os
from collections.abc import Hashable, Mapping
from typing import Any, Iterable, cast

import yaml
from openapi_spec_validator import validate
from openapi_spec_validator.validation.exceptions import OpenAPIValidationError

from .errors import SpecificationNotFoundError, ValidationError
from .model import Endpoint, OpenAPISpecification
from .resolve import RefResolver, is_reference

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("3.0", "3.1")


def list_http_methods() -> Iterable[str]:
    return (
        "get",
        "post",
        "put",
        "patch",
        "delete",
        "options",
        "head",
        "trace",
    )


def detect_format(path: str) -> str:
    return "json" if path.lower().endswith(".json") else "yaml"


def load_raw_spec(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        if detect_format(path) == "json":
            return json.load(handle)
        return yaml.safe_load(handle)


def parse_spec_content(content: str, fmt: str) -> Any:
    try:
        if fmt == "json":
            return json.loads(content)
        return yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValidationError(f"Failed to parse specification: {_error_message(exc)}") from exc


def validate_basic_structure(raw: Any) -> None:
    if not isinstance(raw, dict):
        raise ValidationError("Invalid specification: must be an object")

    version = raw.get("openapi") or raw.get("swagger")
    if not version:
        raise ValidationError("Not a valid OpenAPI specification: missing openapi/swagger version", "openapi")
    if not isinstance(version, str) or not version.startswith(SUPPORTED_VERSIONS):
        raise ValidationError(
            f"Unsupported OpenAPI version: {version}. Only 3.0.x and 3.1.x are supported",
            "openapi",
            version,
        )

    if not isinstance(raw.get("paths"), dict):
        raise ValidationError("Invalid specification: paths object is required", "paths")

    info = raw.get("info")
    if not isinstance(info, dict) or not info.get("title") or not info.get("version"):
        raise ValidationError("Invalid specification: info.title and info.version are required", "info")


def validate_strict(raw: dict[str, Any]) -> None:
    try:
        validate(cast(Mapping[Hashable, Any], raw))
    except OpenAPIValidationError as exc:
        raise ValidationError(f"Specification failed validation: {_error_message(exc)}") from exc
    except Exception as exc:
        # Schema-level failures surface as plain jsonschema errors.
        raise ValidationError(f"Specification failed validation: {_error_message(exc)}") from exc


def load_specification_from_content(
    content: str,
    fmt: str = "yaml",
    strict: bool = False,
    source: str | None = None,
) -> OpenAPISpecification:
    raw = parse_spec_content(content, fmt)
    return _build_specification(raw, source or f"content-{fmt}", strict)


def load_specification(path: str, strict: bool = False) -> OpenAPISpecification:
    if not os.path.isfile(path):
        raise SpecificationNotFoundError(f"Specification not found: {path}", path)
    try:
        raw = load_raw_spec(path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValidationError(f"Failed to parse specification: {_error_message(exc)}") from exc
    return _build_specification(raw, os.path.abspath(path), strict)


def _build_specification(raw: Any, source: str, strict: bool) -> OpenAPISpecification:
    try:
        validate_basic_structure(raw)
        if strict:
            validate_strict(raw)
    except ValidationError as exc:
        logger.warning("specification rejected", extra={"source": source, "reason": exc.message})
        raise
    spec = OpenAPISpecification.create(raw, source)
    logger.info(
        "loaded specification",
        extra={"source": source, "title": spec.meta.title, "openapi": spec.openapi_version},
    )
    return spec


def extract_endpoints(spec: OpenAPISpecification, resolver: RefResolver | None = None) -> list[Endpoint]:
    endpoints: list[Endpoint] = []
    for path, path_item in spec.paths().items():
        if resolver is not None and is_reference(path_item):
            path_item = resolver.resolve(path_item["$ref"], spec.document)
        if not isinstance(path_item, dict) or not isinstance(path, str) or not path.startswith("/"):
            continue
        path_parameters = path_item.get("parameters")
        for method in list_http_methods():
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            merged_parameters = merge_parameters(
                path_parameters,
                operation.get("parameters"),
                resolver,
                spec.document,
            )
            operation_payload = dict(operation)
            if merged_parameters:
                operation_payload["parameters"] = merged_parameters
            endpoints.append(Endpoint.create(path, method, operation_payload))
    return endpoints


def merge_parameters(
    path_params: Any,
    op_params: Any,
    resolver: RefResolver | None = None,
    document: Mapping[str, Any] | None = None,
) -> list[Any]:
    """Merge path-level and operation parameters, the operation winning per (name, in).

    Reference parameters stay as references in the result. With a resolver they
    are keyed by the (name, in) of their target, otherwise by the reference itself.
    """
    merged: dict[Any, Any] = {}
    # Targets only matter when both levels declare parameters.
    keyed_by_target = bool(
        resolver is not None and document is not None and _non_empty_list(path_params) and _non_empty_list(op_params)
    )

    def reference_key(param: dict[str, Any]) -> tuple[str, str]:
        ref = param["$ref"]
        if not keyed_by_target:
            return ("$ref", ref)
        target = resolver.resolve(ref, document)
        if isinstance(target, Mapping):
            name = target.get("name")
            location = target.get("in")
            if isinstance(name, str) and isinstance(location, str):
                return (name, location)
        return ("$ref", ref)

    def ingest(params: Any) -> None:
        if not isinstance(params, list):
            return
        for param in params:
            if not isinstance(param, dict):
                continue
            if "$ref" in param:
                merged[reference_key(param)] = param
                continue
            name = param.get("name")
            location = param.get("in")
            if not isinstance(name, str) or not isinstance(location, str):
                continue
            merged[(name, location)] = param

    ingest(path_params)
    ingest(op_params)
    return list(merged.values())


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value)


def _error_message(error: Exception) -> str:
    message = str(error).strip()
    return message if message else error.__class__.__name__
