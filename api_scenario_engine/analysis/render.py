from __future__ import annotations

from dataclasses import fields
from typing import Any

from .model import (
    AnalyzedParameter,
    AnalyzedRequestBody,
    AnalyzedResponse,
    Constraints,
    EndpointAnalysis,
    EndpointInsights,
    LinkInfo,
    RelatedEndpoint,
    ResolvedSchema,
    SpecMeta,
)

# Constraints field -> JSON Schema keyword.
_CONSTRAINT_KEYS = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "exclusive_minimum": "exclusiveMinimum",
    "exclusive_maximum": "exclusiveMaximum",
    "multiple_of": "multipleOf",
    "min_items": "minItems",
    "max_items": "maxItems",
    "unique_items": "uniqueItems",
    "all_of": "allOf",
    "one_of": "oneOf",
    "any_of": "anyOf",
    "not_": "not",
}


def render_spec_meta(meta: SpecMeta) -> dict[str, Any]:
    return {
        "title": meta.title,
        "version": meta.version,
        "description": meta.description,
        "servers": list(meta.servers),
        "securitySchemes": list(meta.security_schemes),
        "openApiVersion": meta.openapi_version,
    }


def render_constraints(constraints: Constraints) -> dict[str, Any]:
    rendered: dict[str, Any] = {}
    for item in fields(constraints):
        if item.name == "has_const":
            continue
        value = getattr(constraints, item.name)
        if item.name == "const":
            if constraints.has_const:
                rendered["const"] = value
            continue
        if value is None:
            continue
        key = _CONSTRAINT_KEYS.get(item.name, item.name)
        if isinstance(value, Constraints):
            rendered[key] = render_constraints(value)
        elif item.name == "properties":
            rendered[key] = {name: render_constraints(prop) for name, prop in value.items()}
        elif item.name in ("all_of", "one_of", "any_of"):
            rendered[key] = [render_constraints(member) for member in value]
        else:
            rendered[key] = value
    return rendered


def render_resolved_schema(resolved: ResolvedSchema) -> dict[str, Any]:
    return {
        "schema": resolved.schema,
        "constraints": render_constraints(resolved.constraints),
        "examples": list(resolved.examples),
    }


def render_parameter(param: AnalyzedParameter) -> dict[str, Any]:
    return {
        "name": param.name,
        "in": param.location,
        "required": param.required,
        "schema": render_resolved_schema(param.schema),
        "description": param.description,
        "example": param.example,
    }


def render_request_body(body: AnalyzedRequestBody | None) -> dict[str, Any] | None:
    if body is None:
        return None
    return {
        "required": body.required,
        "contentType": body.content_type,
        "schema": render_resolved_schema(body.schema),
        "examples": dict(body.examples),
    }


def render_link(link: LinkInfo) -> dict[str, Any]:
    return {
        "name": link.name,
        "operationId": link.operation_id,
        "operationRef": link.operation_ref,
        "description": link.description,
        "parameters": dict(link.parameters) if link.parameters is not None else None,
    }


def render_response(response: AnalyzedResponse) -> dict[str, Any]:
    return {
        "statusCode": response.status_code,
        "description": response.description,
        "schema": render_resolved_schema(response.schema) if response.schema else None,
        "examples": dict(response.examples),
        "headers": response.headers,
        "links": [render_link(link) for link in response.links],
    }


def render_related(related: RelatedEndpoint) -> dict[str, Any]:
    return {
        "relationship": related.relationship,
        "path": related.path,
        "method": related.method,
        "via": related.via,
    }


def render_analysis(analysis: EndpointAnalysis) -> dict[str, Any]:
    return {
        "path": analysis.path,
        "method": analysis.method,
        "operationId": analysis.operation_id,
        "summary": analysis.summary,
        "description": analysis.description,
        "tags": list(analysis.tags),
        "parameters": [render_parameter(param) for param in analysis.parameters],
        "requestBody": render_request_body(analysis.request_body),
        "responses": {status: render_response(resp) for status, resp in analysis.responses.items()},
        "security": list(analysis.security),
        "callbacks": analysis.callbacks,
        "links": [render_link(link) for link in analysis.links],
        "relatedEndpoints": [render_related(item) for item in analysis.related_endpoints],
    }


def render_insights(insights: EndpointInsights) -> dict[str, Any]:
    return {
        "hasAuthentication": insights.has_authentication,
        "hasRequestBody": insights.has_request_body,
        "hasPathParameters": insights.has_path_parameters,
        "hasQueryParameters": insights.has_query_parameters,
        "responseCount": insights.response_count,
        "relatedEndpointCount": insights.related_endpoint_count,
    }
