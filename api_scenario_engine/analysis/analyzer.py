from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .constraints import ConstraintExtractor
from .model import (
    AnalyzedParameter,
    AnalyzedRequestBody,
    AnalyzedResponse,
    Constraints,
    Endpoint,
    EndpointAnalysis,
    LinkInfo,
    OpenAPISpecification,
    RelatedEndpoint,
    ResolvedSchema,
)
from .relationships import RelationshipResolver, to_link_info
from .resolve import RefResolver, is_reference

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


class EndpointAnalyzer:
    """Builds a fully resolved ``EndpointAnalysis`` for one operation.

    Reference errors raised by the resolver propagate unchanged; missing
    optional pieces (responses, links, callbacks, schemas) degrade to
    defaults instead.
    """

    def __init__(
        self,
        resolver: RefResolver | None = None,
        default_content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        self.resolver = resolver or RefResolver()
        self.default_content_type = default_content_type
        self._constraints = ConstraintExtractor(self.resolver)
        self._relationships = RelationshipResolver(self.resolver)

    def analyze(self, spec: OpenAPISpecification, endpoint: Endpoint) -> EndpointAnalysis:
        document = spec.document
        logger.debug("analyzing endpoint", extra={"endpoint": endpoint.identifier})

        parameters = self.analyze_parameters(endpoint.parameters, document)
        request_body = (
            self.analyze_request_body(endpoint.request_body, document) if endpoint.has_request_body() else None
        )

        response_links, related = self._relationships.collect(endpoint.operation, document)
        links = [to_link_info(entry) for entry in response_links]
        links_by_status: dict[str, list[LinkInfo]] = {}
        for entry, info in zip(response_links, links):
            links_by_status.setdefault(entry.status_code, []).append(info)

        responses = self.analyze_responses(endpoint.responses, document, links_by_status)

        return EndpointAnalysis(
            path=endpoint.path,
            method=endpoint.method,
            operation=endpoint.operation,
            operation_id=endpoint.operation_id,
            summary=endpoint.summary,
            description=endpoint.description,
            tags=endpoint.tags,
            parameters=parameters,
            request_body=request_body,
            responses=responses,
            security=endpoint.security,
            callbacks=endpoint.callbacks,
            links=links,
            related_endpoints=related,
        )

    def find_related_endpoints(self, spec: OpenAPISpecification, endpoint: Endpoint) -> list[RelatedEndpoint]:
        return self._relationships.find_related_endpoints(endpoint.operation, spec.document)

    def analyze_parameters(self, params: list[Any], document: Mapping[str, Any]) -> list[AnalyzedParameter]:
        analyzed: list[AnalyzedParameter] = []
        for param in params:
            resolved = self._deref(param, document)
            if not isinstance(resolved, Mapping):
                continue
            location = resolved.get("in")
            declared = resolved.get("required")
            analyzed.append(
                AnalyzedParameter(
                    name=resolved.get("name", ""),
                    location=location,
                    required=bool(declared) or location == "path",
                    schema=self._parameter_schema(resolved, document),
                    description=resolved.get("description"),
                    example=resolved.get("example"),
                )
            )
        return analyzed

    def analyze_request_body(self, request_body: Any, document: Mapping[str, Any]) -> AnalyzedRequestBody:
        resolved = self._deref(request_body, document)
        resolved = resolved if isinstance(resolved, Mapping) else {}
        content = resolved.get("content")
        content = content if isinstance(content, Mapping) else {}

        content_type = next(iter(content), None) or self.default_content_type
        media = content.get(content_type)
        media = media if isinstance(media, Mapping) else {}

        return AnalyzedRequestBody(
            required=bool(resolved.get("required", False)),
            content_type=content_type,
            schema=self._media_schema(media.get("schema"), document),
            examples=dict(media.get("examples") or {}),
        )

    def analyze_responses(
        self,
        responses: Mapping[str, Any],
        document: Mapping[str, Any],
        links_by_status: dict[str, list[LinkInfo]] | None = None,
    ) -> dict[str, AnalyzedResponse]:
        links_by_status = links_by_status or {}
        analyzed: dict[str, AnalyzedResponse] = {}
        for status, response in responses.items():
            status_code = str(status)
            resolved = self._relationships.resolve_response(response, document)
            content = resolved.get("content")
            content = content if isinstance(content, Mapping) else {}
            content_type = next(iter(content), None)
            media = content.get(content_type) if content_type else None
            media = media if isinstance(media, Mapping) else {}
            headers = resolved.get("headers")

            analyzed[status_code] = AnalyzedResponse(
                status_code=status_code,
                description=resolved.get("description") or "",
                schema=self._media_schema(media.get("schema"), document) if content_type else None,
                examples=dict(media.get("examples") or {}),
                headers=dict(headers) if isinstance(headers, Mapping) else None,
                links=list(links_by_status.get(status_code, [])),
            )
        return analyzed

    def _parameter_schema(self, param: Mapping[str, Any], document: Mapping[str, Any]) -> ResolvedSchema:
        raw = param.get("schema")
        if raw is None:
            raw = {"type": "string"}
        schema = self.resolver.resolve_schema(raw, document)

        examples = param.get("examples")
        return ResolvedSchema(
            schema=schema,
            constraints=self._constraints.extract(raw, document),
            examples=list(examples.values()) if isinstance(examples, Mapping) else [],
        )

    def _media_schema(self, raw: Any, document: Mapping[str, Any]) -> ResolvedSchema:
        if raw is None:
            return ResolvedSchema(schema={"type": "object"}, constraints=Constraints(type="object"))
        schema = self.resolver.resolve_schema(raw, document)
        return ResolvedSchema(schema=schema, constraints=self._constraints.extract(raw, document))

    def _deref(self, value: Any, document: Mapping[str, Any]) -> Any:
        if is_reference(value):
            return self.resolver.resolve(value["$ref"], document)
        return value
