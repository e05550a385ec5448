from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError

VALID_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE")


@dataclass(frozen=True)
class SpecMeta:
    title: str | None
    version: str | None
    description: str | None
    servers: list[str]
    security_schemes: list[str]
    openapi_version: str | None


@dataclass(frozen=True)
class OpenAPISpecification:
    document: dict[str, Any]
    meta: SpecMeta
    source: str

    @classmethod
    def create(cls, document: dict[str, Any], source: str) -> OpenAPISpecification:
        return cls(document=document, meta=_extract_meta(document), source=source)

    @property
    def openapi_version(self) -> str | None:
        return self.meta.openapi_version

    @property
    def supports_webhooks(self) -> bool:
        return bool(self.openapi_version and self.openapi_version.startswith("3.1"))

    def paths(self) -> dict[str, Any]:
        paths = self.document.get("paths")
        return paths if isinstance(paths, dict) else {}

    def has_path(self, path: str) -> bool:
        return path in self.paths()

    def validate(self) -> None:
        if not self.document.get("openapi"):
            raise ValidationError("Missing openapi version", "openapi")
        info = self.document.get("info")
        info = info if isinstance(info, dict) else {}
        if not info.get("title"):
            raise ValidationError("Missing info.title", "info.title")
        if not info.get("version"):
            raise ValidationError("Missing info.version", "info.version")
        if not self.paths():
            raise ValidationError("No paths defined in specification", "paths")


def _extract_meta(document: dict[str, Any]) -> SpecMeta:
    info = document.get("info")
    info = info if isinstance(info, dict) else {}
    servers_raw = document.get("servers")
    servers = (
        [item["url"] for item in servers_raw if isinstance(item, dict) and isinstance(item.get("url"), str)]
        if isinstance(servers_raw, list)
        else []
    )
    components = document.get("components")
    schemes = components.get("securitySchemes") if isinstance(components, dict) else None
    openapi = document.get("openapi")
    return SpecMeta(
        title=info.get("title"),
        version=info.get("version"),
        description=info.get("description"),
        servers=servers,
        security_schemes=list(schemes.keys()) if isinstance(schemes, dict) else [],
        openapi_version=openapi if isinstance(openapi, str) else None,
    )


@dataclass(frozen=True)
class Endpoint:
    path: str
    method: str
    operation: dict[str, Any]

    @classmethod
    def create(cls, path: str, method: str, operation: dict[str, Any]) -> Endpoint:
        if not isinstance(path, str) or not path.startswith("/"):
            raise ValidationError("Invalid endpoint path", "path", path)
        normalized = method.upper() if isinstance(method, str) else ""
        if normalized not in VALID_METHODS:
            raise ValidationError(f"Invalid HTTP method: {method}", "method", method)
        if not isinstance(operation, dict):
            raise ValidationError("Operation must be an object", "operation", operation)
        return cls(path=path, method=normalized, operation=operation)

    @property
    def identifier(self) -> str:
        return f"{self.method} {self.path}"

    @property
    def operation_id(self) -> str | None:
        value = self.operation.get("operationId")
        return value if isinstance(value, str) else None

    @property
    def summary(self) -> str | None:
        return self.operation.get("summary")

    @property
    def description(self) -> str | None:
        return self.operation.get("description")

    @property
    def tags(self) -> list[str]:
        tags = self.operation.get("tags")
        return [tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else []

    @property
    def parameters(self) -> list[Any]:
        params = self.operation.get("parameters")
        return list(params) if isinstance(params, list) else []

    @property
    def request_body(self) -> Any:
        return self.operation.get("requestBody")

    @property
    def responses(self) -> dict[str, Any]:
        responses = self.operation.get("responses")
        return responses if isinstance(responses, dict) else {}

    @property
    def security(self) -> list[dict[str, Any]]:
        security = self.operation.get("security")
        return list(security) if isinstance(security, list) else []

    @property
    def callbacks(self) -> dict[str, Any] | None:
        callbacks = self.operation.get("callbacks")
        return callbacks if isinstance(callbacks, dict) else None

    @property
    def deprecated(self) -> bool:
        return self.operation.get("deprecated") is True

    def has_request_body(self) -> bool:
        return bool(self.operation.get("requestBody"))

    def is_idempotent(self) -> bool:
        return self.method in ("GET", "PUT", "DELETE", "HEAD", "OPTIONS", "TRACE")

    def is_safe(self) -> bool:
        return self.method in ("GET", "HEAD", "OPTIONS", "TRACE")


@dataclass(frozen=True)
class Constraints:
    type: str | list[str] | None = None
    required: list[str] | None = None
    properties: dict[str, Constraints] | None = None
    items: Constraints | None = None
    # string
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None
    # number
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | bool | None = None
    exclusive_maximum: float | bool | None = None
    multiple_of: float | None = None
    # array
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None
    # enum
    enum: list[Any] | None = None
    const: Any = None
    has_const: bool = False
    # composition
    all_of: list[Constraints] | None = None
    one_of: list[Constraints] | None = None
    any_of: list[Constraints] | None = None
    not_: Constraints | None = None


@dataclass(frozen=True)
class ResolvedSchema:
    schema: dict[str, Any]
    constraints: Constraints
    examples: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class AnalyzedParameter:
    name: str
    location: str
    required: bool
    schema: ResolvedSchema
    description: str | None = None
    example: Any = None


@dataclass(frozen=True)
class AnalyzedRequestBody:
    required: bool
    content_type: str
    schema: ResolvedSchema
    examples: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LinkInfo:
    name: str
    operation_id: str | None = None
    operation_ref: str | None = None
    description: str | None = None
    parameters: dict[str, str] | None = None


@dataclass(frozen=True)
class AnalyzedResponse:
    status_code: str
    description: str
    schema: ResolvedSchema | None = None
    examples: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, Any] | None = None
    links: list[LinkInfo] = field(default_factory=list)


@dataclass(frozen=True)
class RelatedEndpoint:
    relationship: str  # link / callback / webhook
    path: str
    method: str
    via: str


@dataclass(frozen=True)
class EndpointAnalysis:
    path: str
    method: str
    operation: dict[str, Any]
    operation_id: str | None
    summary: str | None
    description: str | None
    tags: list[str]
    parameters: list[AnalyzedParameter]
    request_body: AnalyzedRequestBody | None
    responses: dict[str, AnalyzedResponse]
    security: list[dict[str, Any]]
    callbacks: dict[str, Any] | None
    links: list[LinkInfo]
    related_endpoints: list[RelatedEndpoint]


@dataclass(frozen=True)
class EndpointInsights:
    has_authentication: bool
    has_request_body: bool
    has_path_parameters: bool
    has_query_parameters: bool
    response_count: int
    related_endpoint_count: int

    @classmethod
    def from_analysis(cls, analysis: EndpointAnalysis) -> EndpointInsights:
        locations = {param.location for param in analysis.parameters}
        return cls(
            has_authentication=bool(analysis.security),
            has_request_body=analysis.request_body is not None,
            has_path_parameters="path" in locations,
            has_query_parameters="query" in locations,
            response_count=len(analysis.responses),
            related_endpoint_count=len(analysis.related_endpoints),
        )
