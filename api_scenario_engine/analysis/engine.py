from __future__ import annotations

import logging
import threading

from ..config import Settings
from .analyzer import EndpointAnalyzer
from .errors import EndpointNotFoundError
from .ingest import extract_endpoints, load_specification
from .model import Endpoint, EndpointAnalysis, EndpointInsights, OpenAPISpecification, RelatedEndpoint
from .resolve import RefResolver

logger = logging.getLogger(__name__)


class AnalysisSession:
    """One loaded document paired with its own resolver.

    The resolver cache carries no document identity, so a session never
    shares its resolver with another document.
    """

    def __init__(
        self,
        spec: OpenAPISpecification,
        settings: Settings | None = None,
    ) -> None:
        self.spec = spec
        self.settings = settings or Settings.from_env()
        self.resolver = RefResolver()
        self._analyzer = EndpointAnalyzer(
            self.resolver,
            default_content_type=self.settings.default_content_type,
        )
        self._lock = threading.RLock()
        self._endpoints: list[Endpoint] | None = None

    @classmethod
    def from_file(cls, path: str, settings: Settings | None = None) -> AnalysisSession:
        settings = settings or Settings.from_env()
        spec = load_specification(path, strict=settings.strict_validation)
        return cls(spec, settings)

    def list_endpoints(
        self,
        tag: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ) -> list[Endpoint]:
        """Endpoints in document order, optionally filtered.

        ``method`` matches case-insensitively, ``path`` is a substring match.
        """
        with self._lock:
            if self._endpoints is None:
                self._endpoints = extract_endpoints(self.spec, self.resolver)
            endpoints = list(self._endpoints)
        if tag is not None:
            endpoints = [endpoint for endpoint in endpoints if tag in endpoint.tags]
        if method is not None:
            endpoints = [endpoint for endpoint in endpoints if endpoint.method == method.upper()]
        if path is not None:
            endpoints = [endpoint for endpoint in endpoints if path in endpoint.path]
        return endpoints

    def group_by_tag(self, endpoints: list[Endpoint] | None = None) -> dict[str, list[Endpoint]]:
        grouped: dict[str, list[Endpoint]] = {}
        for endpoint in self.list_endpoints() if endpoints is None else endpoints:
            for tag in endpoint.tags:
                grouped.setdefault(tag, []).append(endpoint)
        return grouped

    def get_endpoint(self, path: str, method: str) -> Endpoint:
        wanted = method.upper()
        for endpoint in self.list_endpoints():
            if endpoint.path == path and endpoint.method == wanted:
                return endpoint
        raise EndpointNotFoundError(path, method)

    def analyze(self, path: str, method: str) -> EndpointAnalysis:
        with self._lock:
            endpoint = self.get_endpoint(path, method)
            analysis = self._analyzer.analyze(self.spec, endpoint)
            logger.info(
                "analyzed endpoint",
                extra={
                    "endpoint": endpoint.identifier,
                    "parameters": len(analysis.parameters),
                    "responses": len(analysis.responses),
                    "related": len(analysis.related_endpoints),
                },
            )
            return analysis

    def insights(self, path: str, method: str) -> EndpointInsights:
        return EndpointInsights.from_analysis(self.analyze(path, method))

    def find_related_endpoints(self, path: str, method: str) -> list[RelatedEndpoint]:
        with self._lock:
            endpoint = self.get_endpoint(path, method)
            return self._analyzer.find_related_endpoints(self.spec, endpoint)

    def reset(self) -> None:
        with self._lock:
            self.resolver.clear_cache()
            self._endpoints = None
