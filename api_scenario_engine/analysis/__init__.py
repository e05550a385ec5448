from .analyzer import EndpointAnalyzer
from .constraints import ConstraintExtractor, extract_constraints
from .engine import AnalysisSession
from .errors import (
    AnalysisError,
    CircularReferenceError,
    EndpointNotFoundError,
    InvalidReferenceError,
    SpecificationNotFoundError,
    ValidationError,
)
from .ingest import extract_endpoints, load_specification, load_specification_from_content
from .model import (
    AnalyzedParameter,
    AnalyzedRequestBody,
    AnalyzedResponse,
    Constraints,
    Endpoint,
    EndpointAnalysis,
    EndpointInsights,
    LinkInfo,
    OpenAPISpecification,
    RelatedEndpoint,
    ResolvedSchema,
)
from .relationships import RelationshipResolver
from .render import render_analysis, render_insights
from .resolve import RefResolver

__all__ = [
    "AnalysisError",
    "AnalysisSession",
    "AnalyzedParameter",
    "AnalyzedRequestBody",
    "AnalyzedResponse",
    "CircularReferenceError",
    "ConstraintExtractor",
    "Constraints",
    "Endpoint",
    "EndpointAnalysis",
    "EndpointAnalyzer",
    "EndpointInsights",
    "EndpointNotFoundError",
    "InvalidReferenceError",
    "LinkInfo",
    "OpenAPISpecification",
    "RefResolver",
    "RelatedEndpoint",
    "RelationshipResolver",
    "ResolvedSchema",
    "SpecificationNotFoundError",
    "ValidationError",
    "extract_constraints",
    "extract_endpoints",
    "load_specification",
    "load_specification_from_content",
    "render_analysis",
    "render_insights",
]
