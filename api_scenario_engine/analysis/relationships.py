from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .model import LinkInfo, RelatedEndpoint
from .resolve import RefResolver, decode_pointer_segment, is_reference

logger = logging.getLogger(__name__)

# Path-item method order used when searching operations and emitting callbacks.
RELATIONSHIP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


@dataclass(frozen=True)
class ResponseLink:
    name: str
    status_code: str
    link: Mapping[str, Any]


@dataclass(frozen=True)
class RelationshipTarget:
    relationship: str
    path: str
    method: str


class RelationshipResolver:
    """Discovers endpoints related to an operation through links, callbacks and webhooks."""

    def __init__(self, resolver: RefResolver) -> None:
        self._resolver = resolver

    def collect(
        self,
        operation: Mapping[str, Any],
        document: Mapping[str, Any],
    ) -> tuple[list[ResponseLink], list[RelatedEndpoint]]:
        responses = operation.get("responses")
        response_links = self.collect_response_links(responses, document)

        related = self._related_from_links(response_links, document)
        related.extend(self.callback_relationships(operation.get("callbacks"), document))
        return response_links, related

    def find_related_endpoints(
        self,
        operation: Mapping[str, Any],
        document: Mapping[str, Any],
    ) -> list[RelatedEndpoint]:
        _, related = self.collect(operation, document)
        return related

    def collect_response_links(self, responses: Any, document: Mapping[str, Any]) -> list[ResponseLink]:
        if not isinstance(responses, Mapping):
            return []

        collected: list[ResponseLink] = []
        for status_code, response in responses.items():
            resolved = self.resolve_response(response, document)
            links = resolved.get("links")
            if not isinstance(links, Mapping):
                continue
            for name, value in links.items():
                link = self._deref(value, document)
                if not isinstance(link, Mapping):
                    continue
                collected.append(ResponseLink(name=name, status_code=str(status_code), link=link))
        return collected

    def resolve_response(self, response: Any, document: Mapping[str, Any]) -> Mapping[str, Any]:
        if response is None:
            return {"description": ""}
        resolved = self._deref(response, document)
        return resolved if isinstance(resolved, Mapping) else {"description": ""}

    def callback_relationships(self, callbacks: Any, document: Mapping[str, Any]) -> list[RelatedEndpoint]:
        if not isinstance(callbacks, Mapping):
            return []

        related: list[RelatedEndpoint] = []
        for callback_name, value in callbacks.items():
            callback = self._deref(value, document)
            if not isinstance(callback, Mapping):
                continue
            for expression, path_item in callback.items():
                resolved_item = self._deref(path_item, document)
                for method in _http_methods_on(resolved_item):
                    related.append(
                        RelatedEndpoint(
                            relationship="callback",
                            path=expression,
                            method=method,
                            via=f"{callback_name} callback",
                        )
                    )
        return related

    def resolve_link_target(self, link: Mapping[str, Any], document: Mapping[str, Any]) -> RelationshipTarget | None:
        operation_id = link.get("operationId")
        if isinstance(operation_id, str) and operation_id:
            located = self.find_operation_by_id(document, operation_id)
            if located is not None:
                return located

        operation_ref = link.get("operationRef")
        if isinstance(operation_ref, str) and operation_ref:
            return parse_operation_ref(operation_ref)

        return None

    def find_operation_by_id(self, document: Mapping[str, Any], operation_id: str) -> RelationshipTarget | None:
        paths = document.get("paths")
        located = self._search_operations(paths, "link", document, operation_id)
        if located is not None:
            return located

        webhooks = document.get("webhooks")
        return self._search_operations(webhooks, "webhook", document, operation_id)

    def _search_operations(
        self,
        collection: Any,
        relationship: str,
        document: Mapping[str, Any],
        operation_id: str,
    ) -> RelationshipTarget | None:
        if not isinstance(collection, Mapping):
            return None
        for key, path_item in collection.items():
            resolved_item = self._deref(path_item, document)
            if not isinstance(resolved_item, Mapping):
                continue
            for method in RELATIONSHIP_METHODS:
                operation = resolved_item.get(method)
                if isinstance(operation, Mapping) and operation.get("operationId") == operation_id:
                    return RelationshipTarget(relationship=relationship, path=key, method=method.upper())
        return None

    def _related_from_links(self, entries: list[ResponseLink], document: Mapping[str, Any]) -> list[RelatedEndpoint]:
        related: list[RelatedEndpoint] = []
        for entry in entries:
            target = self.resolve_link_target(entry.link, document)
            if target is None:
                logger.debug(
                    "link target not found",
                    extra={"link": entry.name, "statusCode": entry.status_code},
                )
                continue
            related.append(
                RelatedEndpoint(
                    relationship=target.relationship,
                    path=target.path,
                    method=target.method,
                    via=f"{entry.name} link in {entry.status_code} response",
                )
            )
        return related

    def _deref(self, value: Any, document: Mapping[str, Any]) -> Any:
        if value is None:
            return None
        if is_reference(value):
            return self._resolver.resolve(value["$ref"], document)
        return value


def to_link_info(entry: ResponseLink) -> LinkInfo:
    link = entry.link
    operation_id = link.get("operationId")
    operation_ref = link.get("operationRef")
    description = link.get("description")
    return LinkInfo(
        name=entry.name,
        operation_id=operation_id if isinstance(operation_id, str) else None,
        operation_ref=operation_ref if isinstance(operation_ref, str) else None,
        description=description if isinstance(description, str) else None,
        parameters=normalize_link_parameters(link.get("parameters")),
    )


def normalize_link_parameters(parameters: Any) -> dict[str, str] | None:
    if not isinstance(parameters, Mapping):
        return None
    return {
        key: value if isinstance(value, str) else _json_text(value)
        for key, value in parameters.items()
    }


def _json_text(value: Any) -> str:
    return json.dumps(_integral_floats(value), separators=(",", ":"), ensure_ascii=False)


def _integral_floats(value: Any) -> Any:
    # Integral floats render without a fractional part: 1.0 -> 1.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {key: _integral_floats(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_integral_floats(item) for item in value]
    return value


def parse_operation_ref(ref: str) -> RelationshipTarget | None:
    pointer_index = ref.find("#/")
    if pointer_index == -1:
        return None

    segments = [decode_pointer_segment(segment) for segment in ref[pointer_index + 2 :].split("/")]
    root = segments[0]
    if root not in ("paths", "webhooks"):
        return None
    if len(segments) < 3 or not segments[1] or not segments[2]:
        return None

    return RelationshipTarget(
        relationship="webhook" if root == "webhooks" else "link",
        path=segments[1],
        method=segments[2].upper(),
    )


def _http_methods_on(path_item: Any) -> list[str]:
    if not isinstance(path_item, Mapping):
        return []
    return [method.upper() for method in RELATIONSHIP_METHODS if isinstance(path_item.get(method), Mapping)]
