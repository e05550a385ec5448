from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import CircularReferenceError
from .model import Constraints
from .resolve import RefResolver, is_reference

# JSON Schema keyword -> Constraints field, copied verbatim.
SCALAR_KEYWORDS = {
    "type": "type",
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "format": "format",
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "multipleOf": "multiple_of",
    "minItems": "min_items",
    "maxItems": "max_items",
    "uniqueItems": "unique_items",
}

COMPOSITION_KEYWORDS = {
    "allOf": "all_of",
    "oneOf": "one_of",
    "anyOf": "any_of",
}


class ConstraintExtractor:
    """Flattens a schema into a fully dereferenced ``Constraints`` tree.

    Every nested reference goes through the shared ``RefResolver``. Because
    resolved targets are cached, a schema that contains itself (for example a
    tree node whose ``children`` items point back at the node) would otherwise
    expand forever, so the extractor tracks the references it is currently
    expanding and reports re-entry as a ``CircularReferenceError``.
    """

    def __init__(self, resolver: RefResolver) -> None:
        self._resolver = resolver

    def extract(self, schema: Any, document: Mapping[str, Any]) -> Constraints:
        return self._nested(schema, document, ())

    def _extract(self, schema: Any, document: Mapping[str, Any], expanding: tuple[str, ...]) -> Constraints:
        if not isinstance(schema, Mapping):
            return Constraints()

        values: dict[str, Any] = {}
        for keyword, attr in SCALAR_KEYWORDS.items():
            if keyword in schema:
                values[attr] = schema[keyword]

        required = schema.get("required")
        if isinstance(required, list):
            values["required"] = list(required)

        enum = schema.get("enum")
        if isinstance(enum, list):
            values["enum"] = list(enum)

        if "const" in schema:
            values["const"] = schema["const"]
            values["has_const"] = True

        properties = schema.get("properties")
        if isinstance(properties, Mapping):
            values["properties"] = {
                name: self._nested(prop, document, expanding) for name, prop in properties.items()
            }

        items = schema.get("items")
        if isinstance(items, Mapping):
            values["items"] = self._nested(items, document, expanding)

        for keyword, attr in COMPOSITION_KEYWORDS.items():
            members = schema.get(keyword)
            if isinstance(members, list):
                values[attr] = [self._nested(member, document, expanding) for member in members]

        negated = schema.get("not")
        if isinstance(negated, Mapping):
            values["not_"] = self._nested(negated, document, expanding)

        return Constraints(**values)

    def _nested(self, schema: Any, document: Mapping[str, Any], expanding: tuple[str, ...]) -> Constraints:
        if not is_reference(schema):
            return self._extract(schema, document, expanding)

        ref = schema["$ref"]
        if ref in expanding:
            raise CircularReferenceError(
                f"Circular schema reference detected: {ref}",
                list(expanding),
                ref,
            )
        resolved = self._resolver.resolve_schema(schema, document)
        return self._extract(resolved, document, expanding + (ref,))


def extract_constraints(
    schema: Any,
    document: Mapping[str, Any],
    resolver: RefResolver | None = None,
) -> Constraints:
    return ConstraintExtractor(resolver or RefResolver()).extract(schema, document)
