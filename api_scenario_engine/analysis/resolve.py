from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .errors import CircularReferenceError, InvalidReferenceError

logger = logging.getLogger(__name__)


def is_reference(value: Any) -> bool:
    return isinstance(value, Mapping) and "$ref" in value


def decode_pointer_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


class RefResolver:
    """Resolves local JSON pointer references with memoization and cycle detection.

    The cache is keyed by the reference string only, so one resolver must not
    be shared between two documents without calling ``clear_cache`` in between.
    """

    def __init__(self) -> None:
        self._cache: dict[str, Any] = {}
        self._resolving: dict[str, None] = {}

    def resolve(self, ref: str, document: Mapping[str, Any]) -> Any:
        if ref in self._cache:
            logger.debug("reference cache hit", extra={"ref": ref})
            return self._cache[ref]

        if ref in self._resolving:
            chain = list(self._resolving)
            raise CircularReferenceError(
                f"Circular reference detected: {ref}",
                chain,
                ref,
            )

        self._resolving[ref] = None
        try:
            resolved = self._resolve_local(ref, document)
            self._cache[ref] = resolved
            logger.debug("resolved reference", extra={"ref": ref})
            return resolved
        finally:
            self._resolving.pop(ref, None)

    def resolve_schema(self, schema: Any, document: Mapping[str, Any]) -> Any:
        if is_reference(schema):
            return self.resolve(schema["$ref"], document)
        return schema

    def has_been_resolved(self, ref: str) -> bool:
        return ref in self._cache

    def clear_cache(self) -> None:
        self._cache.clear()
        self._resolving.clear()

    def _resolve_local(self, ref: str, document: Mapping[str, Any]) -> Any:
        if not isinstance(ref, str) or not ref.startswith("#/"):
            raise InvalidReferenceError(
                f"Invalid local reference: {ref}. Must start with #/",
                str(ref),
                "Not a local reference",
            )

        current: Any = document
        for segment in ref[2:].split("/"):
            part = decode_pointer_segment(segment)
            found, current = _step(current, part)
            if not found:
                raise InvalidReferenceError(
                    f"Invalid reference: {ref}. Path not found at segment: {segment}",
                    ref,
                    f"Path not found at {segment}",
                )

        if current is None:
            raise InvalidReferenceError(
                f"Reference not found: {ref}",
                ref,
                "Reference resolved to undefined",
            )

        if is_reference(current):
            return self.resolve(current["$ref"], document)

        return current


def _step(current: Any, part: str) -> tuple[bool, Any]:
    if isinstance(current, Mapping):
        if part not in current:
            return False, None
        return True, current[part]
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if not part.isdigit():
            return False, None
        index = int(part)
        if index >= len(current):
            return False, None
        return True, current[index]
    return False, None
