from __future__ import annotations

from typing import Any


class AnalysisError(RuntimeError):
    code = "ANALYSIS_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
        }


class InvalidReferenceError(AnalysisError):
    code = "INVALID_REFERENCE"

    def __init__(self, message: str, reference: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reference = reference
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["reference"] = self.reference
        payload["reason"] = self.reason
        return payload


class CircularReferenceError(AnalysisError):
    """Raised when a reference is requested again while it is still being resolved."""

    code = "CIRCULAR_REFERENCE"

    def __init__(self, message: str, reference_path: list[str], circular_ref: str) -> None:
        super().__init__(message)
        self.reference_path = list(reference_path)
        self.circular_ref = circular_ref

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["referencePath"] = list(self.reference_path)
        payload["circularRef"] = self.circular_ref
        return payload


class ValidationError(AnalysisError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        payload["value"] = self.value
        return payload


class SpecificationNotFoundError(AnalysisError):
    code = "SPECIFICATION_NOT_FOUND"

    def __init__(self, message: str, file_path: str | None = None) -> None:
        super().__init__(message)
        self.file_path = file_path

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["filePath"] = self.file_path
        return payload


class EndpointNotFoundError(AnalysisError):
    code = "ENDPOINT_NOT_FOUND"

    def __init__(self, path: str, method: str) -> None:
        super().__init__(f"Endpoint not found: {method.upper()} {path}")
        self.path = path
        self.method = method.upper()

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["path"] = self.path
        payload["method"] = self.method
        return payload
