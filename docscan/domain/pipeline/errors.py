"""Exception hierarchy for the scanning pipeline.

Adapters raise these internally; every component boundary converts them into
a failed ``Result`` so nothing is thrown across components during normal
operation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from docscan.core.codes import ErrorCode


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    EXTERNAL_SERVICE = "external_service"
    FORMAT = "format"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"


class ScanError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        error_code: Code from the ``ErrorCode`` registry
        category: Error category for classification
        details: Additional context (dict)
        retryable: Whether the caller may retry the operation
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Problem Details style mapping."""
        return {
            "type": f"/errors/{self.error_code}",
            "title": self.message,
            "code": self.error_code,
            "detail": self.details.get("detail"),
            "category": self.category.value,
            "retryable": self.retryable,
        }


class ExternalServiceError(ScanError):
    """External service failure (network error or non-success status).

    Args:
        service_name: Name of the external service ("OCR", "LLM", "EDGE")
        error_type: "unavailable", "http_error", "timeout" or "error"
        details: Additional error context
    """

    def __init__(self, service_name: str, error_type: str, **kwargs):
        additional_details = kwargs.pop("details", {})
        additional_details.update(
            {
                "service": service_name,
                "error_type": error_type,
            }
        )
        reason = additional_details.get("reason")
        message = f"{service_name} service {error_type}"
        if reason:
            message = f"{message}: {reason}"

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", f"{service_name.upper()}_{error_type.upper()}"),
            category=ErrorCategory.EXTERNAL_SERVICE,
            details=additional_details,
            retryable=True,
            **kwargs,
        )


class ResponseFormatError(ScanError):
    """The call completed but returned a shape that cannot be parsed.

    Args:
        code: ``ErrorCode`` member describing the format problem
        detail: Optional extra description appended to the message
    """

    def __init__(self, code: ErrorCode, detail: Optional[str] = None, **kwargs):
        spec = code.value
        message = f"{spec.message}: {detail}" if detail else spec.message
        additional_details = kwargs.pop("details", {})
        if detail:
            additional_details["detail"] = detail
        super().__init__(
            message=message,
            error_code=spec.code,
            category=ErrorCategory.FORMAT,
            details=additional_details,
            retryable=spec.retryable,
        )


class SchemaValidationError(ScanError):
    """Extracted JSON failed strict validation against its schema."""

    def __init__(self, schema_name: str, errors: list[dict[str, Any]]):
        spec = ErrorCode.EXTRACT_SCHEMA_INVALID.value
        super().__init__(
            message=f"{spec.message} '{schema_name}' ({len(errors)} error(s))",
            error_code=spec.code,
            category=ErrorCategory.VALIDATION,
            details={"schema": schema_name, "errors": errors},
            retryable=False,
        )


class ConfigurationError(ScanError):
    """Pipeline components could not be built from the current settings."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.BACKEND_UNAVAILABLE.value.code,
            category=ErrorCategory.CONFIGURATION,
            details=kwargs.pop("details", None),
            retryable=False,
        )


def error_detail(error: Any) -> str:
    """Human-readable text for an error travelling in a failed Result."""
    if isinstance(error, ScanError):
        return error.message
    return str(error) or type(error).__name__


def as_scan_error(exc: BaseException, *, service_name: str = "PIPELINE") -> ScanError:
    """Wrap an unexpected exception so it can travel in a failed Result."""
    if isinstance(exc, ScanError):
        return exc
    return ScanError(
        message=f"{service_name} unexpected error: {exc}",
        error_code=ErrorCode.UNKNOWN_ERROR.value.code,
        category=ErrorCategory.EXTERNAL_SERVICE,
        details={"reason": str(exc), "exception_type": type(exc).__name__},
    )
