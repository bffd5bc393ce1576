"""
Centralized error code registry with specifications.

Provides single source of truth for error codes, their categories
and retryability flags.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ErrorSpec:
    """Specification for a single error type."""

    code: str
    message: str
    category: str  # "external_service", "format", "validation" or "configuration"
    retryable: bool


class ErrorCode(Enum):
    """Centralized error code registry.

    Usage:
        spec = ErrorCode.get_spec("OCR_UNAVAILABLE")
        print(spec.message, spec.category, spec.retryable)
    """

    # ========================================
    # TRANSPORT / AVAILABILITY (retryable by the caller)
    # ========================================
    OCR_UNAVAILABLE = ErrorSpec(
        "OCR_UNAVAILABLE",
        "OCR service could not be reached",
        "external_service",
        True,
    )
    OCR_HTTP_ERROR = ErrorSpec(
        "OCR_HTTP_ERROR",
        "OCR service returned a non-success status",
        "external_service",
        True,
    )
    LLM_UNAVAILABLE = ErrorSpec(
        "LLM_UNAVAILABLE",
        "LLM service could not be reached",
        "external_service",
        True,
    )
    LLM_HTTP_ERROR = ErrorSpec(
        "LLM_HTTP_ERROR",
        "LLM service returned a non-success status",
        "external_service",
        True,
    )
    EDGE_INFERENCE_FAILED = ErrorSpec(
        "EDGE_INFERENCE_FAILED",
        "Edge inference call failed",
        "external_service",
        True,
    )

    # ========================================
    # FORMAT ERRORS (not retryable)
    # ========================================
    OCR_MALFORMED_RESPONSE = ErrorSpec(
        "OCR_MALFORMED_RESPONSE",
        "OCR response has an unexpected shape",
        "format",
        False,
    )
    LLM_EMPTY_RESPONSE = ErrorSpec(
        "LLM_EMPTY_RESPONSE",
        "Empty response from LLM API",
        "format",
        False,
    )
    LLM_INVALID_CONTENT = ErrorSpec(
        "LLM_INVALID_CONTENT",
        "Invalid response format from LLM API",
        "format",
        False,
    )
    LLM_JSON_PARSE_ERROR = ErrorSpec(
        "LLM_JSON_PARSE_ERROR",
        "Invalid JSON response",
        "format",
        False,
    )
    EDGE_UNKNOWN_RESPONSE_SHAPE = ErrorSpec(
        "EDGE_UNKNOWN_RESPONSE_SHAPE",
        "Unrecognized edge inference response shape",
        "format",
        False,
    )
    EXTRACT_SCHEMA_INVALID = ErrorSpec(
        "EXTRACT_SCHEMA_INVALID",
        "Extracted JSON does not match the schema",
        "validation",
        False,
    )

    # ========================================
    # CONFIGURATION
    # ========================================
    BACKEND_UNAVAILABLE = ErrorSpec(
        "BACKEND_UNAVAILABLE",
        "No configured extractor backend is available",
        "configuration",
        False,
    )

    # ========================================
    # FALLBACK
    # ========================================
    UNKNOWN_ERROR = ErrorSpec(
        "UNKNOWN_ERROR",
        "Unknown error",
        "server_error",
        False,
    )

    @classmethod
    def get_spec(cls, code: str) -> ErrorSpec:
        """Get error specification by code string.

        Returns:
            ErrorSpec with category, message, and retryability.
            Returns default spec for unknown codes.
        """
        for error in cls:
            if error.value.code == code:
                return error.value
        return ErrorSpec(code, f"Error: {code}", "server_error", False)
