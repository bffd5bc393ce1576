"""Extraction protocols: structured extractors, inference runners, domain extractors."""

from __future__ import annotations

from typing import Any, Protocol

from docscan.domain.pipeline.errors import ScanError
from docscan.domain.pipeline.models import (
    DomainExtraction,
    ExtractionRequest,
    ExtractionResult,
    Result,
)


class StructuredExtractor(Protocol):
    """Turns recognized text (+ optional schema) into a JSON object with confidence."""

    async def extract(self, request: ExtractionRequest) -> Result[ExtractionResult, ScanError]: ...


class InferenceRunner(Protocol):
    """Locally hosted model runner used by the edge backend.

    The returned payload is intentionally loose; callers unwrap it through a
    fixed table of known shapes.
    """

    async def run(self, model: str, inputs: dict[str, Any]) -> Any: ...


class DomainExtractor(Protocol):
    """Schema-bound extractor for one document kind. Errors are plain strings."""

    async def extract_from_text(self, ocr_text: str) -> Result[DomainExtraction, str]: ...
