from __future__ import annotations

from typing import Any

from docscan.domain.pipeline.errors import error_detail
from docscan.domain.pipeline.models import (
    DomainExtraction,
    ExtractionOptions,
    ExtractionRequest,
    Result,
    SchemaDescriptor,
)
from docscan.domain.ports.extractor_port import StructuredExtractor

EXTRACTION_FAILED_PREFIX = "Extraction failed"


class SchemaBoundExtractor:
    """Binds a StructuredExtractor to one schema and prompt template.

    This is where the error object becomes a plain string for callers.
    """

    schema: SchemaDescriptor

    def __init__(self, extractor: StructuredExtractor, *, strict_validation: bool = False) -> None:
        self._extractor = extractor
        self._strict_validation = strict_validation

    def build_prompt(self, ocr_text: str) -> str:
        raise NotImplementedError

    def normalize(self, data: dict[str, Any]) -> None:
        """Domain clean-up applied in place after a successful extraction."""

    async def extract_from_text(self, ocr_text: str) -> Result[DomainExtraction, str]:
        request = ExtractionRequest(
            markdown=self.build_prompt(ocr_text),
            schema=self.schema,
            options=ExtractionOptions(strict_validation=self._strict_validation),
            source_text=ocr_text,
        )
        kind, value = await self._extractor.extract(request)
        if kind == "error":
            return Result.fail(f"{EXTRACTION_FAILED_PREFIX}: {error_detail(value)}")

        data = dict(value.json_)
        data["confidence"] = value.confidence
        self.normalize(data)
        return Result.ok(DomainExtraction(json=data, confidence=value.confidence))
