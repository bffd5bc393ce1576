"""Shared extraction flow for the hosted and edge backends.

Subclasses only implement ``_complete``: one model call returning the parsed
JSON object and the raw response metadata. Everything after parsing
(hallucination detection, strict validation, confidence) happens here,
exactly once per call.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from docscan.core.logging import EventSink, default_sink
from docscan.domain.extraction.confidence import ConfidenceWeights, calculate_confidence
from docscan.domain.extraction.hallucination import (
    DEFAULT_FUZZY_THRESHOLD,
    AntiHallucinationDetector,
    DocumentKind,
)
from docscan.domain.pipeline.errors import ScanError, SchemaValidationError, as_scan_error
from docscan.domain.pipeline.models import (
    ExtractionRequest,
    ExtractionResult,
    Result,
    SchemaDescriptor,
)


def document_kind_for(schema: SchemaDescriptor | None) -> DocumentKind | None:
    if schema is None:
        return None
    try:
        return DocumentKind(schema.name.lower())
    except ValueError:
        return None


class JsonExtractorBase:
    backend = "base"
    service_name = "LLM"

    def __init__(
        self,
        *,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
        weights: ConfidenceWeights | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._fuzzy_threshold = fuzzy_threshold
        self._weights = weights
        self._sink = sink or default_sink()

    async def _complete(self, request: ExtractionRequest) -> tuple[dict[str, Any], dict[str, Any]]:
        raise NotImplementedError

    async def extract(self, request: ExtractionRequest) -> Result[ExtractionResult, ScanError]:
        try:
            parsed, response_meta = await self._complete(request)
        except Exception as e:
            error = as_scan_error(e, service_name=self.service_name)
            self._sink.emit(
                "extraction_failed",
                logging.WARNING,
                backend=self.backend,
                error_code=error.error_code,
            )
            return Result.fail(error)
        return self._finalize(request, parsed, response_meta)

    def _finalize(
        self,
        request: ExtractionRequest,
        parsed: dict[str, Any],
        response_meta: dict[str, Any],
    ) -> Result[ExtractionResult, ScanError]:
        detector = AntiHallucinationDetector(
            request.grounding_text,
            fuzzy_threshold=self._fuzzy_threshold,
            sink=self._sink,
        )
        detector.detect(parsed, document_kind_for(request.schema_))

        schema = request.schema_
        if request.options.strict_validation and schema is not None:
            try:
                schema.model.model_validate_json(json.dumps(parsed), strict=True)
            except ValidationError as e:
                error = SchemaValidationError(
                    schema.name,
                    e.errors(include_url=False, include_context=False, include_input=False),
                )
                self._sink.emit(
                    "extraction_failed",
                    logging.WARNING,
                    backend=self.backend,
                    error_code=error.error_code,
                )
                return Result.fail(error)

        confidence = calculate_confidence(response_meta, parsed, self._weights)
        self._sink.emit(
            "extraction_completed",
            logging.INFO,
            backend=self.backend,
            schema=schema.name if schema else None,
            confidence=confidence,
        )
        return Result.ok(ExtractionResult(json=parsed, confidence=confidence))
