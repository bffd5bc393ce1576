"""OcrProvider backed by the hosted Mistral OCR endpoint."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

from docscan.core.codes import ErrorCode
from docscan.core.logging import EventSink, default_sink
from docscan.domain.pipeline.errors import ResponseFormatError, ScanError, as_scan_error
from docscan.domain.pipeline.models import Document, DocumentType, OcrPage, Result
from docscan.infrastructure.clients.mistral_http import MistralHttpClient

DEFAULT_OCR_MODEL = "mistral-ocr-latest"


def build_document_chunk(document: Document) -> dict[str, str]:
    """Base64 data URL chunk in the shape the OCR endpoint expects."""
    encoded = base64.b64encode(document.content).decode("ascii")
    data_url = f"data:{document.resolved_mime_type};base64,{encoded}"
    if document.type == DocumentType.PDF:
        return {"type": "document_url", "document_url": data_url}
    return {"type": "image_url", "image_url": data_url}


def normalize_page_confidence(raw: Any) -> float:
    """Map a provider-native confidence to [0, 1]; absent means 1.0."""
    if raw is None or isinstance(raw, bool):
        return 1.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 1.0
    if value != value:  # NaN
        return 0.0
    if value > 1.0:
        value = value / 100.0
    return min(max(value, 0.0), 1.0)


def parse_ocr_pages(data: dict[str, Any]) -> list[OcrPage]:
    pages_data = data.get("pages")
    if not isinstance(pages_data, list):
        raise ResponseFormatError(ErrorCode.OCR_MALFORMED_RESPONSE, "missing pages list")

    pages: list[OcrPage] = []
    for pos, page in enumerate(pages_data, start=1):
        if not isinstance(page, dict):
            raise ResponseFormatError(ErrorCode.OCR_MALFORMED_RESPONSE, f"page {pos} is not an object")
        text = page.get("markdown", page.get("text"))
        if not isinstance(text, str):
            raise ResponseFormatError(ErrorCode.OCR_MALFORMED_RESPONSE, f"page {pos} has no text")
        index = page.get("index")
        page_number = index + 1 if isinstance(index, int) and not isinstance(index, bool) else pos
        pages.append(
            OcrPage(
                text=text,
                confidence=normalize_page_confidence(page.get("confidence")),
                page_number=page_number,
            )
        )
    pages.sort(key=lambda p: p.page_number)
    return pages


class MistralOcrProvider:
    """One OCR call per document; a failure for any document fails the call."""

    def __init__(
        self,
        client: MistralHttpClient,
        *,
        model: str = DEFAULT_OCR_MODEL,
        sink: EventSink | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._sink = sink or default_sink()

    async def _process_one(self, document: Document) -> list[OcrPage]:
        data = await self._client.ocr(model=self._model, document=build_document_chunk(document))
        return parse_ocr_pages(data)

    async def process_documents(
        self, documents: list[Document]
    ) -> Result[list[list[OcrPage]], ScanError]:
        outcomes = await asyncio.gather(
            *(self._process_one(doc) for doc in documents),
            return_exceptions=True,
        )
        results: list[list[OcrPage]] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                error = as_scan_error(outcome, service_name="OCR")
                self._sink.emit(
                    "ocr_request_failed",
                    logging.WARNING,
                    error_code=error.error_code,
                    document_count=len(documents),
                )
                return Result.fail(error)
            results.append(outcome)

        self._sink.emit(
            "ocr_request_completed",
            logging.DEBUG,
            document_count=len(documents),
            page_count=sum(len(pages) for pages in results),
        )
        return Result.ok(results)
