"""Document scanner: OCR followed by schema-bound extraction.

Two sequential stages with all-or-nothing success. The first failing stage
ends processing and its error is returned as a stage-labelled string; no
partial ScanResult is ever produced.
"""

from __future__ import annotations

import logging

from docscan.core.logging import EventSink, default_sink
from docscan.domain.extraction.confidence import combine_confidences
from docscan.domain.pipeline.errors import error_detail
from docscan.domain.pipeline.models import Document, Result, ScanResult
from docscan.domain.ports.extractor_port import DomainExtractor
from docscan.domain.ports.ocr_port import OcrProvider
from docscan.utils.timing import StageTimers

OCR_FAILED_PREFIX = "OCR failed"
PAGE_SEPARATOR = "\n\n"


class DocumentScanner:
    def __init__(
        self,
        ocr_provider: OcrProvider,
        extractor: DomainExtractor,
        *,
        ocr_weight: float = 0.6,
        extraction_weight: float = 0.4,
        sink: EventSink | None = None,
    ) -> None:
        self._ocr = ocr_provider
        self._extractor = extractor
        self._ocr_weight = ocr_weight
        self._extraction_weight = extraction_weight
        self._sink = sink or default_sink()

    def _fail(self, stage: str, message: str, timers: StageTimers) -> Result[ScanResult, str]:
        self._sink.emit(
            "scan_failed",
            logging.WARNING,
            stage=stage,
            **timers.event_fields(),
        )
        return Result.fail(message)

    async def process_document(self, document: Document) -> Result[ScanResult, str]:
        timers = StageTimers()

        with timers.stage("ocr"):
            kind, value = await self._ocr.process_documents([document])
        if kind == "error":
            return self._fail("ocr", f"{OCR_FAILED_PREFIX}: {error_detail(value)}", timers)

        pages = value[0] if value else []
        if not pages:
            return self._fail("ocr", f"{OCR_FAILED_PREFIX}: no pages recognized", timers)

        text = PAGE_SEPARATOR.join(page.text for page in pages)
        ocr_confidence = pages[0].confidence
        self._sink.emit(
            "ocr_stage_completed",
            logging.INFO,
            page_count=len(pages),
            ocr_confidence=ocr_confidence,
            ocr_ms=timers.elapsed_ms("ocr"),
        )

        with timers.stage("extraction"):
            kind, extraction = await self._extractor.extract_from_text(text)
        if kind == "error":
            return self._fail("extraction", extraction, timers)

        overall = combine_confidences(
            ocr_confidence,
            extraction.confidence,
            ocr_weight=self._ocr_weight,
            extraction_weight=self._extraction_weight,
        )
        self._sink.emit(
            "scan_completed",
            logging.INFO,
            ocr_confidence=ocr_confidence,
            extraction_confidence=extraction.confidence,
            overall_confidence=overall,
            **timers.event_fields(),
        )
        return Result.ok(
            ScanResult(
                json=extraction.json_,
                ocr_confidence=ocr_confidence,
                extraction_confidence=extraction.confidence,
                overall_confidence=overall,
                raw_text=text,
            )
        )

    async def process_documents(self, documents: list[Document]) -> Result[list[ScanResult], str]:
        """Scan documents one after another, stopping at the first failure."""
        results: list[ScanResult] = []
        for document in documents:
            kind, value = await self.process_document(document)
            if kind == "error":
                return Result.fail(value)
            results.append(value)
        return Result.ok(results)
