"""OcrProvider protocol for text recognition services."""

from __future__ import annotations

from typing import Protocol

from docscan.domain.pipeline.errors import ScanError
from docscan.domain.pipeline.models import Document, OcrPage, Result


class OcrProvider(Protocol):
    """Abstraction over an OCR service used by the scanner.

    Returns one list of pages per input document, in input order. A failure
    for any document fails the whole call.
    """

    async def process_documents(
        self, documents: list[Document]
    ) -> Result[list[list[OcrPage]], ScanError]: ...
