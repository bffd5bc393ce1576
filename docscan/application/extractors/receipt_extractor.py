from __future__ import annotations

from typing import Any

from docscan.application.extractors.base import SchemaBoundExtractor
from docscan.application.llm.prompts import build_receipt_prompt
from docscan.domain.schemas.receipt import RECEIPT_SCHEMA


class ReceiptExtractor(SchemaBoundExtractor):
    schema = RECEIPT_SCHEMA

    def build_prompt(self, ocr_text: str) -> str:
        return build_receipt_prompt(ocr_text)

    def normalize(self, data: dict[str, Any]) -> None:
        currency = data.get("currency")
        if isinstance(currency, str):
            data["currency"] = currency.strip().upper()
