from __future__ import annotations

import json
from typing import Any

EXTRACTION_SYSTEM_PROMPT = (
    "You are a JSON extraction specialist.\n"
    "Extract structured data from the provided text and return it as valid JSON.\n"
    "Rules:\n"
    "1. The provided text is the only source of truth. Use only values that appear in it.\n"
    "2. If a field is not present or you are not certain of its value, set it to null.\n"
    "3. Never invent, guess or complete names, numbers, dates or amounts.\n"
    "4. If the text is empty, unreadable or not the expected kind of document, return mostly null "
    'fields, set "isValidInput" to false and "confidence" to a value of 0.3 or lower.\n'
    "5. Return syntactically valid JSON: balanced braces and brackets, correctly quoted strings, "
    "no comments and no trailing commas."
)

EDGE_SYSTEM_PROMPT = (
    EXTRACTION_SYSTEM_PROMPT
    + "\n6. Return only the JSON object, without Markdown fences or commentary. Do not truncate it."
)


def build_edge_user_prompt(markdown: str, schema: dict[str, Any] | None) -> str:
    if schema is None:
        return markdown
    return (
        markdown
        + "\n\nReturn a JSON object that conforms to this JSON Schema:\n"
        + json.dumps(schema, ensure_ascii=False)
    )


def build_check_prompt(ocr_text: str) -> str:
    return (
        "# Check Data Extraction\n\n"
        "Below is the text extracted from a check image using OCR. "
        "Extract the relevant information into a structured JSON object.\n\n"
        "## OCR Text:\n\n" + ocr_text + "\n\n"
        "## Instructions:\n\n"
        "Extract the following information:\n"
        "- Check number\n"
        "- Date on the check\n"
        "- Payee (the person or entity to whom the check is payable)\n"
        "- Payer (the person or entity who wrote the check, if available)\n"
        "- Amount (numerical value)\n"
        "- Amount in words (if available)\n"
        "- Memo line (if available)\n"
        "- Bank name (if available)\n"
        "- Routing number (9 digits, if available)\n"
        "- Account number (if available)\n"
        "- Type of check (personal, business, cashier, certified, traveler, government, payroll, "
        "money_order, other)\n"
        "- Type of account (checking, savings, money_market, other)\n"
        "- Whether the check appears to be signed\n"
        "- The MICR line at the bottom of the check (if available)\n\n"
        "Use camelCase keys. Set isValidInput to false if the text is not a check."
    )


def build_receipt_prompt(ocr_text: str) -> str:
    return (
        "# Receipt Data Extraction\n\n"
        "Below is the text extracted from a receipt image using OCR. "
        "Extract the relevant information into a structured JSON object.\n\n"
        "## OCR Text:\n\n" + ocr_text + "\n\n"
        "## Instructions:\n\n"
        "Extract the following information:\n"
        "- Merchant name, address, phone, website, tax id, store id and chain name\n"
        "- Receipt number and receipt type (sale, return, refund, estimate, proforma, other)\n"
        "- Date and time of the transaction (ISO 8601)\n"
        "- Line items with description, SKU, quantity, unit, unit price and total price\n"
        "- Totals: subtotal, tax, tip, discount and total\n"
        "- Individual taxes with name, rate (0-1) and amount\n"
        "- Payments with method, card type, last 4 digits, amount and transaction id\n"
        "- Currency as a 3-letter ISO 4217 code\n\n"
        "Use camelCase keys. Set isValidInput to false if the text is not a receipt."
    )
