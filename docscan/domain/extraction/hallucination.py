"""
Anti-hallucination pass over extracted fields.

Every value the model returns must be traceable to the OCR text that was
sent to it. Values that cannot be grounded are replaced with ``None`` in
place; the detector never adds keys and never raises.

Fields are grouped by how they can be grounded:

- text: literal match after normalization, or a near-literal fuzzy match
- identifier: alphanumeric-only containment (ignores spaces, dashes, MICR symbols)
- amount: numerically equal to some number printed in the source
- date: some common rendering of the date appears in the source
- computed: receipt totals, accepted when printed or arithmetically consistent

Classifications (enums, booleans, currency, quantities, rates, metadata) are
derived by the model rather than copied, so they are not checked.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, MutableMapping

from rapidfuzz import fuzz

from docscan.core.logging import EventSink, default_sink

DEFAULT_FUZZY_THRESHOLD = 88.0
AMOUNT_TOLERANCE = 0.005
ARITHMETIC_TOLERANCE = 0.01
MIN_FUZZY_LENGTH = 4

_CURRENCY_RE = re.compile(r"[$€£¥₹₽₸¢]")
_WS_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[\W_]+")
_NUMBER_RE = re.compile(r"\d[\d,.]*\d|\d")

_MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
)


class DocumentKind(str, Enum):
    CHECK = "check"
    RECEIPT = "receipt"
    UNKNOWN = "unknown"


class FieldClass(str, Enum):
    TEXT = "text"
    IDENTIFIER = "identifier"
    AMOUNT = "amount"
    DATE = "date"


CHECK_FIELDS: dict[str, FieldClass] = {
    "checkNumber": FieldClass.IDENTIFIER,
    "date": FieldClass.DATE,
    "payee": FieldClass.TEXT,
    "payer": FieldClass.TEXT,
    "amount": FieldClass.AMOUNT,
    "amountText": FieldClass.TEXT,
    "memo": FieldClass.TEXT,
    "bankName": FieldClass.TEXT,
    "routingNumber": FieldClass.IDENTIFIER,
    "accountNumber": FieldClass.IDENTIFIER,
    "signatureText": FieldClass.TEXT,
    "fractionalCode": FieldClass.IDENTIFIER,
    "micrLine": FieldClass.IDENTIFIER,
}

RECEIPT_FIELDS: dict[str, FieldClass] = {
    "receiptNumber": FieldClass.IDENTIFIER,
    "timestamp": FieldClass.DATE,
}

MERCHANT_FIELDS: dict[str, FieldClass] = {
    "name": FieldClass.TEXT,
    "address": FieldClass.TEXT,
    "chainName": FieldClass.TEXT,
    "phone": FieldClass.IDENTIFIER,
    "taxId": FieldClass.IDENTIFIER,
    "storeId": FieldClass.IDENTIFIER,
}

ITEM_FIELDS: dict[str, FieldClass] = {
    "description": FieldClass.TEXT,
    "sku": FieldClass.IDENTIFIER,
    "unitPrice": FieldClass.AMOUNT,
    "totalPrice": FieldClass.AMOUNT,
    "discountAmount": FieldClass.AMOUNT,
}

TAX_FIELDS: dict[str, FieldClass] = {
    "taxName": FieldClass.TEXT,
    "taxAmount": FieldClass.AMOUNT,
}

PAYMENT_FIELDS: dict[str, FieldClass] = {
    "lastDigits": FieldClass.IDENTIFIER,
    "transactionId": FieldClass.IDENTIFIER,
    "amount": FieldClass.AMOUNT,
}

TOTALS_FIELDS: dict[str, FieldClass] = {
    "tax": FieldClass.AMOUNT,
    "tip": FieldClass.AMOUNT,
    "discount": FieldClass.AMOUNT,
}

_CHECK_MARKERS = ("checkNumber", "payee", "payer", "routingNumber", "accountNumber", "micrLine")
_RECEIPT_MARKERS = ("merchant", "items", "totals", "receiptNumber", "taxes")


def detect_document_kind(fields: MutableMapping[str, Any]) -> DocumentKind:
    """Guess the document kind from which keys the object carries."""
    if any(key in fields for key in _CHECK_MARKERS):
        return DocumentKind.CHECK
    if any(key in fields for key in _RECEIPT_MARKERS):
        return DocumentKind.RECEIPT
    return DocumentKind.UNKNOWN


def normalize_text(value: str) -> str:
    """Casefold, drop currency symbols, collapse whitespace."""
    value = _CURRENCY_RE.sub("", value).casefold()
    return _WS_RE.sub(" ", value).strip()


def compact(value: str) -> str:
    return _NON_ALNUM_RE.sub("", value.casefold())


def parse_numbers(text: str) -> list[float]:
    """Every number printed in ``text``, reading both 1,234.56 and 1.234,56."""
    found: list[float] = []
    for token in _NUMBER_RE.findall(text):
        for candidate in _number_readings(token):
            try:
                found.append(float(candidate))
            except ValueError:
                continue
    return found


def _number_readings(token: str) -> Iterable[str]:
    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            yield token.replace(".", "").replace(",", ".")
        else:
            yield token.replace(",", "")
    elif "," in token:
        yield token.replace(",", "")
        if token.count(",") == 1:
            yield token.replace(",", ".")
    else:
        yield token


def _as_amount(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        numbers = parse_numbers(value)
        return numbers[0] if numbers else None
    return None


def parse_date(value: str) -> date | None:
    raw = value.strip()
    iso = raw[:-1] if raw.endswith("Z") else raw
    try:
        return datetime.fromisoformat(iso).date()
    except ValueError:
        pass
    if re.match(r"^\d{4}-\d{2}-\d{2}", raw):
        try:
            return datetime.strptime(raw[:10], "%Y-%m-%d").date()
        except ValueError:
            pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def date_renderings(d: date) -> set[str]:
    """Common printed forms of ``d``, already normalized."""
    month = _MONTHS[d.month - 1]
    yy = f"{d.year % 100:02d}"
    forms = {
        d.isoformat(),
        f"{d.year}/{d.month:02d}/{d.day:02d}",
        f"{d.month:02d}/{d.day:02d}/{d.year}",
        f"{d.month}/{d.day}/{d.year}",
        f"{d.month:02d}/{d.day:02d}/{yy}",
        f"{d.month}/{d.day}/{yy}",
        f"{d.day:02d}/{d.month:02d}/{d.year}",
        f"{d.day}/{d.month}/{d.year}",
        f"{d.month:02d}-{d.day:02d}-{d.year}",
        f"{d.day:02d}-{d.month:02d}-{d.year}",
        f"{d.day:02d}.{d.month:02d}.{d.year}",
        f"{d.day}.{d.month}.{d.year}",
        f"{month} {d.day}, {d.year}",
        f"{month} {d.day} {d.year}",
        f"{month[:3]} {d.day}, {d.year}",
        f"{month[:3]} {d.day} {d.year}",
        f"{d.day} {month} {d.year}",
        f"{d.day} {month[:3]} {d.year}",
    }
    return {normalize_text(f) for f in forms}


@dataclass
class _Tally:
    checked: int = 0
    nulled: int = 0


class AntiHallucinationDetector:
    """Null out extracted values that cannot be found in the source text.

    One instance is built per extraction call from the OCR text that was
    sent to the model.
    """

    def __init__(
        self,
        source_text: str,
        *,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
        sink: EventSink | None = None,
    ) -> None:
        self._source = normalize_text(source_text or "")
        self._compact_source = compact(source_text or "")
        self._numbers = parse_numbers(source_text or "")
        self._fuzzy_threshold = fuzzy_threshold
        self._sink = sink or default_sink()

    # ---- entry points ----

    def detect(self, fields: MutableMapping[str, Any], kind: DocumentKind | None = None) -> None:
        kind = kind or detect_document_kind(fields)
        if kind == DocumentKind.CHECK:
            self.detect_check_hallucinations(fields)
        elif kind == DocumentKind.RECEIPT:
            self.detect_receipt_hallucinations(fields)
        else:
            self._sink.emit("hallucination_detection_skipped", logging.DEBUG, reason="unknown_document_kind")

    def detect_check_hallucinations(self, fields: MutableMapping[str, Any]) -> None:
        self._run(DocumentKind.CHECK, fields, self._check_pass)

    def detect_receipt_hallucinations(self, fields: MutableMapping[str, Any]) -> None:
        self._run(DocumentKind.RECEIPT, fields, self._receipt_pass)

    # ---- passes ----

    def _run(self, kind: DocumentKind, fields: MutableMapping[str, Any], pass_fn) -> None:
        if not isinstance(fields, MutableMapping):
            return
        tally = _Tally()
        try:
            pass_fn(fields, tally)
        except Exception as exc:  # detection only downgrades data
            self._sink.emit(
                "hallucination_detection_failed",
                logging.WARNING,
                kind=kind.value,
                exception_type=type(exc).__name__,
            )
            return

        if tally.nulled >= 2 and tally.nulled * 2 >= tally.checked and "isValidInput" in fields:
            fields["isValidInput"] = False

        self._sink.emit(
            "hallucination_detection_completed",
            logging.DEBUG,
            kind=kind.value,
            checked=tally.checked,
            nulled=tally.nulled,
        )

    def _check_pass(self, fields: MutableMapping[str, Any], tally: _Tally) -> None:
        self._check_mapping(fields, CHECK_FIELDS, "", tally)

    def _receipt_pass(self, fields: MutableMapping[str, Any], tally: _Tally) -> None:
        self._check_mapping(fields, RECEIPT_FIELDS, "", tally)

        merchant = fields.get("merchant")
        if isinstance(merchant, MutableMapping):
            self._check_mapping(merchant, MERCHANT_FIELDS, "merchant.", tally)

        for name, spec in (("items", ITEM_FIELDS), ("taxes", TAX_FIELDS), ("payments", PAYMENT_FIELDS)):
            entries = fields.get(name)
            if isinstance(entries, list):
                for idx, entry in enumerate(entries):
                    if isinstance(entry, MutableMapping):
                        self._check_mapping(entry, spec, f"{name}[{idx}].", tally)

        totals = fields.get("totals")
        if isinstance(totals, MutableMapping):
            self._check_mapping(totals, TOTALS_FIELDS, "totals.", tally)
            self._check_computed_totals(totals, fields.get("items"), tally)

    def _check_mapping(
        self,
        obj: MutableMapping[str, Any],
        spec: dict[str, FieldClass],
        prefix: str,
        tally: _Tally,
    ) -> None:
        for key, field_class in spec.items():
            value = obj.get(key)
            if not self._is_checkable(value, field_class):
                continue
            tally.checked += 1
            if not self._is_grounded(value, field_class):
                self._null(obj, key, f"{prefix}{key}", field_class.value, tally)

    def _check_computed_totals(self, totals: MutableMapping[str, Any], items: Any, tally: _Tally) -> None:
        item_sum: float | None = None
        if isinstance(items, list):
            prices = [
                _as_amount(entry.get("totalPrice"))
                for entry in items
                if isinstance(entry, MutableMapping)
            ]
            prices = [p for p in prices if p is not None]
            if prices:
                item_sum = sum(prices)

        subtotal = _as_amount(totals.get("subtotal"))
        if self._is_checkable(totals.get("subtotal"), FieldClass.AMOUNT):
            tally.checked += 1
            consistent = (
                subtotal is not None
                and item_sum is not None
                and abs(item_sum - subtotal) <= ARITHMETIC_TOLERANCE
            )
            if not (self._amount_in_source(subtotal) or consistent):
                self._null(totals, "subtotal", "totals.subtotal", "computed", tally)
                subtotal = None

        total = _as_amount(totals.get("total"))
        if self._is_checkable(totals.get("total"), FieldClass.AMOUNT):
            tally.checked += 1
            base = subtotal if subtotal is not None else item_sum
            consistent = False
            if base is not None and total is not None:
                expected = (
                    base
                    + (_as_amount(totals.get("tax")) or 0.0)
                    + (_as_amount(totals.get("tip")) or 0.0)
                    - (_as_amount(totals.get("discount")) or 0.0)
                )
                consistent = abs(expected - total) <= ARITHMETIC_TOLERANCE
            if not (self._amount_in_source(total) or consistent):
                self._null(totals, "total", "totals.total", "computed", tally)

    def _null(
        self,
        obj: MutableMapping[str, Any],
        key: str,
        path: str,
        field_class: str,
        tally: _Tally,
    ) -> None:
        obj[key] = None
        tally.nulled += 1
        self._sink.emit("hallucination_field_nulled", logging.INFO, field=path, field_class=field_class)

    # ---- grounding ----

    @staticmethod
    def _is_checkable(value: Any, field_class: FieldClass) -> bool:
        if value is None or isinstance(value, bool):
            return False
        if isinstance(value, str):
            return bool(value.strip())
        if field_class == FieldClass.AMOUNT and isinstance(value, (int, float)):
            # zero amounts count as absent
            return value != 0
        return isinstance(value, (int, float))

    def _is_grounded(self, value: Any, field_class: FieldClass) -> bool:
        if field_class == FieldClass.TEXT:
            return self._text_in_source(str(value))
        if field_class == FieldClass.IDENTIFIER:
            return self._identifier_in_source(str(value))
        if field_class == FieldClass.AMOUNT:
            return self._amount_in_source(_as_amount(value))
        if field_class == FieldClass.DATE:
            return self._date_in_source(str(value))
        return True

    def _text_in_source(self, value: str) -> bool:
        needle = normalize_text(value)
        if not needle:
            return True
        if needle in self._source:
            return True
        if len(needle) < MIN_FUZZY_LENGTH:
            return False
        # partial_ratio aligns the shorter string inside the longer one, so a
        # needle longer than the whole source is compared end to end instead.
        scorer = fuzz.partial_ratio if len(needle) <= len(self._source) else fuzz.ratio
        return scorer(needle, self._source) >= self._fuzzy_threshold

    def _identifier_in_source(self, value: str) -> bool:
        needle = compact(value)
        if not needle:
            return True
        return needle in self._compact_source

    def _amount_in_source(self, amount: float | None) -> bool:
        if amount is None:
            return False
        return any(abs(abs(amount) - n) <= AMOUNT_TOLERANCE for n in self._numbers)

    def _date_in_source(self, value: str) -> bool:
        if normalize_text(value) in self._source:
            return True
        parsed = parse_date(value)
        if parsed is None:
            return False
        return any(rendering in self._source for rendering in date_renderings(parsed))
