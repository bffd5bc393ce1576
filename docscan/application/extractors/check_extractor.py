from __future__ import annotations

import re
from enum import Enum
from typing import Any

from docscan.application.extractors.base import SchemaBoundExtractor
from docscan.application.llm.prompts import build_check_prompt
from docscan.domain.schemas.check import CHECK_SCHEMA, BankAccountType, CheckType

_MICR_ROUTING_RE = re.compile(r"⑆(\d{9})⑆")
_MICR_ACCOUNT_RE = re.compile(r"⑈(\d+)⑈")
_MICR_CHECK_NUMBER_RE = re.compile(r"⑇(\d+)⑇")


def normalize_enum(value: Any, enum_cls: type[Enum], *, suffix: str = "") -> Any:
    """Map free-form labels like "Money Market" onto enum values; unknown -> "other"."""
    if not isinstance(value, str) or not value.strip():
        return value
    key = value.strip().lower()
    if suffix and key.endswith(suffix):
        key = key[: -len(suffix)].strip()
    key = re.sub(r"[\s-]+", "_", key)
    allowed = {member.value for member in enum_cls}
    return key if key in allowed else "other"


def normalize_routing_number(value: Any) -> Any:
    if not isinstance(value, str) or len(value) <= 9:
        return value
    trimmed = value.lstrip("0")
    return trimmed[:9] if len(trimmed) > 9 else trimmed


def apply_micr_line(data: dict[str, Any]) -> None:
    """Fill missing routing/account/check numbers from the MICR line."""
    micr = data.get("micrLine")
    if not isinstance(micr, str) or not micr:
        return
    for key, pattern in (
        ("routingNumber", _MICR_ROUTING_RE),
        ("accountNumber", _MICR_ACCOUNT_RE),
        ("checkNumber", _MICR_CHECK_NUMBER_RE),
    ):
        if data.get(key):
            continue
        m = pattern.search(micr)
        if m:
            data[key] = m.group(1)


class CheckExtractor(SchemaBoundExtractor):
    schema = CHECK_SCHEMA

    def build_prompt(self, ocr_text: str) -> str:
        return build_check_prompt(ocr_text)

    def normalize(self, data: dict[str, Any]) -> None:
        if "checkType" in data:
            data["checkType"] = normalize_enum(data["checkType"], CheckType, suffix="check")
        if "accountType" in data:
            data["accountType"] = normalize_enum(data["accountType"], BankAccountType, suffix="account")
        if "routingNumber" in data:
            data["routingNumber"] = normalize_routing_number(data["routingNumber"])
        apply_micr_line(data)
