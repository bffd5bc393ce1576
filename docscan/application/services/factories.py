from __future__ import annotations

from enum import Enum

import httpx

from docscan.application.extractors.base import SchemaBoundExtractor
from docscan.application.extractors.check_extractor import CheckExtractor
from docscan.application.extractors.receipt_extractor import ReceiptExtractor
from docscan.application.llm.adapters.edge_extractor import EdgeJsonExtractor
from docscan.application.llm.adapters.hosted_extractor import HostedJsonExtractor
from docscan.core.config import Settings, get_settings
from docscan.core.logging import (
    EventSink,
    LoggingEventSink,
    configure_structured_logging,
    get_logger,
)
from docscan.domain.pipeline.errors import ConfigurationError
from docscan.domain.pipeline.scanner import DocumentScanner
from docscan.domain.ports.extractor_port import StructuredExtractor
from docscan.infrastructure.clients.edge_inference_http import EdgeInferenceHttpClient
from docscan.infrastructure.clients.mistral_http import MistralHttpClient
from docscan.infrastructure.clients.mistral_ocr import MistralOcrProvider


class ExtractorBackend(str, Enum):
    HOSTED = "hosted"
    EDGE = "edge"


class DocumentKindName(str, Enum):
    CHECK = "check"
    RECEIPT = "receipt"


def _parse_backend(value: str | None, setting: str) -> ExtractorBackend | None:
    if value is None or not value.strip():
        return None
    try:
        return ExtractorBackend(value.strip().lower())
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown extractor backend '{value}'",
            details={"setting": setting, "allowed": [b.value for b in ExtractorBackend]},
        ) from e


def is_backend_available(backend: ExtractorBackend, s: Settings) -> bool:
    if backend == ExtractorBackend.HOSTED:
        return s.mistral_api_key is not None
    return bool(s.EDGE_BASE_URL)


def select_backend(s: Settings | None = None) -> ExtractorBackend:
    """Preferred backend if configured, else the fallback, else ConfigurationError."""
    s = s or get_settings()
    preferred = _parse_backend(s.EXTRACTOR_BACKEND, "EXTRACTOR_BACKEND")
    fallback = _parse_backend(s.EXTRACTOR_FALLBACK, "EXTRACTOR_FALLBACK")
    for candidate in (preferred, fallback):
        if candidate is not None and is_backend_available(candidate, s):
            return candidate
    raise ConfigurationError(
        "No configured extractor backend is available",
        details={
            "preferred": preferred.value if preferred else None,
            "fallback": fallback.value if fallback else None,
        },
    )


def configure_logging(s: Settings | None = None) -> None:
    """Install the root log handler described by LOG_LEVEL and LOG_JSON."""
    s = s or get_settings()
    configure_structured_logging(s.LOG_LEVEL, json_format=s.LOG_JSON)


def build_event_sink(s: Settings | None = None) -> EventSink:
    s = s or get_settings()
    return LoggingEventSink(get_logger(f"{s.APP_NAME}.pipeline"))


def build_mistral_client(
    s: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MistralHttpClient:
    s = s or get_settings()
    api_key = s.mistral_api_key
    if api_key is None:
        raise ConfigurationError("DOCSCAN_MISTRAL_API_KEY is not set")
    return MistralHttpClient(
        api_key,
        base_url=s.MISTRAL_BASE_URL,
        timeout_seconds=s.HTTP_TIMEOUT_SECONDS,
        transport=transport,
    )


def build_ocr_provider(
    s: Settings | None = None,
    *,
    sink: EventSink | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MistralOcrProvider:
    s = s or get_settings()
    return MistralOcrProvider(
        build_mistral_client(s, transport),
        model=s.OCR_MODEL,
        sink=sink or build_event_sink(s),
    )


def build_structured_extractor(
    s: Settings | None = None,
    *,
    backend: ExtractorBackend | None = None,
    sink: EventSink | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StructuredExtractor:
    s = s or get_settings()
    backend = backend or select_backend(s)
    common = {
        "fuzzy_threshold": s.FUZZY_THRESHOLD,
        "weights": s.confidence_weights,
        "sink": sink or build_event_sink(s),
    }
    if backend == ExtractorBackend.HOSTED:
        return HostedJsonExtractor(
            build_mistral_client(s, transport),
            model=s.EXTRACTION_MODEL,
            **common,
        )
    if not s.EDGE_BASE_URL:
        raise ConfigurationError("DOCSCAN_EDGE_BASE_URL is not set")
    runner = EdgeInferenceHttpClient(
        s.EDGE_BASE_URL,
        s.HTTP_TIMEOUT_SECONDS,
        transport=transport,
    )
    return EdgeJsonExtractor(
        runner,
        model=s.EDGE_MODEL,
        max_tokens=s.EDGE_MAX_TOKENS,
        **common,
    )


def build_check_extractor(
    s: Settings | None = None, *, strict_validation: bool = False, **kwargs
) -> CheckExtractor:
    return CheckExtractor(build_structured_extractor(s, **kwargs), strict_validation=strict_validation)


def build_receipt_extractor(
    s: Settings | None = None, *, strict_validation: bool = False, **kwargs
) -> ReceiptExtractor:
    return ReceiptExtractor(build_structured_extractor(s, **kwargs), strict_validation=strict_validation)


def build_scanner(
    kind: DocumentKindName | str,
    s: Settings | None = None,
    *,
    backend: ExtractorBackend | None = None,
    sink: EventSink | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DocumentScanner:
    """Wire OCR provider, structured extractor and domain extractor for one document kind."""
    s = s or get_settings()
    sink = sink or build_event_sink(s)
    try:
        kind = DocumentKindName(kind)
    except ValueError as e:
        raise ConfigurationError(f"Unknown document kind '{kind}'") from e

    structured = build_structured_extractor(s, backend=backend, sink=sink, transport=transport)
    domain: SchemaBoundExtractor
    if kind == DocumentKindName.CHECK:
        domain = CheckExtractor(structured)
    else:
        domain = ReceiptExtractor(structured)

    return DocumentScanner(
        build_ocr_provider(s, sink=sink, transport=transport),
        domain,
        ocr_weight=s.OVERALL_OCR_WEIGHT,
        extraction_weight=s.OVERALL_EXTRACTION_WEIGHT,
        sink=sink,
    )


def build_check_scanner(s: Settings | None = None, **kwargs) -> DocumentScanner:
    return build_scanner(DocumentKindName.CHECK, s, **kwargs)


def build_receipt_scanner(s: Settings | None = None, **kwargs) -> DocumentScanner:
    return build_scanner(DocumentKindName.RECEIPT, s, **kwargs)
