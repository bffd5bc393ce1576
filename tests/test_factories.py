from __future__ import annotations

import json
import logging

import httpx
import pytest

from docscan.application.extractors.check_extractor import CheckExtractor
from docscan.application.extractors.receipt_extractor import ReceiptExtractor
from docscan.application.llm.adapters.edge_extractor import EdgeJsonExtractor
from docscan.application.llm.adapters.hosted_extractor import HostedJsonExtractor
from docscan.application.services.factories import (
    ExtractorBackend,
    build_check_extractor,
    build_check_scanner,
    build_event_sink,
    build_receipt_extractor,
    build_receipt_scanner,
    build_scanner,
    build_structured_extractor,
    configure_logging,
    select_backend,
)
from docscan.core.config import Settings
from docscan.core.logging import StructuredFormatter
from docscan.domain.pipeline.errors import ConfigurationError
from docscan.domain.pipeline.models import Document
from docscan.domain.pipeline.scanner import DocumentScanner


def _settings(**overrides) -> Settings:
    values = {"MISTRAL_API_KEY": None, "EDGE_BASE_URL": None}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_settings_defaults() -> None:
    s = _settings()
    assert s.EXTRACTOR_BACKEND == "hosted"
    assert s.OCR_MODEL == "mistral-ocr-latest"
    assert s.mistral_api_key is None
    weights = s.confidence_weights
    assert (weights.completion_weight, weights.structure_weight) == (0.7, 0.3)


def test_blank_api_key_counts_as_missing() -> None:
    assert _settings(MISTRAL_API_KEY="   ").mistral_api_key is None


def test_select_backend_prefers_configured_backend() -> None:
    assert select_backend(_settings(MISTRAL_API_KEY="k", EDGE_BASE_URL="http://edge")) == ExtractorBackend.HOSTED
    assert (
        select_backend(_settings(EXTRACTOR_BACKEND="edge", MISTRAL_API_KEY="k", EDGE_BASE_URL="http://edge"))
        == ExtractorBackend.EDGE
    )


def test_select_backend_falls_back() -> None:
    assert select_backend(_settings(EDGE_BASE_URL="http://edge")) == ExtractorBackend.EDGE


def test_select_backend_without_any_backend() -> None:
    with pytest.raises(ConfigurationError) as exc:
        select_backend(_settings())
    assert exc.value.error_code == "BACKEND_UNAVAILABLE"


def test_unknown_backend_name() -> None:
    with pytest.raises(ConfigurationError):
        select_backend(_settings(EXTRACTOR_BACKEND="gpu-farm", MISTRAL_API_KEY="k"))


def test_build_structured_extractor_variants() -> None:
    s = _settings(MISTRAL_API_KEY="k", EDGE_BASE_URL="http://edge")
    assert isinstance(build_structured_extractor(s), HostedJsonExtractor)
    assert isinstance(build_structured_extractor(s, backend=ExtractorBackend.EDGE), EdgeJsonExtractor)


def test_build_check_extractor() -> None:
    extractor = build_check_extractor(_settings(MISTRAL_API_KEY="k"))
    assert isinstance(extractor, CheckExtractor)


def test_build_scanner_rejects_unknown_kind() -> None:
    with pytest.raises(ConfigurationError):
        build_scanner("invoice", _settings(MISTRAL_API_KEY="k"))


def test_scanner_needs_ocr_credentials() -> None:
    with pytest.raises(ConfigurationError):
        build_check_scanner(_settings(EDGE_BASE_URL="http://edge"))


@pytest.mark.asyncio
async def test_built_check_scanner_end_to_end(check_text, sink) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # type: ignore[override]
        if request.url.path == "/v1/ocr":
            return httpx.Response(200, json={"pages": [{"index": 0, "markdown": check_text}]})
        if request.url.path == "/v1/chat/completions":
            content = json.dumps({"checkNumber": "A123456789", "payee": "John Smith", "amount": 1234.56})
            return httpx.Response(200, json={"choices": [{"message": {"content": content}, "finish_reason": "stop"}]})
        return httpx.Response(404, json={"detail": "not found"})

    s = _settings(MISTRAL_API_KEY="k", MISTRAL_BASE_URL="https://mistral.example.com")
    scanner = build_check_scanner(s, sink=sink, transport=httpx.MockTransport(handler))
    assert isinstance(scanner, DocumentScanner)

    kind, value = await scanner.process_document(Document(content=b"jpeg"))

    assert kind == "ok"
    assert value.json_["checkNumber"] == "A123456789"
    assert value.ocr_confidence == 1.0
    assert value.overall_confidence == round(0.6 * 1.0 + 0.4 * 0.97, 2)


def test_build_receipt_scanner_on_edge_backend() -> None:
    s = _settings(MISTRAL_API_KEY="k", EDGE_BASE_URL="http://edge", EXTRACTOR_BACKEND="edge")
    scanner = build_receipt_scanner(s)
    assert isinstance(scanner, DocumentScanner)
    assert isinstance(build_receipt_extractor(s), ReceiptExtractor)


def test_configure_logging_follows_settings() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(_settings(LOG_LEVEL="WARNING", LOG_JSON=False))
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, StructuredFormatter)

        configure_logging(_settings(LOG_LEVEL="DEBUG"))
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_default_sink_logs_under_app_name(caplog) -> None:
    sink = build_event_sink(_settings(APP_NAME="scanner-svc"))
    with caplog.at_level(logging.INFO, logger="scanner-svc.pipeline"):
        sink.emit("scan_completed", overall_confidence=0.9)
    assert [r.name for r in caplog.records] == ["scanner-svc.pipeline"]
