from __future__ import annotations

import json
import logging

from docscan.core.codes import ErrorCode
from docscan.core.logging import (
    LoggingEventSink,
    RecordingEventSink,
    StructuredFormatter,
    configure_structured_logging,
)
from docscan.domain.pipeline.errors import (
    ConfigurationError,
    ExternalServiceError,
    ResponseFormatError,
    ScanError,
    SchemaValidationError,
    as_scan_error,
    error_detail,
)


def test_logging_sink_forwards_event_fields(caplog) -> None:
    logger = logging.getLogger("docscan.test")
    sink = LoggingEventSink(logger)
    with caplog.at_level(logging.INFO, logger="docscan.test"):
        sink.emit("ocr_stage_completed", page_count=2, duration_ms=12)
        sink.emit("debug_only", logging.DEBUG)

    assert [r.getMessage() for r in caplog.records] == ["ocr_stage_completed"]
    record = caplog.records[0]
    assert record.event == "ocr_stage_completed"
    assert record.event_fields == {"page_count": 2, "duration_ms": 12}


def test_structured_formatter_emits_json() -> None:
    record = logging.LogRecord("docscan", logging.WARNING, __file__, 1, "scan_failed", None, None)
    record.event = "scan_failed"
    record.event_fields = {"stage": "ocr", "name": "collides-with-nothing"}
    payload = json.loads(StructuredFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "scan_failed"
    assert payload["event"] == "scan_failed"
    assert payload["stage"] == "ocr"
    assert payload["name"] == "collides-with-nothing"


def test_recording_sink() -> None:
    sink = RecordingEventSink()
    sink.emit("a", x=1)
    sink.emit("b", logging.WARNING)
    sink.emit("a", x=2)
    assert sink.names() == ["a", "b", "a"]
    assert [e.fields["x"] for e in sink.of("a")] == [1, 2]
    assert sink.of("b")[0].level == logging.WARNING


def test_external_service_error() -> None:
    err = ExternalServiceError("LLM", "http_error", details={"reason": "status 502", "http_status": 502})
    assert err.error_code == "LLM_HTTP_ERROR"
    assert err.message == "LLM service http_error: status 502"
    assert err.retryable is True
    assert err.to_dict()["category"] == "external_service"


def test_response_format_error_uses_registry() -> None:
    err = ResponseFormatError(ErrorCode.LLM_EMPTY_RESPONSE)
    assert err.message == "Empty response from LLM API"
    assert err.error_code == "LLM_EMPTY_RESPONSE"
    assert err.retryable is False


def test_schema_and_configuration_errors() -> None:
    err = SchemaValidationError("check", [{"loc": ("amount",), "msg": "bad"}])
    assert err.error_code == "EXTRACT_SCHEMA_INVALID"
    assert "'check'" in err.message
    assert ConfigurationError("nope").error_code == "BACKEND_UNAVAILABLE"


def test_as_scan_error_and_detail() -> None:
    original = ResponseFormatError(ErrorCode.LLM_JSON_PARSE_ERROR, "boom")
    assert as_scan_error(original) is original

    wrapped = as_scan_error(ValueError("odd"), service_name="EDGE")
    assert isinstance(wrapped, ScanError)
    assert wrapped.error_code == "UNKNOWN_ERROR"
    assert wrapped.details["exception_type"] == "ValueError"

    assert error_detail(original) == "Invalid JSON response: boom"
    assert error_detail("network timeout") == "network timeout"


def test_error_code_lookup() -> None:
    assert ErrorCode.get_spec("OCR_UNAVAILABLE").retryable is True
    assert ErrorCode.get_spec("NOPE").category == "server_error"


def test_configure_structured_logging_installs_json_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_structured_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_raised_categories_match_registry() -> None:
    schema_error = SchemaValidationError("check", [])
    assert ErrorCode.get_spec(schema_error.error_code).category == schema_error.category.value
    config_error = ConfigurationError("nope")
    assert ErrorCode.get_spec(config_error.error_code).category == config_error.category.value
