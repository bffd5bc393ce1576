"""Structured logging and event emission.

Pipeline components never print or log request/response bodies directly.
They emit named, leveled events through an injected ``EventSink``:

- ``LoggingEventSink`` forwards events to a stdlib logger (JSON output via
  ``StructuredFormatter`` once ``configure_structured_logging`` has run).
- ``RecordingEventSink`` keeps events in memory so tests can assert on them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs logs as JSON with standard fields plus the event name and event
    fields attached by ``LoggingEventSink``.

    Example:
        >>> sink.emit("ocr_completed", page_count=2, duration_ms=412)
        # Output: {"timestamp": "...", "level": "INFO", "message": "ocr_completed",
        #          "event": "ocr_completed", "page_count": 2, "duration_ms": 412}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in ["event", "error_code", "service", "duration_ms"]:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        event_fields = getattr(record, "event_fields", None)
        if isinstance(event_fields, dict):
            for key, value in event_fields.items():
                log_data.setdefault(key, value)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def configure_structured_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure root logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or plain text (False)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class EventSink(Protocol):
    """Destination for structured pipeline events."""

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None: ...


class LoggingEventSink:
    """Forward events to a stdlib logger; the event name becomes the message."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("docscan")

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, event, extra={"event": event, "event_fields": dict(fields)})


@dataclass(frozen=True)
class RecordedEvent:
    event: str
    level: int
    fields: dict[str, Any]


@dataclass
class RecordingEventSink:
    """In-memory sink for tests."""

    events: list[RecordedEvent] = field(default_factory=list)

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        self.events.append(RecordedEvent(event=event, level=level, fields=dict(fields)))

    def names(self) -> list[str]:
        return [e.event for e in self.events]

    def of(self, event: str) -> list[RecordedEvent]:
        return [e for e in self.events if e.event == event]


def default_sink() -> EventSink:
    return LoggingEventSink(get_logger("docscan.pipeline"))
