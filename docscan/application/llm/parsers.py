from __future__ import annotations

import json
import re
from typing import Any, Callable, Optional

from docscan.core.codes import ErrorCode
from docscan.domain.pipeline.errors import ResponseFormatError

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*\s*\n?(.*?)```", re.DOTALL)
_OPEN_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?")


def parse_completion_content(data: dict[str, Any]) -> str:
    """Return the text of the first choice of a chat-completion response."""
    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices:
        raise ResponseFormatError(ErrorCode.LLM_EMPTY_RESPONSE)
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise ResponseFormatError(
            ErrorCode.LLM_INVALID_CONTENT,
            f"content is {type(content).__name__}, expected str",
        )
    return content


def parse_json_object(content: str) -> dict[str, Any]:
    try:
        obj = json.loads(content)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(ErrorCode.LLM_JSON_PARSE_ERROR, str(e)) from e
    if not isinstance(obj, dict):
        raise ResponseFormatError(
            ErrorCode.LLM_JSON_PARSE_ERROR,
            f"top-level value is {type(obj).__name__}, expected object",
        )
    return obj


# ---- edge responses ----


def _plain_string(payload: Any) -> Optional[str]:
    return payload if isinstance(payload, str) else None


def _response_field(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and isinstance(payload.get("response"), str):
        return payload["response"]
    return None


def _result_string(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and isinstance(payload.get("result"), str):
        return payload["result"]
    return None


def _result_response_field(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        return _response_field(payload.get("result"))
    return None


def _chat_choices(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
    return None


# Known shapes, tried in order. Anything else is a format error.
EDGE_RESPONSE_SHAPES: tuple[tuple[str, Callable[[Any], Optional[str]]], ...] = (
    ("string", _plain_string),
    ("response", _response_field),
    ("result", _result_string),
    ("result.response", _result_response_field),
    ("choices", _chat_choices),
)


def unwrap_edge_response(payload: Any) -> tuple[str, str]:
    """Return ``(shape_name, text)`` for a recognized edge response shape."""
    for name, extractor in EDGE_RESPONSE_SHAPES:
        text = extractor(payload)
        if text is not None:
            return name, text
    if isinstance(payload, dict):
        detail = f"object with keys {sorted(payload)[:10]}"
    else:
        detail = type(payload).__name__
    raise ResponseFormatError(ErrorCode.EDGE_UNKNOWN_RESPONSE_SHAPE, detail)


def edge_finish_reason(payload: Any) -> Optional[str]:
    """Termination reason reported by the runner, if any."""
    if not isinstance(payload, dict):
        return None
    candidates: list[Any] = [payload]
    if isinstance(payload.get("result"), dict):
        candidates.append(payload["result"])
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        candidates.append(choices[0])
    for obj in candidates:
        for key in ("finish_reason", "finishReason", "done_reason"):
            if isinstance(obj.get(key), str):
                return obj[key]
    return None


def strip_code_fences(text: str) -> str:
    m = _FENCE_RE.search(text)
    if m:
        return m.group(1).strip()
    return _OPEN_FENCE_RE.sub("", text).strip()


def find_balanced_object(text: str) -> Optional[str]:
    """First balanced ``{...}`` span, ignoring braces inside JSON strings."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def parse_edge_json(text: str) -> dict[str, Any]:
    cleaned = strip_code_fences(text)
    span = find_balanced_object(cleaned)
    if span is None:
        raise ResponseFormatError(ErrorCode.LLM_JSON_PARSE_ERROR, "no complete JSON object found")
    return parse_json_object(span)
