from __future__ import annotations

import pytest

from docscan.application.llm.parsers import (
    edge_finish_reason,
    find_balanced_object,
    parse_completion_content,
    parse_edge_json,
    parse_json_object,
    strip_code_fences,
    unwrap_edge_response,
)
from docscan.domain.pipeline.errors import ResponseFormatError


def test_completion_content_success() -> None:
    data = {"choices": [{"message": {"content": '{"a": 1}'}, "finish_reason": "stop"}]}
    assert parse_completion_content(data) == '{"a": 1}'


@pytest.mark.parametrize("data", [{}, {"choices": []}, {"choices": None}])
def test_completion_without_choices(data) -> None:
    with pytest.raises(ResponseFormatError) as exc:
        parse_completion_content(data)
    assert exc.value.error_code == "LLM_EMPTY_RESPONSE"


@pytest.mark.parametrize("content", [None, 42, [{"type": "text", "text": "{}"}]])
def test_completion_with_non_string_content(content) -> None:
    with pytest.raises(ResponseFormatError) as exc:
        parse_completion_content({"choices": [{"message": {"content": content}}]})
    assert exc.value.error_code == "LLM_INVALID_CONTENT"


def test_parse_json_object_errors() -> None:
    with pytest.raises(ResponseFormatError) as exc:
        parse_json_object('{"a": 1')
    assert exc.value.error_code == "LLM_JSON_PARSE_ERROR"
    assert "Invalid JSON response" in exc.value.message

    with pytest.raises(ResponseFormatError):
        parse_json_object("[1, 2]")


@pytest.mark.parametrize(
    "payload,shape",
    [
        ('{"a": 1}', "string"),
        ({"response": '{"a": 1}'}, "response"),
        ({"result": '{"a": 1}'}, "result"),
        ({"result": {"response": '{"a": 1}'}}, "result.response"),
        ({"choices": [{"message": {"content": '{"a": 1}'}}]}, "choices"),
    ],
)
def test_unwrap_known_shapes(payload, shape) -> None:
    assert unwrap_edge_response(payload) == (shape, '{"a": 1}')


@pytest.mark.parametrize("payload", [{"output": "x"}, {"response": 5}, ["x"], None, 3])
def test_unwrap_unknown_shapes(payload) -> None:
    with pytest.raises(ResponseFormatError) as exc:
        unwrap_edge_response(payload)
    assert exc.value.error_code == "EDGE_UNKNOWN_RESPONSE_SHAPE"


def test_edge_finish_reason() -> None:
    assert edge_finish_reason({"response": "x", "done_reason": "stop"}) == "stop"
    assert edge_finish_reason({"result": {"response": "x", "finish_reason": "length"}}) == "length"
    assert edge_finish_reason({"choices": [{"finish_reason": "stop"}]}) == "stop"
    assert edge_finish_reason({"response": "x"}) is None
    assert edge_finish_reason("x") is None


def test_strip_code_fences() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('Here you go:\n```\n{"a": 1}\n```\nthanks') == '{"a": 1}'
    assert strip_code_fences('```json\n{"a": 1}') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_find_balanced_object() -> None:
    assert find_balanced_object('noise {"a": {"b": 2}} trailing {"c": 3}') == '{"a": {"b": 2}}'
    assert find_balanced_object('{"s": "brace } inside", "t": "quote \\" }"}') == (
        '{"s": "brace } inside", "t": "quote \\" }"}'
    )
    assert find_balanced_object('{"a": 1') is None
    assert find_balanced_object("no json here") is None


def test_parse_edge_json() -> None:
    assert parse_edge_json('Sure!\n```json\n{"payee": "John"}\n```') == {"payee": "John"}
    with pytest.raises(ResponseFormatError) as exc:
        parse_edge_json('{"a": 1')
    assert exc.value.error_code == "LLM_JSON_PARSE_ERROR"
