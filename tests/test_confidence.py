from __future__ import annotations

import pytest
from pydantic import ValidationError

from docscan.domain.extraction.confidence import (
    ConfidenceWeights,
    calculate_confidence,
    clamp_confidence,
    combine_confidences,
    extract_finish_reason,
)

STOP = {"choices": [{"finish_reason": "stop"}]}
LENGTH = {"choices": [{"finish_reason": "length"}]}


def test_clean_stop_with_populated_fields() -> None:
    assert calculate_confidence(STOP, {"payee": "John Smith"}) == 0.97


def test_clean_beats_abnormal_and_empty() -> None:
    high = calculate_confidence(STOP, {"payee": "John Smith"})
    low = calculate_confidence(LENGTH, {})
    assert high > low


def test_missing_reason_scores_like_abnormal() -> None:
    fields = {"amount": 10.0}
    assert calculate_confidence(None, fields) == calculate_confidence(LENGTH, fields)
    assert calculate_confidence({}, fields) == calculate_confidence(LENGTH, fields)


def test_finish_reason_lookup_variants() -> None:
    assert extract_finish_reason({"choices": [{"finishReason": "stop"}]}) == "stop"
    assert extract_finish_reason({"finish_reason": "stop"}) == "stop"
    assert extract_finish_reason({"choices": []}) is None
    assert extract_finish_reason("stop") is None  # type: ignore[arg-type]


def test_bookkeeping_keys_do_not_count_as_populated() -> None:
    empty = calculate_confidence(STOP, {"confidence": 0.9, "isValidInput": True, "memo": "", "items": []})
    populated = calculate_confidence(STOP, {"memo": "rent"})
    assert empty < populated


def test_invalid_input_flag_caps_score() -> None:
    score = calculate_confidence(STOP, {"payee": None, "isValidInput": False})
    assert score <= 0.3


@pytest.mark.parametrize(
    "meta,fields",
    [
        (STOP, {"a": 1}),
        (LENGTH, {"a": 1}),
        (None, None),
        ({"choices": [{"finish_reason": "stop"}]}, {"isValidInput": False, "a": 1}),
    ],
)
def test_bounds_and_rounding(meta, fields) -> None:
    score = calculate_confidence(meta, fields)
    assert 0.0 <= score <= 1.0
    assert score == round(score, 2)


def test_pure_and_deterministic() -> None:
    fields = {"payee": "x", "amount": 1.0}
    before = dict(fields)
    assert calculate_confidence(STOP, fields) == calculate_confidence(STOP, fields)
    assert fields == before


def test_custom_weights() -> None:
    weights = ConfidenceWeights(completion_weight=1.0, structure_weight=0.0)
    assert calculate_confidence(STOP, {}, weights) == 1.0
    assert calculate_confidence(LENGTH, {"a": 1}, weights) == 0.75


def test_weights_cannot_both_be_zero() -> None:
    with pytest.raises(ValidationError):
        ConfidenceWeights(completion_weight=0.0, structure_weight=0.0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"clean_stop_score": 0.5, "abnormal_stop_score": 0.75},
        {"populated_score": 0.2, "empty_score": 0.3},
    ],
)
def test_scores_must_keep_clean_and_populated_on_top(overrides) -> None:
    with pytest.raises(ValidationError):
        ConfidenceWeights(**overrides)


def test_clamp_confidence() -> None:
    assert clamp_confidence(float("nan")) == 0.0
    assert clamp_confidence(1.7) == 1.0
    assert clamp_confidence(-0.2) == 0.0
    assert clamp_confidence(0.456) == 0.46


def test_combine_confidences() -> None:
    assert combine_confidences(0.9, 0.97) == 0.93
    assert combine_confidences(1.0, 1.0) == 1.0
    assert combine_confidences(0.5, 0.5, ocr_weight=0.0, extraction_weight=0.0) == 0.0
