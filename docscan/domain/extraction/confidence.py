"""
Confidence scoring for structured extraction results.

The score combines a completion-quality signal (did the model stop cleanly)
with a structural-completeness signal (did it return any populated field).
A model that terminated abnormally is more likely to have truncated output,
so the completion signal carries the larger weight. All constants are
configurable through ``ConfidenceWeights``.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

CLEAN_FINISH_REASONS = frozenset({"stop"})
BOOKKEEPING_KEYS = frozenset({"confidence", "isValidInput"})


class ConfidenceWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    completion_weight: float = Field(default=0.7, ge=0.0)
    structure_weight: float = Field(default=0.3, ge=0.0)
    clean_stop_score: float = Field(default=1.0, ge=0.0, le=1.0)
    abnormal_stop_score: float = Field(default=0.75, ge=0.0, le=1.0)
    populated_score: float = Field(default=0.9, ge=0.0, le=1.0)
    empty_score: float = Field(default=0.3, ge=0.0, le=1.0)
    invalid_input_multiplier: float = Field(default=0.3, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _weights_consistent(self) -> "ConfidenceWeights":
        if self.completion_weight + self.structure_weight <= 0:
            raise ValueError("completion_weight and structure_weight cannot both be zero")
        if self.clean_stop_score < self.abnormal_stop_score:
            raise ValueError("clean_stop_score must not be lower than abnormal_stop_score")
        if self.populated_score < self.empty_score:
            raise ValueError("populated_score must not be lower than empty_score")
        return self


DEFAULT_WEIGHTS = ConfidenceWeights()


def extract_finish_reason(response_meta: Mapping[str, Any] | None) -> str | None:
    """Return the model's termination reason, or None when absent."""
    if not isinstance(response_meta, Mapping):
        return None
    choices = response_meta.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], Mapping):
        first = choices[0]
        reason = first.get("finish_reason", first.get("finishReason"))
        if isinstance(reason, str):
            return reason
    reason = response_meta.get("finish_reason", response_meta.get("finishReason"))
    return reason if isinstance(reason, str) else None


def _is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def has_populated_fields(extracted: Mapping[str, Any] | None) -> bool:
    if not isinstance(extracted, Mapping):
        return False
    return any(
        _is_populated(value) for key, value in extracted.items() if key not in BOOKKEEPING_KEYS
    )


def calculate_confidence(
    response_meta: Mapping[str, Any] | None,
    extracted: Mapping[str, Any] | None,
    weights: ConfidenceWeights | None = None,
) -> float:
    """
    Calculate a 0..1 confidence score for one extraction.

    Args:
      response_meta: Raw response metadata; only the finish reason is read.
      extracted: Parsed JSON object after hallucination detection.
      weights: Scoring constants; defaults to the 70/30 split.

    Returns:
      Score clamped to [0, 1] and rounded to two decimals. Identical inputs
      always produce an identical score.
    """
    w = weights or DEFAULT_WEIGHTS

    finish_reason = extract_finish_reason(response_meta)
    completion = (
        w.clean_stop_score
        if finish_reason is not None and finish_reason.lower() in CLEAN_FINISH_REASONS
        else w.abnormal_stop_score
    )
    structure = w.populated_score if has_populated_fields(extracted) else w.empty_score

    total_weight = w.completion_weight + w.structure_weight
    score = (completion * w.completion_weight + structure * w.structure_weight) / total_weight

    if isinstance(extracted, Mapping) and extracted.get("isValidInput") is False:
        score *= w.invalid_input_multiplier

    return clamp_confidence(score)


def clamp_confidence(value: float) -> float:
    """Clamp to [0, 1] and round to two decimals; NaN maps to 0."""
    if value is None or math.isnan(value):
        return 0.0
    return round(min(max(value, 0.0), 1.0), 2)


def combine_confidences(
    ocr_confidence: float,
    extraction_confidence: float,
    *,
    ocr_weight: float = 0.6,
    extraction_weight: float = 0.4,
) -> float:
    """Weighted overall confidence of an OCR + extraction run."""
    total = ocr_weight + extraction_weight
    if total <= 0:
        return 0.0
    return clamp_confidence(
        (ocr_confidence * ocr_weight + extraction_confidence * extraction_weight) / total
    )
