"""
Module: grading.parser

Purpose:
    Turn the grading collaborator's raw text reply into a GradingResult.

Key Functions:
    - parse_grading_response(): Strict parse, raises MalformedGradingResponse
    - parse_or_default(): Never raises; zero result with diagnostic feedback
    - fallback_result(): The zero-score, zero-confidence result

Lookup order:
    1. A fenced ```json block (or a bare ``` fence)
    2. The first top-level {...} object anywhere in the text
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from exam_toolkit.errors import MalformedGradingResponse

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

PARSE_ERROR_FEEDBACK = "Error parsing AI response"


@dataclass(frozen=True)
class GradingDimension:
    name: str
    score: float
    max_score: float


@dataclass(frozen=True)
class GradingResult:
    """
    Structured grading verdict for one question.

    Attributes:
        is_correct: Collaborator's own verdict (informational; the score
            record re-derives correctness from the score)
        score: Awarded points
        max_score: Maximum points echoed back
        confidence_level: 0.0-1.0
        feedback: Free-text feedback shown to the user
        dimensions: Optional per-dimension breakdown (essay/short answer)
    """

    is_correct: bool
    score: float
    max_score: float
    confidence_level: float
    feedback: str
    dimensions: Optional[tuple[GradingDimension, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "isCorrect": self.is_correct,
            "score": self.score,
            "maxScore": self.max_score,
            "confidenceLevel": self.confidence_level,
            "feedback": self.feedback,
        }
        if self.dimensions is not None:
            d["dimensions"] = [
                {"name": dim.name, "score": dim.score, "maxScore": dim.max_score}
                for dim in self.dimensions
            ]
        return d


def fallback_result(feedback: str = PARSE_ERROR_FEEDBACK) -> GradingResult:
    return GradingResult(
        is_correct=False,
        score=0,
        max_score=0,
        confidence_level=0,
        feedback=feedback,
    )


def _number(payload: dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or value is None:
        raise MalformedGradingResponse(f"Field {key!r} missing or not a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedGradingResponse(f"Field {key!r} is not a number: {value!r}")
    if not math.isfinite(number):
        raise MalformedGradingResponse(f"Field {key!r} is not finite: {value!r}")
    return number


def _first_object(text: str) -> Optional[dict[str, Any]]:
    """Decode the first JSON object that starts at any '{' in text."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def _extract_payload(text: str) -> Optional[dict[str, Any]]:
    for match in _FENCE_RE.finditer(text):
        try:
            value = json.loads(match.group(1))
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return _first_object(text)


def result_from_payload(payload: dict[str, Any]) -> GradingResult:
    """Validate a decoded JSON payload and build a GradingResult."""
    score = _number(payload, "score")
    max_score = _number(payload, "maxScore", 0)
    confidence = min(1.0, max(0.0, _number(payload, "confidenceLevel", 0)))

    dimensions = None
    raw_dims = payload.get("dimensions")
    if isinstance(raw_dims, list):
        dimensions = tuple(
            GradingDimension(
                name=str(d.get("name", "")),
                score=_number(d, "score", 0),
                max_score=_number(d, "maxScore", 0),
            )
            for d in raw_dims
            if isinstance(d, dict)
        )

    return GradingResult(
        is_correct=bool(payload.get("isCorrect", False)),
        score=score,
        max_score=max_score,
        confidence_level=confidence,
        feedback=str(payload.get("feedback") or ""),
        dimensions=dimensions,
    )


def parse_grading_response(text: str) -> GradingResult:
    """
    Parse the collaborator's reply.

    Raises:
        MalformedGradingResponse: If no JSON object can be found or the
            object lacks a numeric score
    """
    payload = _extract_payload(text or "")
    if payload is None:
        raise MalformedGradingResponse("No JSON object found in grading response", raw=text or "")
    try:
        return result_from_payload(payload)
    except MalformedGradingResponse as e:
        e.raw = text
        raise


def parse_or_default(text: str) -> GradingResult:
    """Parse the reply, degrading to a zero result instead of raising."""
    try:
        return parse_grading_response(text)
    except MalformedGradingResponse as e:
        logger.error(f"Failed to parse AI response: {e}")
        return fallback_result()
