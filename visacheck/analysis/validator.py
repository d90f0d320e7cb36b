"""Decodes the model reply into an EvaluationResult.

The prompt asks the model to cap scores and to flag injected instructions,
but the model is not trusted to do either. This module enforces the score
ceiling and the malicious/clean shapes deterministically.
"""

import json
import math
import re
from typing import Any

from visacheck.analysis.exceptions import InvalidResponseFormatError
from visacheck.analysis.models import (
    CHECKPOINT_STATUSES,
    MAX_SCORE,
    Checkpoint,
    EvaluationResult,
    Score,
)
from visacheck.logging.logger import Log

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def validate_llm_response(raw_text: str) -> EvaluationResult:
    """Validate the raw model reply and build an EvaluationResult.

    Scores above the ceiling are clamped, never rejected.

    Raises:
        InvalidResponseFormatError: on any structural violation.
    """
    data = _parse_json_object(raw_text)

    is_malicious = data.get("isMalicious")
    if not isinstance(is_malicious, bool):
        raise InvalidResponseFormatError("Missing or invalid isMalicious field")

    score = _clamp_score(_require_score(data.get("score"), "score"), "Score")

    summary = data.get("summary")
    if not isinstance(summary, str):
        raise InvalidResponseFormatError("Missing or invalid summary field")

    if is_malicious:
        return _build_malicious(data, score, summary)
    return _build_clean(data, score, summary)


def _parse_json_object(raw_text: str) -> dict[str, Any]:
    match = _JSON_OBJECT_RE.search(raw_text or "")
    if match is None:
        raise InvalidResponseFormatError("No JSON found in response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise InvalidResponseFormatError(f"Invalid JSON response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise InvalidResponseFormatError("JSON response must be an object")
    return parsed


def _require_score(raw: Any, label: str) -> Score:
    # bool is an int subclass; a JSON true/false is not a score
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidResponseFormatError(f"Missing or invalid {label} field")
    if not math.isfinite(raw):
        raise InvalidResponseFormatError(f"Invalid {label}: {raw} is not a finite number")
    if raw < 0:
        raise InvalidResponseFormatError(f"Invalid {label}: {raw} is negative")
    return raw


def _clamp_score(score: Score, label: str) -> Score:
    if score > MAX_SCORE:
        Log.warning(f"{label} {score} exceeds maximum of {MAX_SCORE}, capping it")
        return MAX_SCORE
    return score


def _build_malicious(data: dict[str, Any], score: Score, summary: str) -> EvaluationResult:
    reason = data.get("maliciousReason")
    if not isinstance(reason, str) or not reason.strip():
        raise InvalidResponseFormatError("Malicious document must have maliciousReason")
    if data.get("checkpoints"):
        Log.debug("Discarding checkpoints supplied with a malicious verdict")
    return EvaluationResult(
        is_malicious=True,
        malicious_reason=reason,
        score=score,
        summary=summary,
        strengths=_string_list(data, "strengths"),
        weaknesses=_string_list(data, "weaknesses"),
        suggestions=_string_list(data, "suggestions"),
    )


def _build_clean(data: dict[str, Any], score: Score, summary: str) -> EvaluationResult:
    raw_checkpoints = data.get("checkpoints")
    if not isinstance(raw_checkpoints, list):
        raise InvalidResponseFormatError("Missing or invalid checkpoints array")
    if not raw_checkpoints:
        raise InvalidResponseFormatError("Checkpoints array must not be empty")
    checkpoints = [_build_checkpoint(item, i) for i, item in enumerate(raw_checkpoints)]
    return EvaluationResult(
        is_malicious=False,
        score=score,
        summary=summary,
        checkpoints=checkpoints,
        strengths=_string_list(data, "strengths"),
        weaknesses=_string_list(data, "weaknesses"),
        suggestions=_string_list(data, "suggestions"),
    )


def _build_checkpoint(raw: Any, index: int) -> Checkpoint:
    if not isinstance(raw, dict):
        raise InvalidResponseFormatError(f"Checkpoint at index {index} must be an object")
    name = raw.get("checkpoint")
    status = raw.get("status")
    if not isinstance(name, str) or not name.strip() or not status:
        raise InvalidResponseFormatError("Invalid checkpoint structure")
    if status not in CHECKPOINT_STATUSES:
        raise InvalidResponseFormatError(f"Invalid checkpoint status: {status}")

    score = raw.get("score")
    if score is not None:
        score = _clamp_score(
            _require_score(score, f"checkpoint score at index {index}"),
            f"Checkpoint score for '{name}'",
        )
    return Checkpoint(
        checkpoint=name,
        status=status,
        evidence=_optional_string(raw, "evidence", index),
        feedback=_optional_string(raw, "feedback", index),
        score=score,
    )


def _optional_string(raw: dict[str, Any], key: str, index: int) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidResponseFormatError(
            f"Checkpoint at index {index}: '{key}' must be a string"
        )
    return value


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidResponseFormatError(f"'{key}' must be a list of strings")
    return list(value)
