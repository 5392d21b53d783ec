"""Sales feedback extraction and normalization.

Model output is untrusted. Extraction finds one JSON object in free-form text;
normalization coerces each field independently into SalesFeedback, falling
back to documented defaults. Only a response with no extractable JSON object
is an error.
"""

import json
import logging
import math
import re
from typing import Any

from domain.errors import UnparsableResponseError
from domain.models import FeedbackMetrics, KeyMoment, SalesFeedback

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 5
MIN_SCORE = 1
MAX_SCORE = 10

DEFAULT_SUMMARY = "Unable to generate summary for this call."
DEFAULT_STRENGTH = "Unable to identify specific strengths from the transcript."
DEFAULT_IMPROVEMENT = "Unable to identify specific improvements from the transcript."
DEFAULT_SPEAKER = "Unknown"

# camelCase keys in model output -> FeedbackMetrics fields
METRIC_FIELDS = {
    "toneProfessionalism": "tone_professionalism",
    "activeListening": "active_listening",
    "objectionHandling": "objection_handling",
    "closingTechnique": "closing_technique",
    "productKnowledge": "product_knowledge",
}

# Tried in order after a whole-string parse fails.
_JSON_PATTERNS = [
    re.compile(r"```json\s*([\s\S]*?)\s*```"),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
    re.compile(r"\{[\s\S]*\}"),
]


def _loads_object(text: str) -> Any:
    try:
        value = json.loads(text)
    except (ValueError, TypeError, RecursionError):
        # JSONDecodeError, over-long integer literals, deep nesting
        return None
    return value if isinstance(value, dict) else None


def extract_json_from_response(content: str) -> dict:
    """Find a JSON object in model output.

    Tries the whole string, then a ```json fenced block, then any fenced
    block, then the span from the first "{" to the last "}".

    Raises:
        UnparsableResponseError: if none of these yields a JSON object.
    """
    parsed = _loads_object(content)
    if parsed is not None:
        return parsed

    for pattern in _JSON_PATTERNS:
        match = pattern.search(content or "")
        if not match:
            continue
        candidate = match.group(1) if match.groups() else match.group(0)
        parsed = _loads_object(candidate)
        if parsed is not None:
            logger.debug(f"Extracted JSON with pattern {pattern.pattern!r}")
            return parsed

    raise UnparsableResponseError(
        "Failed to extract valid JSON from LLM response. "
        "The model may not have returned properly formatted JSON."
    )


def clamp_score(value: Any, default: int = DEFAULT_SCORE) -> int:
    """Round half up and clamp to [1, 10]. Non-numbers, bools and NaN give default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    # ints may be too large to convert to float
    if isinstance(value, int):
        return max(MIN_SCORE, min(MAX_SCORE, value))
    if math.isnan(value):
        return default
    if math.isinf(value):
        return MAX_SCORE if value > 0 else MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, math.floor(value + 0.5)))


def _string_list(data: dict, key: str, placeholder: str) -> tuple[str, ...]:
    raw = data.get(key)
    if not isinstance(raw, list):
        logger.warning(f"Missing {key} array, using default")
        return (placeholder,)
    items = tuple(s.strip() for s in raw if isinstance(s, str) and s.strip())
    if not items:
        logger.warning(f"No valid {key} found, using default")
        return (placeholder,)
    return items


def _key_moments(data: dict) -> tuple[KeyMoment, ...]:
    raw = data.get("keyMoments")
    if not isinstance(raw, list):
        logger.warning("Missing keyMoments array, using empty array")
        return ()

    moments = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        observation = entry.get("observation")
        if not isinstance(observation, str) or not observation.strip():
            continue
        speaker = entry.get("speaker")
        timestamp = entry.get("timestamp")
        moments.append(KeyMoment(
            observation=observation,
            speaker=speaker if isinstance(speaker, str) else DEFAULT_SPEAKER,
            timestamp=timestamp if isinstance(timestamp, str) else None,
        ))

    if len(moments) < len(raw):
        logger.warning(f"Dropped {len(raw) - len(moments)} malformed keyMoments")
    return tuple(moments)


def _metrics(data: dict) -> FeedbackMetrics:
    raw = data.get("metrics")
    if not isinstance(raw, dict):
        logger.warning("Missing metrics object, using defaults")
        return FeedbackMetrics()

    values = {}
    for key, field_name in METRIC_FIELDS.items():
        values[field_name] = clamp_score(raw.get(key))
        if raw.get(key) != values[field_name]:
            logger.warning(f"Normalized metrics.{key} from {raw.get(key)!r} to {values[field_name]}")
    return FeedbackMetrics(**values)


def normalize_feedback(parsed: Any) -> SalesFeedback:
    """Coerce a parsed model response into a valid SalesFeedback.

    Raises:
        UnparsableResponseError: if parsed is not a JSON object.
    """
    if not isinstance(parsed, dict):
        raise UnparsableResponseError("LLM response is not a valid object")

    overall_score = clamp_score(parsed.get("overallScore"))
    if parsed.get("overallScore") != overall_score:
        logger.warning(
            f"Normalized overallScore from {parsed.get('overallScore')!r} to {overall_score}"
        )

    summary = parsed.get("summary")
    if isinstance(summary, str) and summary.strip():
        summary = summary.strip()
    else:
        logger.warning("Missing or invalid summary, using default")
        summary = DEFAULT_SUMMARY

    return SalesFeedback(
        overall_score=overall_score,
        summary=summary,
        strengths=_string_list(parsed, "strengths", DEFAULT_STRENGTH),
        improvements=_string_list(parsed, "improvements", DEFAULT_IMPROVEMENT),
        key_moments=_key_moments(parsed),
        metrics=_metrics(parsed),
    )


def parse_feedback(content: str) -> SalesFeedback:
    """Extract and normalize in one step."""
    return normalize_feedback(extract_json_from_response(content))
