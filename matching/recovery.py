"""
Turn raw model output into a MatchResult.

Small local models often break strict JSON: the "}" stop token cuts the
object short, prose follows the object, or no object is produced at all.
Recovery goes through two tiers and never raises:

1. structural: scan from the first "{" with a depth-aware scanner, close
   whatever the truncation left open and parse the object;
2. heuristic: pull a percentage out of the text and mark every list as
   unextractable, keeping a prefix of the raw text for diagnosis.
"""
import re
import json
import logging
from typing import Any, List, Optional

from schemas import MatchResult

logger = logging.getLogger(__name__)

MAX_MATCHED_SKILLS = 5
MAX_MISSING_SKILLS = 5
MAX_SUGGESTIONS = 3
RAW_RESPONSE_LIMIT = 500

DEFAULT_EXPLANATION = "Analysis complete."
FALLBACK_PERCENTAGE = 50
FALLBACK_SKILLS = ["Could not extract data"]
FALLBACK_SUGGESTIONS = ["Try submitting simpler resume/job inputs"]
FALLBACK_EXPLANATION = "Response was incomplete or not fully parseable."

_PAIRS = {"{": "}", "[": "]"}
_PERCENT_PATTERNS = [
    re.compile(r"(\d+)\s*%"),
    re.compile(r"percentage[\"'\s:=]*(\d+)", re.IGNORECASE),
]


def extract_json_candidate(raw: str) -> Optional[str]:
    """
    Return the text of the first JSON object in ``raw``, repaired if it was
    cut short, or None when there is no "{" at all.

    Braces and brackets inside string values are ignored. Anything after
    the object closes is dropped.
    """
    start = raw.find("{")
    if start == -1:
        return None

    stack: List[str] = []
    in_string = False
    escaped = False
    for i in range(start, len(raw)):
        ch = raw[i]
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
        elif ch in _PAIRS:
            stack.append(ch)
        elif ch in ("}", "]"):
            if stack and _PAIRS[stack[-1]] == ch:
                stack.pop()
            if not stack:
                return raw[start:i + 1]

    # Ran off the end: generation was truncated
    body = raw[start:]
    if escaped:
        body = body[:-1]
    if in_string:
        body += '"'
    body = body.rstrip()
    if body.endswith(","):
        body = body[:-1].rstrip()
    elif body.endswith(":"):
        body += " null"
    for opener in reversed(stack):
        body += _PAIRS[opener]
    return body


def heuristic_percentage(raw: str) -> int:
    for pattern in _PERCENT_PATTERNS:
        m = pattern.search(raw)
        if m:
            return _clamp(int(m.group(1)[:4]))
    return FALLBACK_PERCENTAGE


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def _coerce_percentage(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        m = re.search(r"\d+(?:\.\d+)?", value)
        value = float(m.group(0)) if m else None
    if isinstance(value, (int, float)):
        try:
            return _clamp(int(round(value)))
        except (ValueError, OverflowError):  # nan, inf
            return 0
    return 0


def _coerce_list(value: Any, cap: int) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items = [str(v).strip() for v in value if v is not None]
    return [v for v in items if v][:cap]


def _structural(raw: str, model_used: str) -> Optional[MatchResult]:
    candidate = extract_json_candidate(raw)
    if candidate is None:
        logger.warning("No opening brace in model output")
        return None
    try:
        parsed = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        logger.warning("Recovered JSON did not parse: %s", e)
        logger.debug("Recovered JSON candidate: %s", candidate)
        return None
    if not isinstance(parsed, dict):
        return None

    explanation = parsed.get("explanation")
    if explanation is not None and not isinstance(explanation, str):
        explanation = str(explanation)

    return MatchResult(
        match_percentage=_coerce_percentage(parsed.get("matchPercentage")),
        matched_skills=_coerce_list(parsed.get("matchedSkills"), MAX_MATCHED_SKILLS),
        missing_skills=_coerce_list(parsed.get("missingSkills"), MAX_MISSING_SKILLS),
        suggestions=_coerce_list(parsed.get("suggestions"), MAX_SUGGESTIONS),
        explanation=explanation or DEFAULT_EXPLANATION,
        model_used=model_used,
    )


def _heuristic(raw: str, model_used: str) -> MatchResult:
    return MatchResult(
        match_percentage=heuristic_percentage(raw),
        matched_skills=list(FALLBACK_SKILLS),
        missing_skills=list(FALLBACK_SKILLS),
        suggestions=list(FALLBACK_SUGGESTIONS),
        explanation=FALLBACK_EXPLANATION,
        model_used=model_used,
        raw_response=raw[:RAW_RESPONSE_LIMIT],
    )


def recover_match_result(raw: Optional[str], model_used: str) -> MatchResult:
    raw = raw or ""
    result = _structural(raw, model_used)
    if result is not None:
        return result
    logger.info("Falling back to heuristic extraction (model=%s)", model_used)
    return _heuristic(raw, model_used)
