"""
model_json.py

Purpose:
    The one place that turns free-text model output into a JSON object.

    Order of attempts:
      1. a fenced ```json ... ``` block
      2. the span from the first "{" to the last "}"
    Each candidate is cleaned (// and /* */ comments, trailing commas)
    before json.loads. Anything else raises ModelResponseError.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from kitchen_assistant.errors import ModelResponseError
from kitchen_assistant.logging_utils import get_logger

logger = get_logger("model_json")

MODULE_PURPOSE = "Extract JSON payloads from free-text model responses"

_FENCED = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT = re.compile(r"(?m)^\s*//.*$|(?<=[,\[{\s])//[^\n\"]*$")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _candidates(text: str) -> List[str]:
    out: List[str] = []
    m = _FENCED.search(text)
    if m:
        out.append(m.group(1))
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        span = text[start : end + 1]
        if span not in out:
            out.append(span)
    return out


def clean_json_text(raw: str) -> str:
    t = _BLOCK_COMMENT.sub("", raw)
    t = _LINE_COMMENT.sub("", t)
    t = _TRAILING_COMMA.sub(r"\1", t)
    return t.strip()


def parse_model_json(text: Optional[str], required_key: Optional[str] = None) -> Dict[str, Any]:
    """Parse model output into a dict, or raise ModelResponseError.

    `required_key`, when given, must be present and hold a list
    (e.g. "recipes").
    """
    if not isinstance(text, str) or not text.strip():
        raise ModelResponseError("Empty model response")

    candidates = _candidates(text)
    if not candidates:
        raise ModelResponseError("No JSON object found in model response")

    last_error: Optional[Exception] = None
    for raw in candidates:
        try:
            data = json.loads(clean_json_text(raw))
        except json.JSONDecodeError as exc:
            last_error = exc
            continue
        if not isinstance(data, dict):
            last_error = ValueError("top-level JSON is not an object")
            continue
        if required_key is not None and not isinstance(data.get(required_key), list):
            raise ModelResponseError(f"Model JSON has no '{required_key}' list")
        return data

    logger.warning(
        "Model response is not valid JSON: %s",
        last_error,
        extra={
            "invoking_func": "parse_model_json",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Discard the whole batch",
            "resolution": "Tighten the prompt or lower the temperature",
        },
    )
    raise ModelResponseError(f"Could not parse model JSON: {last_error}")
