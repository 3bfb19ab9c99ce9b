"""Cleanup of generation-service answers that should contain one JSON object."""

import json
import re
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..orchestration.exceptions import ResponseParseError

T = TypeVar("T", bound=BaseModel)

_FENCE_OPEN = re.compile(r"^```(?:json|JSON)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")

PREVIEW_CHARS = 200


def strip_markdown_json(raw: str) -> str:
    """Strip markdown code fences and any prose around the outermost JSON object."""
    s = raw.strip()
    s = _FENCE_OPEN.sub("", s)
    s = _FENCE_CLOSE.sub("", s)
    s = s.strip()
    first = s.find("{")
    last = s.rfind("}")
    if first >= 0 and last > first:
        s = s[first : last + 1]
    return s


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse the JSON object in a raw answer.

    Raises:
        ResponseParseError: If the answer is empty, not JSON, or not an object
    """
    if raw is None or not raw.strip():
        raise ResponseParseError("Empty response", raw_response=raw)
    cleaned = strip_markdown_json(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Response is not valid JSON: {e}", raw_response=_preview(raw)) from e
    if not isinstance(data, dict):
        raise ResponseParseError(
            f"Expected a JSON object, got {type(data).__name__}",
            raw_response=_preview(raw),
        )
    return data


def parse_response(raw: str, response_model: Type[T]) -> T:
    """Parse and validate a raw answer into ``response_model``."""
    data = parse_json_object(raw)
    try:
        return response_model.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(
            f"Response does not match {response_model.__name__}: {e.error_count()} validation errors",
            raw_response=_preview(raw),
        ) from e


def _preview(raw: str) -> str:
    if len(raw) <= PREVIEW_CHARS:
        return raw
    return raw[:PREVIEW_CHARS] + "..."
