"""Helpers for pulling JSON out of LLM responses."""

import json
import re
from typing import Any

_FENCED_RE = re.compile(r"```(?:json)?\s*([\[{][\s\S]*[\]}])\s*```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def _strip_fence(text: str) -> str:
    match = _FENCED_RE.search(text)
    return match.group(1) if match else text.strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the JSON object in an LLM response.

    The object may be wrapped in a ```json fence or surrounded by prose;
    the outermost ``{...}`` span is used.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    candidate = _strip_fence(text)
    match = _OBJECT_RE.search(candidate)
    if match is None:
        raise ValueError("No JSON object found in response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


def extract_json_array(text: str) -> list[Any]:
    """Parse the JSON array in an LLM response.

    Raises:
        ValueError: If no JSON array can be parsed
    """
    candidate = _strip_fence(text)
    match = _ARRAY_RE.search(candidate)
    if match is None:
        raise ValueError("No JSON array found in response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e
    if not isinstance(data, list):
        raise ValueError("Response JSON is not an array")
    return data


__all__ = [
    "extract_json_array",
    "extract_json_object",
]
