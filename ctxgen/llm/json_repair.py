"""Bounded recovery of JSON payloads from model output.

Repairs are purely syntactic: fence stripping, extraction of the outermost
object or array, trailing-comma removal and closing of unterminated strings
and brackets. The result is re-parsed once; anything still invalid raises
rather than guessing at field values.
"""

from __future__ import annotations

import json
import re
from typing import Any, List

from ..logging import get_logger

logger = get_logger("llm.json")

_FENCE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\r?\n?")
_CLOSERS = {"{": "}", "[": "]"}


class JSONRepairError(ValueError):
    """Raised when output cannot be parsed even after repair."""


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).replace("```", "").strip()


def extract_json_region(text: str) -> str:
    """Return the span from the first ``{``/``[`` to the last matching closer."""
    starts = [index for index in (text.find("{"), text.find("[")) if index != -1]
    if not starts:
        return text.strip()
    start = min(starts)
    closer = _CLOSERS[text[start]]
    end = text.rfind(closer)
    if end <= start:
        return text[start:].strip()
    return text[start : end + 1]


def repair_json(text: str) -> str:
    """Drop trailing commas and close whatever is left open."""
    out: List[str] = []
    stack: List[str] = []
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in "}]":
            _drop_trailing_comma(out)
            # an unbalanced closer is left for the parser to reject
            if stack and stack[-1] == char:
                stack.pop()
        out.append(char)

    if in_string:
        if escaped:
            out.pop()
        out.append('"')
    while stack:
        _drop_trailing_comma(out)
        out.append(stack.pop())
    return "".join(out)


def _drop_trailing_comma(out: List[str]) -> None:
    index = len(out) - 1
    while index >= 0 and out[index].isspace():
        index -= 1
    if index >= 0 and out[index] == ",":
        del out[index]


def parse_json(text: str) -> Any:
    """Parse model output, applying one round of bounded repair on failure."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise JSONRepairError("Response contained no JSON")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as first_error:
        candidate = extract_json_region(cleaned)
        repaired = repair_json(candidate)
        preview = cleaned if len(cleaned) <= 100 else f"{cleaned[:100]}..."
        logger.debug("Standard JSON parsing failed for %r (%s); attempting repair", preview, first_error)
        try:
            return json.loads(repaired)
        except json.JSONDecodeError as second_error:
            raise JSONRepairError(
                f"Failed to parse JSON even after repair. Initial error: {first_error}; repair error: {second_error}"
            ) from second_error


__all__ = ["JSONRepairError", "extract_json_region", "parse_json", "repair_json", "strip_code_fences"]
