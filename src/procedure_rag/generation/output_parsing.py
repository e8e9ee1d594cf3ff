"""Two-stage parsing of JSON embedded in free-form model output.

Models asked for "JSON only" still occasionally wrap it in prose or code
fences. Every parser here tries a strict ``json.loads`` first, then a lenient
extraction, and reports which stage produced the value so callers can log
(and tests can assert) when a default was substituted.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_QUOTED_STRING_RE = re.compile(r'"([^"]+)"')


@dataclass(frozen=True)
class ParseOutcome(Generic[T]):
    value: T
    stage: str  # "strict", "fallback", "failed"

    @property
    def ok(self) -> bool:
        return self.stage != "failed"


def parse_string_list(raw: str, limit: int | None = None) -> ParseOutcome[list[str]]:
    """Parse a JSON array of strings; quoted literals are extracted only from non-JSON replies."""
    text = raw.strip()
    if not text:
        return ParseOutcome([], "failed")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        # Parsed JSON is never re-scanned for quoted strings
        if isinstance(parsed, list):
            items = [s.strip() for s in parsed if isinstance(s, str) and s.strip()]
            return ParseOutcome(_clip(items, limit), "strict")
        return ParseOutcome([], "failed")

    extracted = [s.strip() for s in _QUOTED_STRING_RE.findall(text) if s.strip()]
    if extracted:
        return ParseOutcome(_clip(extracted, limit), "fallback")
    return ParseOutcome([], "failed")


def parse_json_object(raw: str) -> ParseOutcome[dict[str, Any]]:
    """Parse a JSON object, falling back to the outermost ``{...}`` span."""
    text = raw.strip()
    if not text:
        return ParseOutcome({}, "failed")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        if isinstance(parsed, dict):
            return ParseOutcome(parsed, "strict")
        return ParseOutcome({}, "failed")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return ParseOutcome({}, "failed")
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return ParseOutcome({}, "failed")
    if isinstance(parsed, dict):
        return ParseOutcome(parsed, "fallback")
    return ParseOutcome({}, "failed")


def _clip(items: list[str], limit: int | None) -> list[str]:
    return items if limit is None else items[:limit]
