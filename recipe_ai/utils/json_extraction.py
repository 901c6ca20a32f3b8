"""Helpers for pulling a JSON object out of free-form model output."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, Optional

_FENCE_OPEN = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers (```json / ```) wherever they appear."""
    t = _FENCE_OPEN.sub("", text or "")
    return _FENCE_CLOSE.sub("", t).strip()


def _strip_trailing_commas(json_text: str) -> str:
    # {"a": 1,} -> {"a": 1}   [1,2,] -> [1,2]
    return re.sub(r",(\s*[}\]])", r"\1", json_text)


def _normalize_quotes(text: str) -> str:
    """Normalize typographic quote characters to standard quotes."""
    return (
        text.replace("“", '"').replace("”", '"')
        .replace("‘", "'").replace("’", "'")
    )


def find_object_span(text: str) -> Optional[str]:
    """Greedy ``{...}`` span from the first opening to the last closing brace."""
    m = _OBJECT_SPAN.search(text or "")
    return m.group(0) if m else None


def _repair_candidates(span: str) -> Iterator[str]:
    yield span
    yield _strip_trailing_commas(span)
    # Typographic quotes last
    quoted = _normalize_quotes(span)
    if quoted != span:
        yield _strip_trailing_commas(quoted)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Best-effort parse of the JSON object embedded in a model response.

    Handles code fences, leading/trailing prose, trailing commas, raw control
    characters (newlines, tabs) inside string values and typographic quotes.
    Returns None when no object can be decoded.
    """
    span = find_object_span(strip_code_fences(text))
    if span is None:
        return None

    for candidate in _repair_candidates(span):
        try:
            # strict=False accepts literal newlines inside strings
            data = json.loads(candidate, strict=False)
        except json.JSONDecodeError:
            continue
        return data if isinstance(data, dict) else None
    return None
