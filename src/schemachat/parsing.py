"""Lenient JSON extraction from free-text model output.

Text-only providers are asked to answer in JSON but routinely wrap the
object in prose or Markdown fences. parse_unsafe_json() recovers the
object anyway.
"""

from __future__ import annotations

import json
import re
from typing import Any

_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_+-]*\s*$", flags=re.MULTILINE)
_DECODER = json.JSONDecoder()


def _strip_code_fences(text: str) -> str:
    """Drop Markdown fence lines (``` or ```json) and leading BOMs."""
    return _CODE_FENCE_RE.sub("", text.lstrip("\ufeff"))


def _decode_largest_object(raw: str) -> dict[str, Any] | None:
    """Return the largest JSON object decoded from any brace offset in ``raw``."""
    best: tuple[int, dict[str, Any]] | None = None
    for match in re.finditer(r"{", raw):
        try:
            obj, end = _DECODER.raw_decode(raw, match.start())
        except json.JSONDecodeError:
            continue
        if not isinstance(obj, dict):
            continue
        length = end - match.start()
        if best is None or length > best[0]:
            best = (length, obj)
    return best[1] if best is not None else None


def parse_unsafe_json(text: str | None) -> dict[str, Any] | None:
    """Extract a JSON object from ``text``, tolerating surrounding noise.

    Args:
        text: Raw model output.

    Returns:
        The decoded object, or None when ``text`` holds no JSON object.
    """
    if not text:
        return None
    cleaned = _strip_code_fences(text).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        return _decode_largest_object(cleaned)
    return parsed if isinstance(parsed, dict) else None
